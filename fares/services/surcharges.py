"""Time- and context-conditioned surcharges.

Rules are evaluated in a fixed order (rush hour, night time, airport pickup,
stopovers) so a breakdown lists its surcharges identically for identical
input. Everything that can be wrong with a rule definition is checked in
``SurchargeRuleSet.from_config``; ``applicable_rules`` itself never raises for
a well-formed context.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError
from .geo import Location, address_text, as_coordinates, haversine_km
from .money import to_decimal

RUSH_HOUR = "rushHour"
NIGHT_TIME = "nightTime"
AIRPORT_PICKUP = "airportPickup"
STOPOVER = "stopover"
RULE_ORDER = (RUSH_HOUR, NIGHT_TIME, AIRPORT_PICKUP, STOPOVER)

FIXED = "fixed"
PERCENTAGE = "percentage"
KINDS = (FIXED, PERCENTAGE)

WEEKDAYS = frozenset(range(5))

DEFAULT_DESCRIPTIONS = {
    RUSH_HOUR: "Rush hour surcharge",
    NIGHT_TIME: "Night rate",
    AIRPORT_PICKUP: "Airport pickup",
    STOPOVER: "Extra stop",
}


@dataclass(frozen=True)
class SurchargeRule:
    name: str
    kind: str
    # None is only valid for the night rule: the vehicle's night amount is used.
    amount: Optional[Decimal]
    description: str


@dataclass(frozen=True)
class SurchargeContext:
    scheduled_at: datetime
    pickup_location: Optional[Location] = None
    destination_location: Optional[Location] = None
    stopover_count: int = 0


@dataclass(frozen=True)
class Airport:
    name: str
    keywords: Tuple[str, ...] = ()
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: float = 3.0

    def matches(self, location: Optional[Location]) -> bool:
        if location is None:
            return False
        coords = as_coordinates(location)
        if coords is not None and self.latitude is not None and self.longitude is not None:
            if haversine_km(coords, (self.latitude, self.longitude)) <= self.radius_km:
                return True
        # the address is checked even when coordinates are known
        text = address_text(location)
        return bool(text) and any(keyword in text for keyword in self.keywords)


def _hours(window: Sequence[int], label: str) -> frozenset:
    try:
        start, end = int(window[0]), int(window[1])
    except (TypeError, ValueError, IndexError) as exc:
        raise ConfigurationError(f"{label} must be a (start_hour, end_hour) pair, got {window!r}") from exc
    if not (0 <= start <= 23 and 0 <= end <= 24) or start == end:
        raise ConfigurationError(f"{label} has invalid hours {window!r}")
    if start < end:
        return frozenset(range(start, end))
    # wraps midnight
    return frozenset(range(start, 24)) | frozenset(range(0, end))


def _keywords(values, label: str) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = values.split(",")
    try:
        return tuple(k.strip().lower() for k in values if k and k.strip())
    except (AttributeError, TypeError) as exc:
        raise ConfigurationError(f"{label} must be a list of strings, got {values!r}") from exc


def _build_rule(name: str, definition: Mapping) -> Optional[SurchargeRule]:
    if name not in RULE_ORDER:
        raise ConfigurationError(f"Unknown surcharge rule {name!r}; expected one of {', '.join(RULE_ORDER)}")
    if not isinstance(definition, Mapping):
        raise ConfigurationError(f"Surcharge rule {name!r} must be a mapping")
    if not definition.get("enabled", True):
        return None

    kind = definition.get("kind", FIXED)
    if kind not in KINDS:
        raise ConfigurationError(f"Surcharge rule {name!r} has unknown kind {kind!r}")

    raw_amount = definition.get("amount")
    if raw_amount is None:
        if not (name == NIGHT_TIME and kind == FIXED):
            raise ConfigurationError(f"Surcharge rule {name!r} needs an amount")
        amount = None
    else:
        try:
            amount = to_decimal(raw_amount)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Surcharge rule {name!r} amount is not a number: {raw_amount!r}") from exc
        if amount < 0:
            raise ConfigurationError(f"Surcharge rule {name!r} amount must not be negative")
        if kind == PERCENTAGE and amount > 1:
            raise ConfigurationError(
                f"Surcharge rule {name!r} percentage must be a fraction between 0 and 1 (got {amount})"
            )
    if name == STOPOVER and kind != FIXED:
        raise ConfigurationError("The stopover surcharge is a fixed per-stop fee")

    description = definition.get("description") or DEFAULT_DESCRIPTIONS[name]
    return SurchargeRule(name=name, kind=kind, amount=amount, description=description)


class SurchargeRuleSet:
    def __init__(
        self,
        rules: Iterable[SurchargeRule],
        rush_hour_windows: Sequence[Sequence[int]] = ((7, 9), (17, 19)),
        night_window: Sequence[int] = (22, 7),
        airports: Iterable[Airport] = (),
        max_stopovers: int = 5,
        time_zone: Optional[str] = None,
    ):
        by_name = {}
        for rule in rules:
            if rule.name in by_name:
                raise ConfigurationError(f"Surcharge rule {rule.name!r} defined twice")
            by_name[rule.name] = rule
        self._rules = by_name

        self.rush_hours = frozenset()
        try:
            windows = list(rush_hour_windows)
        except TypeError as exc:
            raise ConfigurationError(f"rush_hour_windows must be a list of (start_hour, end_hour) pairs, got {rush_hour_windows!r}") from exc
        for window in windows:
            self.rush_hours |= _hours(window, "rush hour window")
        self.night_hours = _hours(night_window, "night window")
        if self.rush_hours & self.night_hours:
            raise ConfigurationError(
                "Rush hour and night windows overlap at hour(s) "
                + ", ".join(str(h) for h in sorted(self.rush_hours & self.night_hours))
            )

        self.airports = tuple(airports)
        try:
            self.max_stopovers = int(max_stopovers)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"max_stopovers must be a whole number, got {max_stopovers!r}") from exc
        if self.max_stopovers < 0:
            raise ConfigurationError("max_stopovers must not be negative")

        self.time_zone = None
        if time_zone:
            if not isinstance(time_zone, str):
                raise ConfigurationError(f"Pricing time zone must be a zone name, got {time_zone!r}")
            try:
                self.time_zone = ZoneInfo(time_zone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ConfigurationError(f"Unknown pricing time zone {time_zone!r}") from exc

    @classmethod
    def from_config(cls, config: Mapping) -> "SurchargeRuleSet":
        """Build a rule set from a plain mapping (settings.PRICING or DB rows).

        Keys: ``rules`` (name -> {kind, amount, description, enabled}),
        ``rush_hour_windows``, ``night_window``, ``airport_keywords``,
        ``airports``, ``max_stopovers``, ``time_zone``.
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError("Surcharge configuration must be a mapping")

        definitions = config.get("rules") or {}
        if not isinstance(definitions, Mapping):
            raise ConfigurationError("Surcharge rules must be a mapping of rule name to definition")
        rules = []
        for name, definition in definitions.items():
            rule = _build_rule(name, definition)
            if rule is not None:
                rules.append(rule)

        keywords = _keywords(config.get("airport_keywords") or (), "airport_keywords")
        airports = []
        if keywords:
            airports.append(Airport(name="keywords", keywords=keywords))
        items = config.get("airports") or ()
        if isinstance(items, (str, Mapping)) or not isinstance(items, Iterable):
            raise ConfigurationError(f"airports must be a list of airport definitions, got {items!r}")
        for item in items:
            try:
                airports.append(
                    Airport(
                        name=item["name"],
                        keywords=_keywords(item.get("keywords") or (), f"keywords of airport {item['name']!r}"),
                        latitude=None if item.get("latitude") is None else float(item["latitude"]),
                        longitude=None if item.get("longitude") is None else float(item["longitude"]),
                        radius_km=float(item.get("radius_km", 3.0)),
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(f"Malformed airport definition: {item!r}") from exc

        kwargs = {}
        for key in ("rush_hour_windows", "night_window", "max_stopovers", "time_zone"):
            if config.get(key) is not None:
                kwargs[key] = config[key]
        return cls(rules, airports=airports, **kwargs)

    def rule(self, name: str) -> Optional[SurchargeRule]:
        return self._rules.get(name)

    @property
    def rules(self) -> List[SurchargeRule]:
        return [self._rules[name] for name in RULE_ORDER if name in self._rules]

    def local_time(self, scheduled_at: datetime) -> datetime:
        if self.time_zone is not None and scheduled_at.tzinfo is not None:
            return scheduled_at.astimezone(self.time_zone)
        return scheduled_at

    def is_rush_hour(self, scheduled_at: datetime) -> bool:
        local = self.local_time(scheduled_at)
        return local.weekday() in WEEKDAYS and local.hour in self.rush_hours

    def is_night(self, scheduled_at: datetime) -> bool:
        return self.local_time(scheduled_at).hour in self.night_hours

    def is_airport(self, location: Optional[Location]) -> bool:
        return any(airport.matches(location) for airport in self.airports)

    def applicable_rules(self, context: SurchargeContext) -> List[SurchargeRule]:
        fired = []

        rule = self._rules.get(RUSH_HOUR)
        if rule and self.is_rush_hour(context.scheduled_at):
            fired.append(rule)

        rule = self._rules.get(NIGHT_TIME)
        if rule and self.is_night(context.scheduled_at):
            fired.append(rule)

        rule = self._rules.get(AIRPORT_PICKUP)
        if rule and self.is_airport(context.pickup_location):
            fired.append(rule)

        rule = self._rules.get(STOPOVER)
        if rule:
            stops = min(max(int(context.stopover_count or 0), 0), self.max_stopovers)
            for n in range(2, stops + 1):
                fired.append(
                    SurchargeRule(
                        name=STOPOVER,
                        kind=rule.kind,
                        amount=rule.amount,
                        description=f"{rule.description} ({n})",
                    )
                )
        return fired
