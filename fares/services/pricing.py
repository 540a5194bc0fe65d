import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from django.conf import settings

from .exceptions import ConfigurationError, InvalidInput, PriceMismatch
from .geo import Location
from .money import ZERO, format_money, round_money, to_decimal
from .rates import RateTable, normalize_vehicle_type
from .surcharges import PERCENTAGE, SurchargeContext, SurchargeRuleSet

logger = logging.getLogger(__name__)

RIDE = "ride"
HOURLY = "hourly"
BOOKING_TYPES = (RIDE, HOURLY)


@dataclass(frozen=True)
class FareInput:
    vehicle_type: str
    scheduled_at: Optional[datetime]
    distance_km: object = 0
    duration_minutes: object = 0
    stopover_count: int = 0
    booking_type: str = RIDE
    hourly_duration_hours: object = None
    pickup_location: Optional[Location] = None
    destination_location: Optional[Location] = None
    # provenance of distance/duration, set by whoever produced the estimate
    estimated_only: bool = False


@dataclass(frozen=True)
class SurchargeLine:
    name: str
    description: str
    amount: Decimal
    kind: str

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description, "amount": str(self.amount), "kind": self.kind}


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemized, display-ready and payment-ready fare. Never mutated; every
    recalculation produces a new instance."""

    vehicle_type: str
    booking_type: str
    base_price: Decimal
    distance_price: Decimal
    time_price: Decimal
    surcharges: Tuple[SurchargeLine, ...]
    subtotal: Decimal
    total_before_tax: Decimal
    tax: Decimal
    total: Decimal
    minimum: Decimal
    estimated_only: bool
    currency: str
    tax_rate: Decimal = field(default=Decimal("0.21"))

    @property
    def surcharge_total(self) -> Decimal:
        return sum((line.amount for line in self.surcharges), ZERO)

    @property
    def minimum_applied(self) -> bool:
        return self.subtotal + self.surcharge_total < self.minimum

    def rounded(self) -> "PriceBreakdown":
        return replace(
            self,
            base_price=round_money(self.base_price),
            distance_price=round_money(self.distance_price),
            time_price=round_money(self.time_price),
            surcharges=tuple(replace(line, amount=round_money(line.amount)) for line in self.surcharges),
            subtotal=round_money(self.subtotal),
            total_before_tax=round_money(self.total_before_tax),
            tax=round_money(self.tax),
            total=round_money(self.total),
            minimum=round_money(self.minimum),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "vehicleType": self.vehicle_type,
            "bookingType": self.booking_type,
            "basePrice": str(self.base_price),
            "distancePrice": str(self.distance_price),
            "timePrice": str(self.time_price),
            "surcharges": [line.as_dict() for line in self.surcharges],
            "surchargeTotal": str(self.surcharge_total),
            "subtotal": str(self.subtotal),
            "totalBeforeTax": str(self.total_before_tax),
            "taxRate": str(self.tax_rate),
            "tax": str(self.tax),
            "total": str(self.total),
            "minimum": str(self.minimum),
            "minimumApplied": self.minimum_applied,
            "estimatedOnly": self.estimated_only,
            "currency": self.currency,
        }


def _non_negative(value, name: str) -> Decimal:
    if value is None:
        raise InvalidInput(f"{name} is required")
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise InvalidInput(f"{name} must be a finite number >= 0, got {value!r}")
    return amount


class FareCalculator:
    """Pure fare calculation over an injected rate table and rule set.

    ``calculate`` has no side effects and performs no I/O: identical input
    gives an identical PriceBreakdown.
    """

    def __init__(
        self,
        rate_table: RateTable,
        surcharge_rules: SurchargeRuleSet,
        tax_rate=Decimal("0.21"),
        currency: str = "EUR",
    ):
        try:
            tax_rate = to_decimal(tax_rate)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Tax rate is not a number: {tax_rate!r}") from exc
        if not (0 <= tax_rate <= 1):
            raise ConfigurationError(f"Tax rate must be between 0 and 1, got {tax_rate}")
        if not (isinstance(currency, str) and len(currency) == 3 and currency.isalpha()):
            raise ConfigurationError(f"Currency must be an ISO 4217 code, got {currency!r}")

        self.rate_table = rate_table
        self.surcharge_rules = surcharge_rules
        self.tax_rate = tax_rate
        self.currency = currency.upper()

    def _validate(self, fare_input: FareInput):
        if not isinstance(fare_input.scheduled_at, datetime):
            raise InvalidInput("scheduled_at is required and must be a datetime")
        if fare_input.booking_type not in BOOKING_TYPES:
            raise InvalidInput(f"booking_type must be one of {', '.join(BOOKING_TYPES)}")
        if not normalize_vehicle_type(fare_input.vehicle_type):
            raise InvalidInput("vehicle_type is required")

        stops = fare_input.stopover_count
        if isinstance(stops, bool) or not isinstance(stops, int) or stops < 0:
            raise InvalidInput(f"stopover_count must be a whole number >= 0, got {stops!r}")
        if stops > self.surcharge_rules.max_stopovers:
            raise InvalidInput(
                f"At most {self.surcharge_rules.max_stopovers} stopovers are allowed, got {stops}"
            )

        distance = _non_negative(fare_input.distance_km, "distance_km")
        duration = _non_negative(fare_input.duration_minutes, "duration_minutes")
        hours = None
        if fare_input.booking_type == HOURLY:
            hours = _non_negative(fare_input.hourly_duration_hours, "hourly_duration_hours")
            if hours == 0:
                raise InvalidInput("hourly_duration_hours must be greater than zero for hourly bookings")
        return distance, duration, hours

    def calculate(self, fare_input: FareInput) -> PriceBreakdown:
        distance, duration, hours = self._validate(fare_input)
        rates = self.rate_table.lookup(fare_input.vehicle_type)

        base_price = round_money(rates.base_price)
        if fare_input.booking_type == HOURLY:
            # hourly bookings bill the committed duration, not the realized route
            distance_price = ZERO
            time_price = round_money(hours * rates.per_hour_rate)
        else:
            distance_price = round_money(distance * rates.per_km_rate)
            time_price = round_money(duration * rates.per_minute_rate)
        subtotal = base_price + distance_price + time_price

        context = SurchargeContext(
            scheduled_at=fare_input.scheduled_at,
            pickup_location=fare_input.pickup_location,
            destination_location=fare_input.destination_location,
            stopover_count=fare_input.stopover_count,
        )
        lines = []
        for rule in self.surcharge_rules.applicable_rules(context):
            if rule.kind == PERCENTAGE:
                amount = round_money(subtotal * rule.amount)
            elif rule.amount is None:
                amount = round_money(rates.night_surcharge_amount)
            else:
                amount = round_money(rule.amount)
            if amount > 0:
                lines.append(SurchargeLine(rule.name, rule.description, amount, rule.kind))

        surcharge_total = sum((line.amount for line in lines), ZERO)
        minimum = round_money(rates.minimum_fare)
        total_before_tax = max(subtotal + surcharge_total, minimum)
        tax = round_money(total_before_tax * self.tax_rate)

        return PriceBreakdown(
            vehicle_type=rates.vehicle_type,
            booking_type=fare_input.booking_type,
            base_price=base_price,
            distance_price=distance_price,
            time_price=time_price,
            surcharges=tuple(lines),
            subtotal=subtotal,
            total_before_tax=total_before_tax,
            tax=tax,
            total=total_before_tax + tax,
            minimum=minimum,
            estimated_only=bool(fare_input.estimated_only),
            currency=self.currency,
            tax_rate=self.tax_rate,
        )


def format_breakdown(breakdown: PriceBreakdown) -> List[str]:
    money = lambda value: format_money(value, breakdown.currency)  # noqa: E731
    lines = [f"Base fare: {money(breakdown.base_price)}"]
    if breakdown.distance_price > 0:
        lines.append(f"Distance: {money(breakdown.distance_price)}")
    if breakdown.time_price > 0:
        label = "Hours" if breakdown.booking_type == HOURLY else "Time"
        lines.append(f"{label}: {money(breakdown.time_price)}")
    for line in breakdown.surcharges:
        lines.append(f"{line.description}: {money(line.amount)}")
    if breakdown.minimum_applied:
        lines.append(f"Minimum fare applies: {money(breakdown.minimum)}")
    if breakdown.tax > 0:
        lines.append(f"VAT ({breakdown.tax_rate * 100:.0f}%): {money(breakdown.tax)}")
    lines.append(f"Total: {money(breakdown.total)}")
    if breakdown.estimated_only:
        lines.append("(Estimate - final price may vary)")
    return lines


def sanity_warnings(breakdown: PriceBreakdown, high_price=None) -> List[str]:
    if high_price is None:
        high_price = settings.PRICING.get("HIGH_PRICE_WARNING", 500)
    warnings = []
    if breakdown.total > to_decimal(high_price):
        warnings.append("Unusually high price, please check the route")
    if breakdown.estimated_only:
        warnings.append("Price is an estimate, the final price may differ")
    return warnings


def price_is_valid(breakdown: PriceBreakdown, max_total=None) -> bool:
    """True when the total is above zero and below the plausibility bound
    (``settings.PRICING["MAX_VALID_TOTAL"]``, default 1000)."""
    if max_total is None:
        max_total = settings.PRICING.get("MAX_VALID_TOTAL", 1000)
    return ZERO < breakdown.total < to_decimal(max_total)


def verify_total(breakdown: PriceBreakdown, client_total) -> PriceBreakdown:
    """Reject a client-held total that does not match the server-derived one."""
    try:
        received = round_money(client_total)
    except (TypeError, ValueError):
        raise InvalidInput(f"expected_total must be a number, got {client_total!r}") from None
    if received != breakdown.total:
        raise PriceMismatch(breakdown.total, received)
    return breakdown


def route_fields(
    origin: Location,
    destination: Location,
    waypoints: Sequence[Location] = (),
    scheduled_at: Optional[datetime] = None,
    estimate_source=None,
) -> Dict[str, object]:
    """FareInput fields taken from a route lookup, with their provenance."""
    if estimate_source is None:
        from .distance import get_estimate_source

        estimate_source = get_estimate_source()

    estimate = estimate_source.estimate(origin, destination, list(waypoints), scheduled_at)
    logger.debug(
        "Route estimate %s -> %s: %s km, %s min (traffic-aware=%s)",
        origin, destination, estimate.distance_km, estimate.duration_minutes, estimate.is_traffic_aware,
    )
    return {
        "distance_km": estimate.distance_km,
        "duration_minutes": estimate.duration_minutes,
        "pickup_location": origin,
        "destination_location": destination,
        "estimated_only": not estimate.is_traffic_aware,
    }


class PricingService:
    """Entry point used by the API: binds the calculator to the current
    configuration snapshot and to the configured estimate source."""

    @staticmethod
    def calculator(pricing=None) -> FareCalculator:
        if pricing is None:
            from .config import get_pricing_store

            pricing = get_pricing_store().snapshot()
        return pricing.calculator()

    @classmethod
    def calculate(cls, pricing=None, **fields) -> PriceBreakdown:
        return cls.calculator(pricing).calculate(FareInput(**fields))

    @classmethod
    def quote(
        cls,
        origin: Location,
        destination: Location,
        vehicle_type: str,
        scheduled_at: datetime,
        waypoints: Sequence[Location] = (),
        estimate_source=None,
        pricing=None,
        **fields,
    ) -> PriceBreakdown:
        """Look the route up, then price it."""
        fields.setdefault("stopover_count", len(waypoints))
        fields.update(route_fields(origin, destination, waypoints, scheduled_at, estimate_source))
        return cls.calculate(pricing=pricing, vehicle_type=vehicle_type, scheduled_at=scheduled_at, **fields)

    @classmethod
    def compare(cls, pricing=None, **fields) -> List[Tuple[str, PriceBreakdown]]:
        """Price the same trip for every configured vehicle type, cheapest first."""
        calculator = cls.calculator(pricing)
        results = []
        for vehicle_type in calculator.rate_table.vehicle_types():
            breakdown = calculator.calculate(FareInput(vehicle_type=vehicle_type, **fields))
            results.append((vehicle_type, breakdown))
        results.sort(key=lambda item: (item[1].total, item[0]))
        return results
