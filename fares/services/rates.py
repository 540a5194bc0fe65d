from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from .exceptions import ConfigurationError, UnknownVehicleType
from .money import to_decimal

RATE_FIELDS = (
    "base_price",
    "per_km_rate",
    "per_minute_rate",
    "per_hour_rate",
    "night_surcharge_amount",
    "minimum_fare",
)


def normalize_vehicle_type(vehicle_type: str) -> str:
    return (vehicle_type or "").strip().lower()


@dataclass(frozen=True)
class VehicleRates:
    """Rates for one vehicle class. All amounts are Decimal euros."""

    vehicle_type: str
    base_price: Decimal
    per_km_rate: Decimal
    per_minute_rate: Decimal
    per_hour_rate: Decimal
    night_surcharge_amount: Decimal
    minimum_fare: Decimal

    @classmethod
    def from_mapping(cls, vehicle_type: str, data: Mapping) -> "VehicleRates":
        key = normalize_vehicle_type(vehicle_type)
        if not key:
            raise ConfigurationError("Rate table entry without a vehicle type")

        values = {}
        for field in RATE_FIELDS:
            raw = data.get(field, 0)
            try:
                amount = to_decimal(raw)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{key}.{field} is not a number: {raw!r}") from exc
            if amount < 0:
                raise ConfigurationError(f"{key}.{field} must not be negative (got {amount})")
            values[field] = amount

        if values["minimum_fare"] < values["base_price"]:
            raise ConfigurationError(
                f"{key}: minimum_fare ({values['minimum_fare']}) is lower than base_price ({values['base_price']})"
            )
        return cls(vehicle_type=key, **values)

    def as_dict(self) -> Dict[str, str]:
        out = {"vehicle_type": self.vehicle_type}
        out.update({field: str(getattr(self, field)) for field in RATE_FIELDS})
        return out


class RateTable:
    """Immutable mapping of vehicle type -> VehicleRates.

    A missing vehicle type is an error: pricing must be blocked rather than
    produce a zero fare.
    """

    def __init__(self, entries: Iterable[VehicleRates]):
        table = {}
        for entry in entries:
            if entry.vehicle_type in table:
                raise ConfigurationError(f"Duplicate rate table entry for {entry.vehicle_type!r}")
            table[entry.vehicle_type] = entry
        self._entries = table

    @classmethod
    def from_config(cls, config: Mapping[str, Mapping]) -> "RateTable":
        if not isinstance(config, Mapping):
            raise ConfigurationError("Rate table configuration must be a mapping of vehicle type to rates")
        return cls(VehicleRates.from_mapping(vt, rates) for vt, rates in config.items())

    def lookup(self, vehicle_type: str) -> VehicleRates:
        try:
            return self._entries[normalize_vehicle_type(vehicle_type)]
        except KeyError:
            raise UnknownVehicleType(vehicle_type) from None

    def vehicle_types(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, vehicle_type) -> bool:
        return normalize_vehicle_type(vehicle_type) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
