"""Pricing configuration snapshots.

A ``PricingConfig`` is an immutable value: rate table, surcharge rule set, tax
rate and currency. Admin edits never touch a snapshot that is in use. Every
process compares its snapshot with a version read from the pricing tables
(row counts and latest ``updated_at``), so an edit made through any worker is
picked up by the next request everywhere; the new snapshot then replaces the
old reference.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count, Max

from .exceptions import ConfigurationError
from .pricing import FareCalculator
from .rates import RateTable, VehicleRates
from .surcharges import SurchargeRuleSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricingConfig:
    rate_table: RateTable
    surcharge_rules: SurchargeRuleSet
    tax_rate: Decimal
    currency: str
    version: Tuple = ()

    def calculator(self) -> FareCalculator:
        return FareCalculator(self.rate_table, self.surcharge_rules, tax_rate=self.tax_rate, currency=self.currency)


def surcharge_config_from_settings(pricing: Optional[Dict] = None) -> Dict:
    pricing = pricing if pricing is not None else settings.PRICING
    return {
        "rules": {name: dict(rule) for name, rule in pricing.get("SURCHARGES", {}).items()},
        "rush_hour_windows": pricing.get("RUSH_HOUR_WINDOWS"),
        "night_window": pricing.get("NIGHT_WINDOW"),
        "airport_keywords": list(pricing.get("AIRPORT_KEYWORDS", ())),
        "airports": list(pricing.get("AIRPORTS", ())),
        "max_stopovers": pricing.get("MAX_STOPOVERS"),
        "time_zone": pricing.get("TIME_ZONE"),
    }


def build_pricing_config(rate_config: Dict, surcharge_config: Dict, pricing: Optional[Dict] = None, version: Tuple = ()) -> PricingConfig:
    pricing = pricing if pricing is not None else settings.PRICING
    rate_table = RateTable.from_config(rate_config)
    if not len(rate_table):
        raise ConfigurationError("No vehicle rates configured")
    rules = SurchargeRuleSet.from_config(surcharge_config)
    config = PricingConfig(
        rate_table=rate_table,
        surcharge_rules=rules,
        tax_rate=Decimal(str(pricing.get("TAX_RATE", "0.21"))),
        currency=pricing.get("CURRENCY", "EUR"),
        version=version,
    )
    # validates tax rate and currency
    config.calculator()
    return config


class DatabasePricingStore:
    """Rate table and surcharge configuration backed by the admin-editable
    ``VehicleRate``, ``PriceRule`` and ``AirportZone`` records.

    Without any active ``VehicleRate`` rows the defaults from
    ``settings.PRICING`` are used; ``PriceRule`` rows override the default rule
    of the same name; ``AirportZone`` rows are added to the configured airports.
    """

    def __init__(self):
        self._snapshot: Optional[PricingConfig] = None

    @staticmethod
    def _version() -> Tuple:
        from ..models import AirportZone, PriceRule, VehicleRate

        # a delete lowers the count, any save moves updated_at
        version = []
        for model in (VehicleRate, PriceRule, AirportZone):
            state = model.objects.aggregate(rows=Count('id'), changed=Max('updated_at'))
            version.append((state['rows'], state['changed']))
        return tuple(version)

    def _load_rates(self) -> Dict:
        from ..models import VehicleRate

        rows = list(VehicleRate.objects.filter(is_active=True))
        if not rows:
            logger.info("No vehicle rates in the database, using settings.PRICING defaults")
            return dict(settings.PRICING.get("RATE_TABLE", {}))
        return {row.vehicle_type: row.as_rates() for row in rows}

    def _load_surcharges(self) -> Dict:
        from ..models import AirportZone, PriceRule

        config = surcharge_config_from_settings()
        for row in PriceRule.objects.all():
            config["rules"][row.name] = row.as_definition()
        config["airports"].extend(zone.as_definition() for zone in AirportZone.objects.filter(is_active=True))
        return config

    def load(self, version: Tuple = ()) -> PricingConfig:
        try:
            rate_config = self._load_rates()
            surcharge_config = self._load_surcharges()
        except DatabaseError as exc:
            logger.exception("Could not read pricing configuration from the database")
            raise ConfigurationError(f"Pricing configuration could not be loaded: {exc}") from exc
        try:
            return build_pricing_config(rate_config, surcharge_config, version=version)
        except ConfigurationError:
            logger.error("Pricing configuration is invalid", exc_info=True)
            raise

    def snapshot(self) -> PricingConfig:
        try:
            version = self._version()
        except DatabaseError as exc:
            logger.exception("Could not read the pricing configuration version")
            raise ConfigurationError(f"Pricing configuration could not be loaded: {exc}") from exc
        current = self._snapshot
        if current is None or current.version != version:
            if current is not None:
                logger.info("Pricing configuration changed, building a new snapshot")
            current = self.load(version)
            self._snapshot = current
        return current

    def get(self, vehicle_type: str) -> VehicleRates:
        return self.snapshot().rate_table.lookup(vehicle_type)

    def current(self) -> SurchargeRuleSet:
        return self.snapshot().surcharge_rules

    def invalidate(self):
        """Drop this process's snapshot; other processes notice the change through the version."""
        self._snapshot = None


_store: Optional[DatabasePricingStore] = None


def get_pricing_store() -> DatabasePricingStore:
    global _store
    if _store is None:
        _store = DatabasePricingStore()
    return _store
