"""Fare engine: rate tables, surcharges and the fare calculator."""

from .exceptions import (
    ConfigurationError,
    EstimateUnavailable,
    InvalidInput,
    PriceMismatch,
    PricingError,
    UnknownVehicleType,
)
from .pricing import FareCalculator, FareInput, PriceBreakdown, PricingService
from .rates import RateTable, VehicleRates
from .surcharges import SurchargeContext, SurchargeRuleSet

__all__ = [
    'ConfigurationError',
    'EstimateUnavailable',
    'InvalidInput',
    'PriceMismatch',
    'PricingError',
    'UnknownVehicleType',
    'FareCalculator',
    'FareInput',
    'PriceBreakdown',
    'PricingService',
    'RateTable',
    'VehicleRates',
    'SurchargeContext',
    'SurchargeRuleSet',
]
