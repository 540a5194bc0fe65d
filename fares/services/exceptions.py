class PricingError(Exception):
    """Base class for every error the fare engine reports to its callers.

    ``retryable`` tells the caller whether repeating the same request may
    succeed (e.g. a route lookup that timed out) or whether the failure points
    at bad input or a deployment/configuration defect.
    """

    retryable = False
    code = "pricing_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class UnknownVehicleType(PricingError):
    code = "unknown_vehicle_type"

    def __init__(self, vehicle_type: str):
        super().__init__(f"No rate table configured for vehicle type {vehicle_type!r}")
        self.vehicle_type = vehicle_type


class InvalidInput(PricingError):
    code = "invalid_input"


class ConfigurationError(PricingError):
    code = "configuration_error"


class EstimateUnavailable(PricingError):
    retryable = True
    code = "estimate_unavailable"


class PriceMismatch(PricingError):
    """Raised when a client-held total does not match the server-derived one."""

    code = "price_mismatch"

    def __init__(self, expected, received):
        super().__init__(f"Price changed: expected {expected}, got {received}")
        self.expected = expected
        self.received = received
