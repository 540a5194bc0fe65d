import enum
import logging
from typing import Callable, Optional

from .exceptions import PricingError
from .pricing import PriceBreakdown

logger = logging.getLogger(__name__)


class PriceState(str, enum.Enum):
    IDLE = "idle"
    CALCULATING = "calculating"
    READY = "ready"
    FAILED = "failed"

    def __str__(self):
        return self.value


class Trigger(str, enum.Enum):
    ROUTE = "route"
    VEHICLE_TYPE = "vehicle_type"
    SCHEDULE = "schedule"
    STOPOVERS = "stopovers"

    def __str__(self):
        return self.value


class RecalculationTracker:
    """Keeps the price shown for a booking in step with its latest inputs.

    Every trigger gets a sequence number. Only the result belonging to the
    highest number issued so far is applied; anything older that finishes
    later is dropped, whatever order the results arrive in. A failure clears
    the price so a stale amount is never shown next to an error.
    """

    def __init__(self):
        self._sequence = 0
        self.state = PriceState.IDLE
        self.breakdown: Optional[PriceBreakdown] = None
        self.error: Optional[PricingError] = None
        self.trigger: Optional[Trigger] = None

    @property
    def sequence(self) -> int:
        return self._sequence

    def begin(self, trigger: Trigger) -> int:
        self._sequence += 1
        self.trigger = Trigger(trigger)
        self.state = PriceState.CALCULATING
        return self._sequence

    def is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def complete(self, sequence: int, breakdown: PriceBreakdown) -> bool:
        if not self.is_current(sequence):
            logger.debug("Discarding price for superseded calculation %s (latest %s)", sequence, self._sequence)
            return False
        self.state = PriceState.READY
        self.breakdown = breakdown
        self.error = None
        return True

    def fail(self, sequence: int, error: PricingError) -> bool:
        if not self.is_current(sequence):
            logger.debug("Discarding error for superseded calculation %s (latest %s)", sequence, self._sequence)
            return False
        self.state = PriceState.FAILED
        self.breakdown = None
        self.error = error
        return True

    def run(self, trigger: Trigger, compute: Callable[[], PriceBreakdown]) -> bool:
        sequence = self.begin(trigger)
        try:
            breakdown = compute()
        except PricingError as exc:
            if not exc.retryable:
                logger.error("Price calculation failed: %s", exc)
            return self.fail(sequence, exc)
        except Exception:
            logger.exception("Price calculation crashed")
            self.fail(sequence, PricingError("Price could not be calculated"))
            raise
        return self.complete(sequence, breakdown)
