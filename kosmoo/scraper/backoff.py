"""
Exponential backoff between failed scrape cycles.
"""
from kosmoo.common.logging_config import get_logger

logger = get_logger(__name__)


class BackoffState:
    """
    Sleep duration applied after a failed cycle.

    Every consecutive failure doubles the delay up to ``max_delay``; a
    successful cycle resets it to ``initial_delay``. Owned by the scrape
    orchestrator and only touched from its thread.
    """

    def __init__(
        self,
        initial_delay: float = 1.0,
        max_delay: float = 3600.0,
        multiplier: float = 2.0
    ):
        """
        Args:
            initial_delay: floor in seconds (default: 1.0)
            max_delay: ceiling in seconds (default: 3600 = 1 hour)
            multiplier: growth factor per failure (default: 2.0)
        """
        if initial_delay <= 0 or max_delay < initial_delay or multiplier < 1:
            raise ValueError(
                f"invalid backoff: initial={initial_delay}, max={max_delay}, "
                f"multiplier={multiplier}"
            )
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.consecutive_failures = 0

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay for the *attempt*-th consecutive failure (0-indexed), capped.
        """
        return min(
            self.initial_delay * (self.multiplier ** attempt),
            self.max_delay
        )

    @property
    def current(self) -> float:
        """Delay the next failure will sleep for."""
        return self.calculate_delay(self.consecutive_failures)

    def record_failure(self) -> float:
        """
        Register a failed cycle.

        Returns:
            Seconds to sleep before the next attempt
        """
        delay = self.current
        self.consecutive_failures += 1
        return delay

    def record_success(self) -> None:
        if self.consecutive_failures:
            logger.info(
                f"Scrape recovered after {self.consecutive_failures} failed attempt(s), "
                f"backoff reset to {self.initial_delay}s"
            )
        self.consecutive_failures = 0
