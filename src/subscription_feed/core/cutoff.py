"""
Rolling cutoff below which items are left out of the feed.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from subscription_feed.config import get_config

DEFAULT_CUTOFF_WEEKS = 4


def compute_cutoff(now: Optional[datetime] = None, weeks: int = DEFAULT_CUTOFF_WEEKS) -> datetime:
    """Compute the oldest upload date an item may have to be part of the feed.

    Args:
        now: Reference time (defaults to the current local time)
        weeks: Length of the window in weeks

    Returns:
        Midnight of the day ``weeks`` weeks before ``now``
    """
    if now is None:
        now = datetime.now()

    oldest_upload_date = now - timedelta(weeks=weeks)
    return oldest_upload_date.replace(hour=0, minute=0, second=0, microsecond=0)


class CutoffPolicy:
    """Computes the cutoff from a clock and the configured window."""

    def __init__(
        self,
        weeks: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the policy.

        Args:
            weeks: Window length in weeks (default from config)
            clock: Callable returning the current time (default ``datetime.now``)
        """
        self.weeks = weeks or get_config().aggregator.cutoff_weeks
        self.clock = clock or datetime.now

    def compute(self) -> datetime:
        return compute_cutoff(self.clock(), self.weeks)
