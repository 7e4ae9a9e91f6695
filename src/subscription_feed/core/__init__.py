"""Core business logic modules for subscription-feed.

External code (scripts, applications) uses the service facade and the result
types exported here; the building blocks live in their own modules:

    from subscription_feed.core import FeedService, create_feed_service
    from subscription_feed.core.aggregator import FeedAggregator

Available Services:
    - FeedService: subscription feed aggregation with background refreshes
"""

# Service Facades
from subscription_feed.core.services import FeedService, create_feed_service

# Result and error types (allowed for type hints and return values)
from subscription_feed.core.correction_cache import BaseSnapshot, InvalidBaseFeedError
from subscription_feed.core.fetcher import FetchResult, FetchStats
from subscription_feed.core.scheduler import JobStatus, SchedulerStats

__all__ = [
    # Service Facades (USE THESE)
    "FeedService",
    "create_feed_service",
    # Result types (for type hints)
    "BaseSnapshot",
    "FetchResult",
    "FetchStats",
    "JobStatus",
    "SchedulerStats",
    # Errors
    "InvalidBaseFeedError",
]


# Building blocks that have a facade; importing them from here is a mistake
_forbidden_imports = {
    "FeedAggregator": "Use FeedService or subscription_feed.core.aggregator",
    "FeedFetcher": "Use subscription_feed.core.fetcher",
    "FeedRefreshScheduler": "Use FeedService.start/request_refresh",
}


def __getattr__(name: str):
    """Intercept facade-bypassing imports and provide helpful error messages."""
    if name in _forbidden_imports:
        raise ImportError(
            f"'{name}' is not exported from subscription_feed.core. "
            f"{_forbidden_imports[name]}."
        )
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
