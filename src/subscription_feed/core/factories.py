"""
Factory functions for creating core components with proper dependency injection.

All components are built from the global configuration unless overridden, and
are passed to each other explicitly; there is no process-wide engine instance.

Usage:
    from subscription_feed.core.factories import create_aggregator, create_registry

    registry = create_registry(db_manager)
    aggregator = create_aggregator(registry=registry)
    feed_info = aggregator.refresh()
"""

from datetime import datetime
from typing import Callable, Optional

from subscription_feed.config import get_config
from subscription_feed.core.aggregator import FeedAggregator
from subscription_feed.core.correction_cache import CorrectionCache
from subscription_feed.core.cutoff import CutoffPolicy
from subscription_feed.core.fetcher import FeedFetcher, SourceFetcher
from subscription_feed.core.parser import ItemParser
from subscription_feed.core.scheduler import FeedRefreshScheduler
from subscription_feed.storage.database import DatabaseManager
from subscription_feed.storage.registry import DatabaseSubscriptionRegistry, SubscriptionRegistry


def create_fetcher(
    timeout_seconds: Optional[int] = None,
    max_retries: Optional[int] = None,
) -> FeedFetcher:
    """Create a configured FeedFetcher instance.

    Args:
        timeout_seconds: Override default timeout
        max_retries: Override default retry count

    Returns:
        Configured FeedFetcher instance
    """
    config = get_config()
    return FeedFetcher(
        timeout_seconds=timeout_seconds or config.fetcher.timeout_seconds,
        max_retries=max_retries if max_retries is not None else config.fetcher.max_retries,
        parser=ItemParser(),
    )


def create_correction_cache(
    cutoff_weeks: Optional[int] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> CorrectionCache:
    """Create an empty CorrectionCache.

    Args:
        cutoff_weeks: Override the cutoff window in weeks
        clock: Override the clock used for the cutoff

    Returns:
        CorrectionCache instance
    """
    return CorrectionCache(CutoffPolicy(weeks=cutoff_weeks, clock=clock))


def create_aggregator(
    fetcher: Optional[SourceFetcher] = None,
    registry: Optional[SubscriptionRegistry] = None,
    correction_cache: Optional[CorrectionCache] = None,
    parallel_fetch: Optional[bool] = None,
) -> FeedAggregator:
    """Create a configured FeedAggregator instance.

    Args:
        fetcher: Source fetcher (default: a configured FeedFetcher)
        registry: Subscription registry used by ``refresh``
        correction_cache: Correction cache (default: a new empty one)
        parallel_fetch: Override concurrent fetching

    Returns:
        Configured FeedAggregator instance
    """
    config = get_config()
    return FeedAggregator(
        fetcher=fetcher or create_fetcher(),
        correction_cache=correction_cache or create_correction_cache(),
        registry=registry,
        parallel_fetch=parallel_fetch,
        max_workers=config.aggregator.max_workers,
    )


def create_scheduler(
    aggregator: FeedAggregator,
    max_workers: Optional[int] = None,
) -> FeedRefreshScheduler:
    """Create a configured FeedRefreshScheduler instance.

    Args:
        aggregator: Aggregator whose runs are scheduled
        max_workers: Override maximum worker threads

    Returns:
        Configured FeedRefreshScheduler instance
    """
    config = get_config()
    return FeedRefreshScheduler(
        aggregator=aggregator,
        max_workers=max_workers or config.scheduler.max_workers,
    )


def create_registry(db_manager: Optional[DatabaseManager] = None) -> DatabaseSubscriptionRegistry:
    """Create a subscription registry on top of the subscription database.

    Args:
        db_manager: Database manager (default: one using the global config)

    Returns:
        DatabaseSubscriptionRegistry instance
    """
    return DatabaseSubscriptionRegistry(db_manager or DatabaseManager())
