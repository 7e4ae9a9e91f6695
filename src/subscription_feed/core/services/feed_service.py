"""
Facade for feed aggregation operations.

Provides one entry point tying together the subscription registry, the
aggregator and the refresh scheduler.
"""

from concurrent.futures import Future
from typing import Optional

from subscription_feed.config import get_config
from subscription_feed.core.aggregator import FeedAggregator, FeedListener
from subscription_feed.core.fetcher import SourceFetcher
from subscription_feed.core.scheduler import FeedRefreshScheduler
from subscription_feed.logger import get_logger
from subscription_feed.models import FeedInfo, Subscription
from subscription_feed.storage.registry import SubscriptionRegistry


class FeedService:
    """Facade for feed aggregation operations.

    Every change of the subscription list triggers a background refresh while
    the service is started; callers can also request runs explicitly and
    observe results through listeners.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        fetcher: Optional[SourceFetcher] = None,
        aggregator: Optional[FeedAggregator] = None,
        scheduler: Optional[FeedRefreshScheduler] = None,
        refresh_on_change: bool = True,
    ):
        """Initialize feed service.

        Args:
            registry: Registry supplying the subscriptions
            fetcher: Source fetcher (ignored if ``aggregator`` is given)
            aggregator: Pre-built aggregator
            scheduler: Pre-built refresh scheduler
            refresh_on_change: Refresh when the subscription list changes
        """
        from subscription_feed.core.factories import create_aggregator, create_scheduler

        self._registry = registry
        self._aggregator = aggregator or create_aggregator(fetcher=fetcher, registry=registry)
        if self._aggregator.registry is None:
            self._aggregator.registry = registry
        self._scheduler = scheduler or create_scheduler(self._aggregator)
        self._logger = get_logger(__name__)

        if refresh_on_change:
            registry.add_listener(self._on_subscriptions_changed)

    @property
    def aggregator(self) -> FeedAggregator:
        return self._aggregator

    @property
    def is_loading(self) -> bool:
        """Whether a feed is being computed right now."""
        return self._aggregator.is_loading

    @property
    def latest_feed_info(self) -> Optional[FeedInfo]:
        """The most recently computed feed, if any."""
        return self._aggregator.latest_feed_info

    def get_feed_info(self) -> FeedInfo:
        """Compute the feed for the current subscriptions in the calling thread.

        Returns:
            The new FeedInfo

        Raises:
            Exception: If the registry cannot list the subscriptions
        """
        return self._aggregator.refresh()

    def request_refresh(self) -> str:
        """Schedule a background refresh; the result goes to the listeners.

        Returns:
            Job ID of the scheduled refresh
        """
        return self._scheduler.trigger_refresh()

    def set_base_feed_info(self, base_feed_info: FeedInfo) -> Future:
        """Use an older feed to restore accurate upload dates.

        Args:
            base_feed_info: The older feed (e.g. from storage)

        Returns:
            Future completing once the correction cache was replaced
        """
        return self._aggregator.set_base_feed_info(base_feed_info)

    def add_listener(self, listener: FeedListener) -> None:
        self._aggregator.add_listener(listener)

    def remove_listener(self, listener: FeedListener) -> None:
        self._aggregator.remove_listener(listener)

    def start(self, interval_minutes: Optional[int] = None) -> None:
        """Start background refreshes.

        Args:
            interval_minutes: Periodic refresh interval (default from config)
        """
        self._scheduler.start()
        if get_config().scheduler.enabled:
            self._scheduler.add_refresh_job(interval_minutes=interval_minutes)
        self._scheduler.trigger_refresh()

    def shutdown(self, wait: bool = True) -> None:
        """Stop background refreshes.

        Args:
            wait: Wait for running jobs to complete
        """
        if self._scheduler.is_running():
            self._scheduler.stop(wait=wait)
        self._aggregator.shutdown(wait=wait)

    def _on_subscriptions_changed(self, subscriptions: list[Subscription]) -> None:
        if not self._scheduler.is_running():
            self._logger.debug("Subscriptions changed while stopped, not refreshing")
            return
        self._scheduler.trigger_refresh(subscriptions)


def create_feed_service(
    registry: SubscriptionRegistry,
    fetcher: Optional[SourceFetcher] = None,
) -> FeedService:
    """Create a FeedService instance.

    Args:
        registry: Registry supplying the subscriptions
        fetcher: Optional source fetcher

    Returns:
        Configured FeedService
    """
    return FeedService(registry=registry, fetcher=fetcher)
