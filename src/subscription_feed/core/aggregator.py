"""
Aggregation of all subscriptions into one feed.

Every run collects the subscriptions against a single correction snapshot,
merges their items, sorts them newest-first and fingerprints the result:

    1. Take the current correction snapshot (cache + cutoff)
    2. Collect every subscription, sequentially or on a thread pool
    3. Sort by upload date, newest first; dateless items go before dated ones
    4. Drop repeated identities, keeping the first
    5. Fold the identities into the content hash
"""

import hashlib
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from functools import cmp_to_key
from typing import Callable, Iterable, Optional, Sequence

from subscription_feed.config import get_config
from subscription_feed.core.collector import SourceCollector
from subscription_feed.core.correction_cache import BaseSnapshot, CorrectionCache
from subscription_feed.core.fetcher import SourceFetcher
from subscription_feed.logger import get_logger
from subscription_feed.models import FeedInfo, StreamItem, Subscription
from subscription_feed.storage.registry import SubscriptionRegistry

logger = get_logger(__name__)

FeedListener = Callable[[FeedInfo], None]

_INT64_RANGE = 1 << 64
_INT64_MIN = -(1 << 63)


def identity_hash(ident: str) -> int:
    """Stable 32-bit signed hash of an item identity.

    Unlike the builtin ``hash`` the value does not change between processes,
    so feed hashes stay comparable across restarts.
    """
    digest = hashlib.sha256(ident.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big", signed=True)


def _wrap_int64(value: int) -> int:
    return (value - _INT64_MIN) % _INT64_RANGE + _INT64_MIN


def calculate_feed_hash(items: Iterable[StreamItem]) -> int:
    """Fold item identities into an order-sensitive 64-bit fingerprint.

    Args:
        items: Sorted feed items

    Returns:
        ``31 * acc + identity_hash(ident)`` over the items, starting at 1
    """
    feed_hash = 1
    for item in items:
        feed_hash = _wrap_int64(31 * feed_hash + identity_hash(item.ident))
    return feed_hash


def compare_upload_dates(item1: StreamItem, item2: StreamItem) -> int:
    """Comparator ordering items newest-first.

    An item without an upload date is treated as newer than any dated item
    (it is usually one that was just published); two dateless items rank equal.
    Old dateless entries of non-live channels float to the top as well.
    """
    date1 = item1.upload_date
    date2 = item2.upload_date

    if date1 is not None and date2 is not None:
        if date1 == date2:
            return 0
        return -1 if date1 > date2 else 1
    elif date1 is not None:
        return 1
    elif date2 is not None:
        return -1
    return 0


def sort_items(items: Iterable[StreamItem]) -> list[StreamItem]:
    """Sort items newest-first; equal-ranked items keep their relative order."""
    return sorted(items, key=cmp_to_key(compare_upload_dates))


def drop_duplicate_items(items: Iterable[StreamItem]) -> list[StreamItem]:
    """Keep only the first item of every identity."""
    seen: set[str] = set()
    unique = []
    for item in items:
        if item.ident in seen:
            continue
        seen.add(item.ident)
        unique.append(item)
    return unique


class FeedAggregator:
    """Builds FeedInfo values from subscriptions.

    The aggregator owns the correction cache and is shared by reference with
    whoever needs the feed. ``run`` may be called from any thread; overlapping
    runs are allowed and each one returns an independent FeedInfo.
    ``latest_feed_info`` holds the result of the most recently started run that
    has finished; a run overtaken by a later one still notifies listeners.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        correction_cache: Optional[CorrectionCache] = None,
        registry: Optional[SubscriptionRegistry] = None,
        parallel_fetch: Optional[bool] = None,
        max_workers: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the aggregator.

        Args:
            fetcher: Source fetcher used for every subscription
            correction_cache: Cache of accurate upload dates and the cutoff
            registry: Registry supplying subscriptions for ``refresh``
            parallel_fetch: Fetch subscriptions concurrently (default from config)
            max_workers: Maximum concurrent fetches (default from config)
            clock: Callable returning the current time, used for ``generated_at``
        """
        config = get_config().aggregator

        self.correction_cache = correction_cache or CorrectionCache()
        self.collector = SourceCollector(fetcher, self.correction_cache)
        self.registry = registry
        self.parallel_fetch = config.parallel_fetch if parallel_fetch is None else parallel_fetch
        self.max_workers = max_workers or config.max_workers
        self.clock = clock or datetime.now

        self.latest_feed_info: Optional[FeedInfo] = None

        self._active_runs = 0
        self._run_sequence = 0
        self._published_sequence = 0
        self._active_runs_lock = threading.Lock()
        self._listeners: list[FeedListener] = []
        self._listeners_lock = threading.Lock()
        self._base_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="feed-base")

    @property
    def is_loading(self) -> bool:
        """Whether a run is currently in progress. Advisory only."""
        return self._active_runs > 0

    def refresh(self) -> FeedInfo:
        """Load the current subscriptions from the registry and run.

        Returns:
            The new FeedInfo

        Raises:
            RuntimeError: If no registry is configured
            Exception: Whatever the registry raises when it cannot list subscriptions
        """
        if self.registry is None:
            raise RuntimeError("No subscription registry configured")

        self._begin_loading()
        try:
            subscriptions = self.registry.get_subscriptions()
            return self.run(subscriptions)
        finally:
            self._end_loading()

    def run(self, subscriptions: Sequence[Subscription]) -> FeedInfo:
        """Aggregate the items of all subscriptions.

        Args:
            subscriptions: Subscriptions to aggregate (a full replacement of
                any previous set)

        Returns:
            The new FeedInfo
        """
        subscriptions = list(subscriptions)
        logger.debug(f"Loading feed for {len(subscriptions)} subscriptions")

        sequence = self._begin_loading()
        try:
            feed_info = self._load_feed_info(subscriptions)
        finally:
            self._end_loading()

        self._publish(feed_info, sequence)
        self._notify(feed_info)
        return feed_info

    def _load_feed_info(self, subscriptions: list[Subscription]) -> FeedInfo:
        start_time = time.time()
        snapshot = self.correction_cache.snapshot()

        per_subscription = self._collect_all(subscriptions, snapshot)

        merged: list[StreamItem] = []
        for items in per_subscription:
            merged.extend(items)

        items = drop_duplicate_items(sort_items(merged))
        if len(items) < len(merged):
            logger.debug(f"Dropped {len(merged) - len(items)} duplicate items")

        feed_info = FeedInfo(
            generated_at=self.clock(),
            items=tuple(items),
            content_hash=calculate_feed_hash(items),
        )

        logger.info(
            f"Feed built from {len(subscriptions)} subscriptions: {len(items)} items "
            f"in {time.time() - start_time:.2f}s (hash {feed_info.content_hash})"
        )
        return feed_info

    def _collect_all(
        self,
        subscriptions: list[Subscription],
        snapshot: BaseSnapshot,
    ) -> list[list[StreamItem]]:
        """Collect every subscription; results are in subscription order."""
        if not self.parallel_fetch or len(subscriptions) <= 1:
            return [self.collector.collect(subscription, snapshot) for subscription in subscriptions]

        workers = min(self.max_workers, len(subscriptions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed-fetch") as pool:
            return list(pool.map(lambda s: self.collector.collect(s, snapshot), subscriptions))

    def set_base_feed_info(self, base_feed_info: FeedInfo) -> Future:
        """Replace the correction cache from an older feed in the background.

        Services report approximated upload dates that get less accurate the
        older an item is; an older feed (e.g. loaded from storage) still holds
        the accurate ones. Runs in progress keep using their snapshot.

        Args:
            base_feed_info: The older feed

        Returns:
            Future resolving to the new BaseSnapshot; it raises
            InvalidBaseFeedError if the feed is malformed
        """
        future = self._base_executor.submit(
            self.correction_cache.replace_from_feed_info, base_feed_info
        )
        future.add_done_callback(self._log_base_failure)
        return future

    @staticmethod
    def _log_base_failure(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Could not build correction cache: {error}")

    def add_listener(self, listener: FeedListener) -> None:
        """Register a callback receiving every completed FeedInfo."""
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: FeedListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker used for base replacement."""
        self._base_executor.shutdown(wait=wait)

    def _notify(self, feed_info: FeedInfo) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(feed_info)
            except Exception as e:
                logger.exception(f"Feed listener failed: {e}")

    def _publish(self, feed_info: FeedInfo, sequence: int) -> None:
        with self._active_runs_lock:
            if sequence < self._published_sequence:
                logger.debug("Not publishing feed of a run overtaken by a newer one")
                return
            self._published_sequence = sequence
            self.latest_feed_info = feed_info

    def _begin_loading(self) -> int:
        with self._active_runs_lock:
            self._active_runs += 1
            self._run_sequence += 1
            return self._run_sequence

    def _end_loading(self) -> None:
        with self._active_runs_lock:
            self._active_runs -= 1
