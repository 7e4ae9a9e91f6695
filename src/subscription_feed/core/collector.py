"""
Per-source collector selecting the items of one subscription that belong in the feed.
"""

from typing import Iterable, Optional

from subscription_feed.core.correction_cache import BaseSnapshot, CorrectionCache
from subscription_feed.core.fetcher import SourceFetcher
from subscription_feed.logger import get_logger
from subscription_feed.models import StreamItem, Subscription

logger = get_logger(__name__)


def restore_accurate_upload_date(item: StreamItem, snapshot: BaseSnapshot) -> StreamItem:
    """Replace an approximated upload date with the one recorded in the snapshot.

    Args:
        item: Item about to be added to the feed
        snapshot: Correction snapshot of the current run

    Returns:
        The item itself, or a copy carrying the recorded upload date
    """
    if not item.is_upload_date_approximated:
        return item

    accurate_upload_date = snapshot.lookup(item.ident)
    if accurate_upload_date is None:
        return item

    return item.with_upload_date(accurate_upload_date)


def select_new_items(items: Iterable[StreamItem], snapshot: BaseSnapshot) -> list[StreamItem]:
    """Walk a channel's items newest-first and keep the ones inside the cutoff.

    The walk stops at the first item older than the cutoff, since every
    following item is older too. An item without an upload date is kept, but
    unless it is a live stream nothing after it is looked at.

    Inclusion is decided on the date reported by the service; the restored date
    only affects ordering and the feed hash.

    Args:
        items: Channel items, newest first
        snapshot: Correction snapshot of the current run

    Returns:
        Selected items with upload dates restored where possible
    """
    selected = []
    cutoff = snapshot.cutoff

    for item in items:
        if item.upload_date is None:
            selected.append(restore_accurate_upload_date(item, snapshot))
            if not item.is_live_stream:
                break
        elif item.upload_date >= cutoff:
            selected.append(restore_accurate_upload_date(item, snapshot))
        else:
            break

    return selected


class SourceCollector:
    """Collects the feed items of one subscription."""

    def __init__(self, fetcher: SourceFetcher, correction_cache: CorrectionCache):
        """Initialize the collector.

        Args:
            fetcher: Source fetcher returning newest-first channel items
            correction_cache: Cache supplying cutoff and accurate upload dates
        """
        self.fetcher = fetcher
        self.correction_cache = correction_cache

    def collect(
        self,
        subscription: Subscription,
        snapshot: Optional[BaseSnapshot] = None,
    ) -> list[StreamItem]:
        """Collect the feed items of a subscription.

        A failing subscription contributes no items; the error is logged and
        never raised, so one broken channel cannot empty the whole feed.

        Args:
            subscription: Subscription to collect
            snapshot: Correction snapshot to use (default: the current one)

        Returns:
            Items of the subscription that belong in the feed
        """
        if snapshot is None:
            snapshot = self.correction_cache.snapshot()

        try:
            result = self.fetcher.fetch(subscription)
        except Exception as e:
            logger.exception(f"Unexpected error fetching {subscription.url}: {e}")
            return []

        if not result.success or result.channel is None:
            logger.warning(
                f"No items for {subscription.name or subscription.url}: {result.error or 'no channel'}"
            )
            return []

        channel = result.channel
        try:
            items = select_new_items(channel.related_items, snapshot)
        except Exception as e:
            logger.exception(f"Unexpected error selecting items of {subscription.url}: {e}")
            return []

        logger.debug(
            f"Selected {len(items)} of {len(channel.related_items)} items from "
            f"{channel.name or channel.url}"
        )
        return items
