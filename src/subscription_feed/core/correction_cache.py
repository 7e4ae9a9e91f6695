"""
Cache of precise upload dates taken from a previously computed feed.

Some services only report approximated upload dates ("2 weeks ago") that get
less accurate the older an item is. A feed computed earlier, when the item was
new, still holds the precise value. The cache maps item identities to those
values and is used to restore them.

The cache contents and the cutoff are published together as one immutable
``BaseSnapshot``. Replacing the base builds a new snapshot off to the side and
swaps the reference in a single assignment, so readers see either the old
snapshot or the new one in full.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from subscription_feed.core.cutoff import CutoffPolicy
from subscription_feed.logger import get_logger
from subscription_feed.models import FeedInfo, StreamItem

logger = get_logger(__name__)


class InvalidBaseFeedError(ValueError):
    """Raised when the feed supplied as correction base is malformed."""


@dataclass(frozen=True)
class BaseSnapshot:
    """Corrections and cutoff as observed by one aggregation run."""

    cutoff: datetime
    corrections: Mapping[str, datetime] = field(default_factory=lambda: MappingProxyType({}))

    def lookup(self, ident: str) -> Optional[datetime]:
        """Get the precise upload date recorded for an item identity."""
        return self.corrections.get(ident)

    def __len__(self) -> int:
        return len(self.corrections)


class CorrectionCache:
    """Atomically replaceable identity -> upload date mapping plus cutoff."""

    def __init__(self, cutoff_policy: Optional[CutoffPolicy] = None):
        """Initialize an empty cache.

        Args:
            cutoff_policy: Policy used to (re)compute the cutoff
        """
        self.cutoff_policy = cutoff_policy or CutoffPolicy()
        self._snapshot = BaseSnapshot(cutoff=self.cutoff_policy.compute())

    def snapshot(self) -> BaseSnapshot:
        """Get the currently published snapshot."""
        return self._snapshot

    @property
    def cutoff(self) -> datetime:
        return self._snapshot.cutoff

    def lookup(self, ident: str) -> Optional[datetime]:
        """Get the precise upload date recorded for an item identity.

        Args:
            ident: Item identity (``StreamItem.ident``)

        Returns:
            Recorded upload date, or None if the item is unknown
        """
        return self._snapshot.lookup(ident)

    def replace(self, base_items: Iterable[StreamItem]) -> BaseSnapshot:
        """Replace the cache with the upload dates of ``base_items``.

        The cutoff is recomputed as part of the replacement. Items without an
        upload date carry nothing to restore and are skipped.

        Args:
            base_items: Items of a previously computed feed

        Returns:
            The newly published snapshot

        Raises:
            InvalidBaseFeedError: If an element is not a StreamItem or its
                upload date is not a datetime
        """
        corrections: dict[str, datetime] = {}

        for position, item in enumerate(base_items):
            if not isinstance(item, StreamItem):
                raise InvalidBaseFeedError(
                    f"Base item #{position} is {type(item).__name__}, expected StreamItem"
                )
            if item.upload_date is None:
                continue
            if not isinstance(item.upload_date, datetime):
                raise InvalidBaseFeedError(
                    f"Base item #{position} has upload date of type "
                    f"{type(item.upload_date).__name__}"
                )
            corrections[item.ident] = item.upload_date

        snapshot = BaseSnapshot(
            cutoff=self.cutoff_policy.compute(),
            corrections=MappingProxyType(corrections),
        )
        self._snapshot = snapshot

        logger.debug(
            f"Correction cache replaced: {len(snapshot)} upload dates, cutoff {snapshot.cutoff}"
        )
        return snapshot

    def replace_from_feed_info(self, base_feed_info: FeedInfo) -> BaseSnapshot:
        """Replace the cache from a previously computed feed (e.g. loaded from storage).

        Args:
            base_feed_info: The older feed

        Returns:
            The newly published snapshot

        Raises:
            InvalidBaseFeedError: If ``base_feed_info`` is not a FeedInfo
        """
        if not isinstance(base_feed_info, FeedInfo):
            raise InvalidBaseFeedError(
                f"Base feed must be a FeedInfo, got {type(base_feed_info).__name__}"
            )
        return self.replace(base_feed_info.items)
