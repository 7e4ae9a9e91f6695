"""
Aggregated feed model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from subscription_feed.models.stream_item import StreamItem


class FeedInfo(BaseModel):
    """One computed feed: sorted items plus a change-detection hash.

    Instances are immutable and superseded as a whole by the next run. They can
    be stored with ``model_dump_json`` and reloaded with ``model_validate_json``
    to seed the next process's correction cache.
    """

    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(..., description="When the feed was computed")
    items: tuple[StreamItem, ...] = Field(default=(), description="Items, newest first")
    content_hash: int = Field(..., description="Order-sensitive fingerprint of the item identities")

    @property
    def is_empty(self) -> bool:
        return not self.items

    def has_changed_since(self, other: Optional["FeedInfo"]) -> bool:
        """Check whether this feed differs from an earlier one.

        Args:
            other: Previously computed feed, or None if there is none

        Returns:
            True if there is no previous feed or the hashes differ
        """
        return other is None or other.content_hash != self.content_hash

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return (
            f"<FeedInfo(generated_at={self.generated_at}, items={len(self.items)}, "
            f"content_hash={self.content_hash})>"
        )
