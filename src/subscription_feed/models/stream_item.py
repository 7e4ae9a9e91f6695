"""
Stream item and channel models.

A stream item is one upload of a followed channel. Items are immutable; timestamp
correction produces a new item via ``with_upload_date``.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StreamType(str, Enum):
    """Kind of content an item points at."""

    NONE = "none"
    VIDEO_STREAM = "video_stream"
    AUDIO_STREAM = "audio_stream"
    LIVE_STREAM = "live_stream"
    AUDIO_LIVE_STREAM = "audio_live_stream"


class StreamItem(BaseModel):
    """One content entry belonging to a channel."""

    model_config = ConfigDict(frozen=True)

    service_id: int = Field(..., ge=0, description="Id of the service the item comes from")
    url: str = Field(..., min_length=1, max_length=2048, description="Canonical item URL")
    name: Optional[str] = Field(None, max_length=1000, description="Item title")
    stream_type: StreamType = Field(default=StreamType.VIDEO_STREAM)
    upload_date: Optional[datetime] = Field(None, description="Upload time, None if unknown")

    uploader_name: Optional[str] = Field(None, max_length=1000)
    uploader_url: Optional[str] = Field(None, max_length=2048)
    thumbnail_url: Optional[str] = Field(None, max_length=2048)
    duration: int = Field(default=-1, ge=-1, description="Length in seconds, -1 if unknown")
    view_count: int = Field(default=-1, ge=-1, description="View count, -1 if unknown")

    @field_validator("upload_date")
    @classmethod
    def to_local_naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store upload dates as naive local time so all of them compare."""
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @property
    def ident(self) -> str:
        """Identifier used to keep track of the item across runs."""
        return f"{self.service_id}{self.url}"

    @property
    def is_live_stream(self) -> bool:
        return self.stream_type == StreamType.LIVE_STREAM

    @property
    def is_upload_date_approximated(self) -> bool:
        """Whether the upload date is missing or looks rounded by the service.

        Services that only expose relative dates ("3 weeks ago") yield values
        with zeroed seconds and microseconds.
        """
        upload_date = self.upload_date
        return upload_date is None or (upload_date.second == 0 and upload_date.microsecond == 0)

    def with_upload_date(self, upload_date: Optional[datetime]) -> "StreamItem":
        """Return a copy of this item with another upload date."""
        return self.model_copy(update={"upload_date": upload_date})

    def __repr__(self) -> str:
        return f"<StreamItem(ident='{self.ident}', upload_date={self.upload_date})>"


class ChannelInfo(BaseModel):
    """Metadata and latest items of one channel, as returned by a source fetcher.

    ``related_items`` is ordered newest-first.
    """

    service_id: int = Field(..., ge=0)
    url: str = Field(..., min_length=1, max_length=2048)
    name: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = None
    related_items: list[StreamItem] = Field(default_factory=list)
