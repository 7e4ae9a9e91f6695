"""
Item parser turning feedparser entries into stream items.

Handles title and link normalization, upload date parsing and stream type
detection.
"""

import calendar
import re
import time
from datetime import datetime
from html import unescape
from typing import Any, Optional

from subscription_feed.logger import get_logger
from subscription_feed.models import ChannelInfo, StreamItem, StreamType, Subscription

logger = get_logger(__name__)

_LIVE_BROADCAST_KEYS = ("yt_livebroadcastcontent", "media_livebroadcastcontent")

_DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%a, %d %b %Y %H:%M:%S %z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
]


class ItemParser:
    """Parser for normalizing feed entries into StreamItem values."""

    def parse_channel(self, parsed: Any, subscription: Subscription) -> ChannelInfo:
        """Build channel info from a parsed feed.

        Entry order is kept as-is; feeds list their newest entries first.

        Args:
            parsed: Result of ``feedparser.parse``
            subscription: Subscription the feed was fetched for

        Returns:
            ChannelInfo with the parsed items
        """
        feed = parsed.get("feed", {})
        channel_name = self._normalize_title(feed.get("title")) or subscription.name
        channel_url = self._normalize_link(feed.get("link")) or subscription.url

        items = []
        for raw_entry in parsed.get("entries", []):
            item = self.parse_entry(
                raw_entry,
                service_id=subscription.service_id,
                uploader_name=channel_name,
                uploader_url=channel_url,
            )
            if item is not None:
                items.append(item)

        return ChannelInfo(
            service_id=subscription.service_id,
            url=channel_url,
            name=channel_name,
            description=feed.get("description") or feed.get("subtitle"),
            related_items=items,
        )

    def parse_entry(
        self,
        raw_entry: dict,
        service_id: int = 0,
        uploader_name: Optional[str] = None,
        uploader_url: Optional[str] = None,
    ) -> Optional[StreamItem]:
        """Parse one raw feed entry.

        Args:
            raw_entry: Raw entry from feedparser
            service_id: Service the channel belongs to
            uploader_name: Fallback uploader name (the channel name)
            uploader_url: Fallback uploader URL (the channel URL)

        Returns:
            StreamItem, or None if the entry has no usable link
        """
        link = self._normalize_link(raw_entry.get("link"))
        if not link:
            logger.debug(f"Skipping entry without link: {raw_entry.get('title')!r}")
            return None

        author = raw_entry.get("author_detail") or {}

        return StreamItem(
            service_id=service_id,
            url=link,
            name=self._normalize_title(raw_entry.get("title")),
            stream_type=self._detect_stream_type(raw_entry),
            upload_date=self._parse_upload_date(raw_entry),
            uploader_name=self._normalize_title(raw_entry.get("author")) or uploader_name,
            uploader_url=self._normalize_link(author.get("href")) or uploader_url,
            thumbnail_url=self._extract_thumbnail(raw_entry),
            duration=self._parse_duration(raw_entry.get("itunes_duration")),
            view_count=self._parse_view_count(raw_entry),
        )

    def _normalize_title(self, title: Optional[str]) -> Optional[str]:
        """Normalize a title or name.

        Args:
            title: Raw title

        Returns:
            Normalized title
        """
        if not title:
            return None

        title = unescape(str(title))
        title = re.sub(r"\s+", " ", title.strip())

        if len(title) > 1000:
            title = title[:997] + "..."

        return title if title else None

    def _normalize_link(self, link: Optional[str]) -> Optional[str]:
        if not link:
            return None

        link = link.strip()

        if not link.startswith(("http://", "https://")):
            logger.warning(f"Invalid link format: {link}")
            return None

        return link

    def _parse_upload_date(self, raw_entry: dict) -> Optional[datetime]:
        """Parse the upload date of an entry as a naive local datetime.

        feedparser exposes normalized UTC ``*_parsed`` struct_time values; the
        raw strings are only used when it could not parse them.

        Args:
            raw_entry: Raw entry from feedparser

        Returns:
            datetime or None if the entry carries no date
        """
        for key in ("published_parsed", "updated_parsed"):
            parsed = raw_entry.get(key)
            if isinstance(parsed, time.struct_time):
                return datetime.fromtimestamp(calendar.timegm(parsed))

        for key in ("published", "updated"):
            date_str = raw_entry.get(key)
            if date_str:
                parsed_date = self._parse_date_string(date_str)
                if parsed_date is not None:
                    return parsed_date

        return None

    def _parse_date_string(self, date_str: str) -> Optional[datetime]:
        date_str = date_str.strip()
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(date_str, fmt)
            except ValueError:
                continue
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone().replace(tzinfo=None)
            return parsed

        logger.warning(f"Failed to parse date: {date_str}")
        return None

    def _detect_stream_type(self, raw_entry: dict) -> StreamType:
        """Detect the stream type of an entry.

        Args:
            raw_entry: Raw entry from feedparser

        Returns:
            LIVE_STREAM when the entry is flagged as currently live, otherwise
            the type implied by its enclosures (video by default)
        """
        for key in _LIVE_BROADCAST_KEYS:
            if str(raw_entry.get(key, "")).lower() == "live":
                return StreamType.LIVE_STREAM

        for enclosure in raw_entry.get("enclosures", []) or []:
            mime_type = str(enclosure.get("type", "")).lower()
            if mime_type.startswith("audio/"):
                return StreamType.AUDIO_STREAM
            if mime_type.startswith("video/"):
                return StreamType.VIDEO_STREAM

        return StreamType.VIDEO_STREAM

    def _extract_thumbnail(self, raw_entry: dict) -> Optional[str]:
        thumbnails = raw_entry.get("media_thumbnail") or []
        for thumbnail in thumbnails:
            url = self._normalize_link(thumbnail.get("url"))
            if url:
                return url
        return None

    def _parse_duration(self, duration: Optional[str]) -> int:
        """Parse an ``itunes:duration`` value ("SS", "MM:SS" or "HH:MM:SS").

        Returns:
            Duration in seconds, -1 if unknown
        """
        if not duration:
            return -1

        seconds = 0
        try:
            for part in str(duration).strip().split(":"):
                seconds = seconds * 60 + int(part)
        except ValueError:
            return -1

        return seconds if seconds >= 0 else -1

    def _parse_view_count(self, raw_entry: dict) -> int:
        statistics = raw_entry.get("media_statistics") or {}
        try:
            return int(statistics.get("views", -1))
        except (TypeError, ValueError):
            return -1