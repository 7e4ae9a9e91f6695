"""
Source fetcher loading the latest items of a subscribed channel.

Fetchers must return channel items newest-first: the collector stops walking a
channel at the first item older than the cutoff and relies on this order.
Failures are reported through ``FetchResult`` rather than raised.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import feedparser
import httpx

from subscription_feed.config import get_config
from subscription_feed.core.parser import ItemParser
from subscription_feed.logger import get_logger
from subscription_feed.models import ChannelInfo, Subscription

logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Result of fetching one subscription."""

    success: bool
    subscription_id: int
    url: str
    channel: Optional[ChannelInfo] = None
    error: Optional[str] = None
    fetch_time_seconds: float = 0.0
    http_status: Optional[int] = None

    def __post_init__(self):
        """Validate fetch result."""
        if self.success and self.error:
            raise ValueError("Successful fetch cannot have an error")
        if not self.success and not self.error:
            self.error = "Unknown error"

    @property
    def items_count(self) -> int:
        if self.channel is None:
            return 0
        return len(self.channel.related_items)


@dataclass
class FetchStats:
    """Statistics for fetch operations, safe to update from worker threads."""

    total_fetches: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_items: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_result(self, result: FetchResult) -> None:
        """Add a fetch result to statistics.

        Args:
            result: FetchResult to add
        """
        with self._lock:
            self.total_fetches += 1
            self.total_time_seconds += result.fetch_time_seconds

            if result.success:
                self.successful_fetches += 1
                self.total_items += result.items_count
            else:
                self.failed_fetches += 1
                error_type = result.error.split(":")[0] if result.error else "unknown"
                self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        if self.total_fetches == 0:
            return 0.0
        return self.successful_fetches / self.total_fetches

    @property
    def avg_time_seconds(self) -> float:
        if self.total_fetches == 0:
            return 0.0
        return self.total_time_seconds / self.total_fetches


class SourceFetcher(Protocol):
    """Loads channel info for one subscription."""

    def fetch(self, subscription: Subscription) -> FetchResult:
        """Fetch a subscription; items in the result are newest-first."""
        ...


class FeedFetcher:
    """RSS/Atom channel fetcher with retry logic and error handling."""

    def __init__(
        self,
        timeout_seconds: Optional[int] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        retry_delay_seconds: Optional[int] = None,
        parser: Optional[ItemParser] = None,
    ):
        """Initialize feed fetcher.

        Args:
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            user_agent: User-Agent header for HTTP requests
            retry_delay_seconds: Base delay between attempts
            parser: Parser for feed entries
        """
        config = get_config()

        self.timeout_seconds = timeout_seconds or config.fetcher.timeout_seconds
        self.max_retries = max_retries if max_retries is not None else config.fetcher.max_retries
        self.user_agent = user_agent or config.fetcher.user_agent
        self.retry_delay_seconds = (
            retry_delay_seconds
            if retry_delay_seconds is not None
            else config.fetcher.retry_delay_seconds
        )

        # HTTP client configuration
        self.follow_redirects = config.fetcher.follow_redirects
        self.max_redirects = config.fetcher.max_redirects

        self.parser = parser or ItemParser()
        self.stats = FetchStats()

    def fetch(self, subscription: Subscription) -> FetchResult:
        """Fetch the latest items of a subscribed channel.

        Args:
            subscription: Subscription to fetch

        Returns:
            FetchResult with the channel info or an error
        """
        start_time = time.time()
        url = subscription.url

        logger.debug(f"Loading channel info for: {subscription.name or url}")

        last_error = None
        http_status = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._fetch_http(url)
                http_status = response.status_code

                parsed = feedparser.parse(response.content)
                if parsed.get("bozo") and not parsed.get("entries"):
                    last_error = f"Parse error: {parsed.get('bozo_exception')}"
                    logger.warning(f"Could not parse feed {url}: {last_error}")
                    break

                channel = self.parser.parse_channel(parsed, subscription)
                fetch_time = time.time() - start_time

                logger.info(
                    f"Fetched {len(channel.related_items)} items from "
                    f"{channel.name or url} in {fetch_time:.2f}s"
                )

                result = FetchResult(
                    success=True,
                    subscription_id=subscription.id,
                    url=url,
                    channel=channel,
                    fetch_time_seconds=fetch_time,
                    http_status=http_status,
                )
                self.stats.add_result(result)
                return result

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {str(e)}"
                logger.warning(f"Timeout fetching {url} (attempt {attempt + 1}/{self.max_retries + 1})")

            except httpx.HTTPStatusError as e:
                last_error = f"HTTP {e.response.status_code}: {str(e)}"
                http_status = e.response.status_code

                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    logger.error(f"Client error fetching {url}: {last_error}")
                    break

                logger.warning(f"HTTP error fetching {url} (attempt {attempt + 1})")

            except httpx.RequestError as e:
                last_error = f"Request error: {str(e)}"
                logger.warning(f"Network error fetching {url} (attempt {attempt + 1})")

            except Exception as e:
                last_error = f"Unexpected error: {type(e).__name__}: {str(e)}"
                logger.error(f"Error fetching {url}: {last_error}")
                break

            if attempt < self.max_retries:
                time.sleep(self.retry_delay_seconds * (attempt + 1))

        result = FetchResult(
            success=False,
            subscription_id=subscription.id,
            url=url,
            fetch_time_seconds=time.time() - start_time,
            error=last_error or "Unknown error",
            http_status=http_status,
        )
        self.stats.add_result(result)
        return result

    def _fetch_http(self, url: str) -> httpx.Response:
        """Fetch URL with HTTP client.

        Args:
            url: URL to fetch

        Returns:
            httpx Response

        Raises:
            httpx.TimeoutException: On timeout
            httpx.HTTPStatusError: On HTTP error
            httpx.RequestError: On network error
        """
        headers = {"User-Agent": self.user_agent}

        with httpx.Client(
            timeout=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
        ) as client:
            response = client.get(url, headers=headers)
            response.raise_for_status()
            return response

