"""Shared fixtures for subscription-feed tests."""

from datetime import datetime
from typing import Optional, Union

import pytest

from subscription_feed.core.correction_cache import CorrectionCache
from subscription_feed.core.cutoff import CutoffPolicy
from subscription_feed.core.fetcher import FetchResult
from subscription_feed.models import ChannelInfo, StreamItem, StreamType, Subscription
from subscription_feed.storage.database import DatabaseManager
from subscription_feed.storage.registry import DatabaseSubscriptionRegistry

# Cutoff for this clock with a 4 week window: 2024-05-18 00:00:00
NOW = datetime(2024, 6, 15, 14, 30, 45, 123456)
CUTOFF = datetime(2024, 5, 18)


def make_item(
    url: str,
    upload_date: Optional[datetime] = None,
    live: bool = False,
    service_id: int = 0,
) -> StreamItem:
    """Build a stream item for tests."""
    return StreamItem(
        service_id=service_id,
        url=url,
        name=url.rsplit("/", 1)[-1],
        stream_type=StreamType.LIVE_STREAM if live else StreamType.VIDEO_STREAM,
        upload_date=upload_date,
    )


def make_subscription(subscription_id: int, url: Optional[str] = None) -> Subscription:
    """Build a subscription for tests."""
    return Subscription(
        id=subscription_id,
        service_id=0,
        url=url or f"https://example.com/channel/{subscription_id}",
        name=f"Channel {subscription_id}",
    )


class FakeFetcher:
    """Source fetcher serving canned responses keyed by subscription id.

    A response is either a list of items, an exception to raise, or a ready
    FetchResult. Unknown subscriptions fail with "Not found".
    """

    def __init__(self, responses: Optional[dict[int, Union[list, Exception, FetchResult]]] = None):
        self.responses = responses or {}
        self.calls: list[int] = []

    def fetch(self, subscription: Subscription) -> FetchResult:
        self.calls.append(subscription.id)
        response = self.responses.get(subscription.id)

        if isinstance(response, Exception):
            raise response
        if isinstance(response, FetchResult):
            return response
        if response is None:
            return FetchResult(
                success=False,
                subscription_id=subscription.id,
                url=subscription.url,
                error="HTTP 404: Not found",
            )

        return FetchResult(
            success=True,
            subscription_id=subscription.id,
            url=subscription.url,
            channel=ChannelInfo(
                service_id=subscription.service_id,
                url=subscription.url,
                name=subscription.name,
                related_items=response,
            ),
        )


@pytest.fixture
def clock():
    """Fixed clock returning NOW."""
    return lambda: NOW


@pytest.fixture
def correction_cache(clock) -> CorrectionCache:
    """Empty correction cache whose cutoff is CUTOFF."""
    return CorrectionCache(CutoffPolicy(weeks=4, clock=clock))


@pytest.fixture
def db_manager():
    """Create an in-memory database manager."""
    manager = DatabaseManager(":memory:")
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture
def db_session(db_manager: DatabaseManager):
    """Create an in-memory database session."""
    with db_manager.session() as session:
        yield session


@pytest.fixture
def registry(db_manager: DatabaseManager) -> DatabaseSubscriptionRegistry:
    """Subscription registry on the in-memory database."""
    return DatabaseSubscriptionRegistry(db_manager)
