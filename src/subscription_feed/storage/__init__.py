"""Storage layer modules for subscription-feed."""

from subscription_feed.storage.database import (
    DatabaseManager,
    close_db,
    get_db,
    get_engine,
    get_session_factory,
    init_db,
)
from subscription_feed.storage.registry import (
    DatabaseSubscriptionRegistry,
    SubscriptionRegistry,
)

__all__ = [
    "DatabaseManager",
    "DatabaseSubscriptionRegistry",
    "SubscriptionRegistry",
    "get_db",
    "get_engine",
    "get_session_factory",
    "init_db",
    "close_db",
]
