"""Repository pattern implementations for data access."""

from subscription_feed.storage.repositories.subscription_repo import SubscriptionRepository

__all__ = [
    "SubscriptionRepository",
]
