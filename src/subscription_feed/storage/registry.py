"""
Subscription registry backed by the subscription database.

The aggregation engine only depends on the ``SubscriptionRegistry`` protocol:
a pullable list of subscriptions plus change notifications. Every emitted list
is a full replacement of the previous one, never a delta.
"""

import threading
from typing import Callable, Optional, Protocol

from subscription_feed.logger import get_logger
from subscription_feed.models import Subscription
from subscription_feed.models.subscription import SubscriptionCreate
from subscription_feed.storage.database import DatabaseManager
from subscription_feed.storage.repositories.subscription_repo import SubscriptionRepository

logger = get_logger(__name__)

SubscriptionListener = Callable[[list[Subscription]], None]


class SubscriptionRegistry(Protocol):
    """Source of the current subscription list."""

    def get_subscriptions(self) -> list[Subscription]:
        """Return the current subscriptions; raises if they cannot be read."""
        ...

    def add_listener(self, listener: SubscriptionListener) -> None:
        """Register a callback invoked with the full list after every change."""
        ...


class DatabaseSubscriptionRegistry:
    """Subscription registry reading and writing the ``subscriptions`` table."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the registry.

        Args:
            db_manager: Database manager owning the subscription tables
        """
        self.db_manager = db_manager
        self._listeners: list[SubscriptionListener] = []
        self._listeners_lock = threading.Lock()

    def get_subscriptions(self) -> list[Subscription]:
        """Load all subscriptions.

        Returns:
            Detached Subscription values ordered by id
        """
        with self.db_manager.session() as session:
            repo = SubscriptionRepository(session)
            return [Subscription.model_validate(model) for model in repo.list()]

    def subscribe(self, url: str, service_id: int = 0, name: Optional[str] = None) -> Subscription:
        """Follow a channel, or return the existing subscription for it.

        Args:
            url: Channel URL
            service_id: Service the channel belongs to
            name: Optional display name

        Returns:
            The stored Subscription
        """
        with self.db_manager.session() as session:
            repo = SubscriptionRepository(session)
            existing = repo.get_by_url(url, service_id=service_id)
            if existing:
                logger.debug(f"Already subscribed to {url}")
                return Subscription.model_validate(existing)

            model = repo.create(SubscriptionCreate(service_id=service_id, url=url, name=name))
            subscription = Subscription.model_validate(model)

        logger.info(f"Subscribed to {name or url} (ID: {subscription.id})")
        self._notify()
        return subscription

    def unsubscribe(self, subscription_id: int) -> bool:
        """Stop following a channel.

        Args:
            subscription_id: Subscription ID

        Returns:
            True if the subscription existed and was removed
        """
        with self.db_manager.session() as session:
            repo = SubscriptionRepository(session)
            model = repo.get_by_id(subscription_id)
            if model is None:
                logger.warning(f"Subscription {subscription_id} not found")
                return False
            repo.delete(model)

        logger.info(f"Unsubscribed from subscription {subscription_id}")
        self._notify()
        return True

    def add_listener(self, listener: SubscriptionListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SubscriptionListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self) -> None:
        """Emit the full subscription list to every listener."""
        with self._listeners_lock:
            listeners = list(self._listeners)
        if not listeners:
            return

        subscriptions = self.get_subscriptions()
        for listener in listeners:
            try:
                listener(subscriptions)
            except Exception as e:
                logger.exception(f"Subscription listener failed: {e}")
