"""Unit tests for the subscription registry."""

from unittest.mock import Mock

from subscription_feed.core.factories import create_registry
from subscription_feed.models import Subscription
from subscription_feed.storage.database import DatabaseManager
from subscription_feed.storage.registry import DatabaseSubscriptionRegistry


class TestDatabaseSubscriptionRegistry:
    """Tests for DatabaseSubscriptionRegistry."""

    def test_empty_registry(self, registry: DatabaseSubscriptionRegistry):
        """Test a new database has no subscriptions."""
        assert registry.get_subscriptions() == []

    def test_subscribe(self, registry: DatabaseSubscriptionRegistry):
        """Test subscribing to a channel."""
        subscription = registry.subscribe("https://example.com/channel/1", name="Channel 1")

        assert isinstance(subscription, Subscription)
        assert subscription.id is not None
        assert registry.get_subscriptions() == [subscription]

    def test_subscribe_twice_returns_existing(self, registry: DatabaseSubscriptionRegistry):
        """Test subscribing to a followed channel does not duplicate it."""
        first = registry.subscribe("https://example.com/channel/1")
        listener = Mock()
        registry.add_listener(listener)

        second = registry.subscribe("https://example.com/channel/1")

        assert second == first
        assert len(registry.get_subscriptions()) == 1
        listener.assert_not_called()

    def test_subscriptions_ordered_by_id(self, registry: DatabaseSubscriptionRegistry):
        """Test subscriptions come back in creation order."""
        for i in range(3):
            registry.subscribe(f"https://example.com/channel/{i}")

        urls = [s.url for s in registry.get_subscriptions()]

        assert urls == [f"https://example.com/channel/{i}" for i in range(3)]

    def test_unsubscribe(self, registry: DatabaseSubscriptionRegistry):
        """Test removing a subscription."""
        subscription = registry.subscribe("https://example.com/channel/1")

        assert registry.unsubscribe(subscription.id) is True
        assert registry.get_subscriptions() == []

    def test_unsubscribe_unknown(self, registry: DatabaseSubscriptionRegistry):
        """Test removing a subscription that does not exist."""
        listener = Mock()
        registry.add_listener(listener)

        assert registry.unsubscribe(9999) is False
        listener.assert_not_called()

    def test_listener_receives_full_list(self, registry: DatabaseSubscriptionRegistry):
        """Test every change emits the complete subscription list."""
        received = []
        registry.add_listener(received.append)

        first = registry.subscribe("https://example.com/channel/1")
        second = registry.subscribe("https://example.com/channel/2")
        registry.unsubscribe(first.id)

        assert received == [[first], [first, second], [second]]

    def test_removed_listener(self, registry: DatabaseSubscriptionRegistry):
        """Test a removed listener is not called."""
        listener = Mock()
        registry.add_listener(listener)
        registry.remove_listener(listener)

        registry.subscribe("https://example.com/channel/1")

        listener.assert_not_called()

    def test_failing_listener_does_not_break_subscribe(self, registry: DatabaseSubscriptionRegistry):
        """Test a listener error is contained."""
        received = []
        registry.add_listener(Mock(side_effect=RuntimeError("listener bug")))
        registry.add_listener(received.append)

        subscription = registry.subscribe("https://example.com/channel/1")

        assert received == [[subscription]]


class TestCreateRegistry:
    """Tests for create_registry factory function."""

    def test_create_registry(self, db_manager: DatabaseManager):
        """Test creating a registry on an existing database."""
        registry = create_registry(db_manager)

        assert isinstance(registry, DatabaseSubscriptionRegistry)
        assert registry.db_manager is db_manager
