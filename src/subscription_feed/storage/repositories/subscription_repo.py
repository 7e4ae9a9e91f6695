"""
Subscription repository for database operations.
"""

from typing import Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from subscription_feed.models import SubscriptionModel
from subscription_feed.models.subscription import SubscriptionCreate


class SubscriptionRepository:
    """Repository for Subscription CRUD operations."""

    def __init__(self, session: Session) -> None:
        """Initialize repository with a database session.

        Args:
            session: SQLAlchemy Session instance
        """
        self.session = session

    def get_by_id(self, subscription_id: int) -> Optional[SubscriptionModel]:
        """Get a subscription by ID.

        Args:
            subscription_id: Subscription ID

        Returns:
            SubscriptionModel instance or None
        """
        return self.session.get(SubscriptionModel, subscription_id)

    def get_by_url(self, url: str, service_id: int = 0) -> Optional[SubscriptionModel]:
        """Get a subscription by channel URL.

        Args:
            url: Channel URL
            service_id: Service the channel belongs to

        Returns:
            SubscriptionModel instance or None
        """
        return (
            self.session.query(SubscriptionModel)
            .filter(SubscriptionModel.service_id == service_id, SubscriptionModel.url == url)
            .first()
        )

    def list(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: str = "id",
        order_desc: bool = False,
    ) -> list[SubscriptionModel]:
        """List subscriptions.

        Args:
            limit: Maximum number of results (None for all)
            offset: Number of results to skip
            order_by: Field to order by
            order_desc: Sort in descending order

        Returns:
            List of SubscriptionModel instances
        """
        column = getattr(SubscriptionModel, order_by, SubscriptionModel.id)
        query = self.session.query(SubscriptionModel).order_by(
            desc(column) if order_desc else asc(column)
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        """Count subscriptions.

        Returns:
            Number of subscriptions
        """
        return self.session.query(SubscriptionModel).count()

    def create(self, subscription_data: SubscriptionCreate) -> SubscriptionModel:
        """Create a new subscription.

        Args:
            subscription_data: Subscription creation data

        Returns:
            Created SubscriptionModel instance
        """
        subscription = SubscriptionModel(**subscription_data.model_dump())
        self.session.add(subscription)
        self.session.flush()
        self.session.refresh(subscription)
        return subscription

    def delete(self, subscription: SubscriptionModel) -> None:
        """Delete a subscription.

        Args:
            subscription: SubscriptionModel instance to delete
        """
        self.session.delete(subscription)
        self.session.flush()
