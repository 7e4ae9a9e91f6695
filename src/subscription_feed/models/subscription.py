"""
Subscription data model for followed channels.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from subscription_feed.models.base import Base


class SubscriptionModel(Base):
    """SQLAlchemy ORM model for Subscription."""

    __tablename__ = "subscriptions"

    __table_args__ = (
        UniqueConstraint("service_id", "url", name="uq_subscriptions_service_url"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<SubscriptionModel(id={self.id}, url='{self.url}', name='{self.name}')>"


# Pydantic models


class SubscriptionCreate(BaseModel):
    """Schema for creating a new subscription."""

    service_id: int = Field(default=0, ge=0, description="Service id")
    url: str = Field(..., min_length=1, max_length=2048, description="Channel URL")
    name: Optional[str] = Field(None, max_length=500, description="Channel name")


class Subscription(BaseModel):
    """A followed channel, detached from the database session.

    This is what the aggregation engine receives; it only identifies the
    channel and carries no feed data.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    service_id: int = Field(default=0, ge=0)
    url: str
    name: Optional[str] = None
