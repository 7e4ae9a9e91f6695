"""Data models for subscription-feed."""

from subscription_feed.models.base import Base
from subscription_feed.models.feed_info import FeedInfo
from subscription_feed.models.stream_item import ChannelInfo, StreamItem, StreamType
from subscription_feed.models.subscription import (
    Subscription,
    SubscriptionCreate,
    SubscriptionModel,
)

__all__ = [
    "Base",
    "StreamType",
    "StreamItem",
    "ChannelInfo",
    "FeedInfo",
    "Subscription",
    "SubscriptionCreate",
    "SubscriptionModel",
]
