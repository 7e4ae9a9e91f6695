"""
Facade services for core modules.

External code (scripts, applications) should interact with these services
rather than wiring aggregator, scheduler and registry by hand.

Example:
    from subscription_feed.core.services import create_feed_service

    service = create_feed_service(registry)
    service.add_listener(print)
    service.start()
"""

from subscription_feed.core.services.feed_service import FeedService, create_feed_service

__all__ = [
    "FeedService",
    "create_feed_service",
]
