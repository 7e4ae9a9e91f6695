#!/usr/bin/env python3
"""
Manage subscriptions and print the aggregated feed.

Examples:
    python scripts/feed.py subscribe https://www.youtube.com/feeds/videos.xml?channel_id=UC...
    python scripts/feed.py list
    python scripts/feed.py show --base data/feed.json --save data/feed.json
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from subscription_feed.core import create_feed_service
from subscription_feed.core.factories import create_registry
from subscription_feed.logger import setup_logger
from subscription_feed.models import FeedInfo


def _load_base(path: Path):
    if not path.exists():
        print(f"No base feed at {path}, upload dates will not be corrected")
        return None
    return FeedInfo.model_validate_json(path.read_text(encoding="utf-8"))


def show_feed(registry, base_path=None, save_path=None) -> None:
    """Compute the feed once and print it."""
    service = create_feed_service(registry)
    try:
        if base_path:
            base = _load_base(Path(base_path))
            if base is not None:
                service.set_base_feed_info(base).result()

        feed_info = service.get_feed_info()
    finally:
        service.shutdown()

    for item in feed_info.items:
        upload_date = item.upload_date.strftime("%Y-%m-%d %H:%M") if item.upload_date else "live/unknown"
        print(f"{upload_date:>16}  {item.uploader_name or '-':<30.30}  {item.name or item.url}")
    print(f"\n{len(feed_info)} items, hash {feed_info.content_hash}")

    if save_path:
        path = Path(save_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(feed_info.model_dump_json(indent=2), encoding="utf-8")
        print(f"Saved feed to {path}")


def main() -> None:
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Subscription feed aggregation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subscribe_parser = subparsers.add_parser("subscribe", help="Follow a channel feed")
    subscribe_parser.add_argument("url", help="Channel feed URL")
    subscribe_parser.add_argument("--name", help="Display name")
    subscribe_parser.add_argument("--service-id", type=int, default=0, help="Service id")

    unsubscribe_parser = subparsers.add_parser("unsubscribe", help="Stop following a channel")
    unsubscribe_parser.add_argument("id", type=int, help="Subscription ID")

    subparsers.add_parser("list", help="List subscriptions")

    show_parser = subparsers.add_parser("show", help="Aggregate and print the feed")
    show_parser.add_argument("--base", help="Stored feed JSON used to correct upload dates")
    show_parser.add_argument("--save", help="Write the computed feed as JSON")

    args = parser.parse_args()

    setup_logger()
    registry = create_registry()
    registry.db_manager.init_db()

    if args.command == "subscribe":
        subscription = registry.subscribe(args.url, service_id=args.service_id, name=args.name)
        print(f"Subscribed: [{subscription.id}] {subscription.name or subscription.url}")

    elif args.command == "unsubscribe":
        if registry.unsubscribe(args.id):
            print(f"Unsubscribed from {args.id}")
        else:
            print(f"Subscription {args.id} not found")
            sys.exit(1)

    elif args.command == "list":
        subscriptions = registry.get_subscriptions()
        for subscription in subscriptions:
            print(f"[{subscription.id}] {subscription.name or '-'}  {subscription.url}")
        print(f"\nTotal subscriptions: {len(subscriptions)}")

    elif args.command == "show":
        show_feed(registry, base_path=args.base, save_path=args.save)


if __name__ == "__main__":
    main()
