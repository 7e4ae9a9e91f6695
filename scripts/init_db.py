#!/usr/bin/env python3
"""
Initialize the subscription-feed database.

This script creates the subscription tables.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from subscription_feed.config import get_config
from subscription_feed.storage.database import init_db


def main() -> None:
    """Initialize the database."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize subscription-feed database")
    parser.add_argument(
        "--drop", action="store_true", help="Drop existing tables before creating new ones"
    )
    args = parser.parse_args()

    print(f"Initializing database at {get_config().database.path}...")
    init_db(drop_all=args.drop)
    print("Database initialized successfully!")


if __name__ == "__main__":
    main()
