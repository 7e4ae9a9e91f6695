"""
Subscription Feed - aggregated feed of recent items from followed channels.

This package fetches every subscribed source, drops items older than a rolling
cutoff, restores precise upload dates from a previous result and merges
everything into one newest-first feed with a change-detection hash.
"""

__version__ = "0.1.0"
