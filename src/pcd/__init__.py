"""pcd - personal podcast feed synchronizer.

Fetches podcast RSS feeds, caches their episode lists locally and
downloads individual episodes.
"""

__version__ = "0.3.0"
