"""
Trade Journal

Local, file-backed store for a personal trading journal: trades and
quarterly theses as JSON documents, performance metrics, and a filtered
view of the trade collection.
"""

__version__ = "1.0.0"
