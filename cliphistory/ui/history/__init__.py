"""History viewer interface (the Qt window lives in history_viewer)"""

from .feed import HistoryFeed

__all__ = ['HistoryFeed']
