"""Data persistence and storage management"""

from .database import DatabaseManager, ContentKind
from .container import StorageContainer
from .exceptions import StorageError, CorruptRecordError
from .query import StorageQuery, ReturnedItem, TextValue, ThumbnailValue

__all__ = [
    'DatabaseManager', 'ContentKind', 'StorageContainer', 'StorageError', 'CorruptRecordError',
    'StorageQuery', 'ReturnedItem', 'TextValue', 'ThumbnailValue'
]
