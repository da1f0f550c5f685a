"""Storage layer exceptions"""


class StorageError(Exception):
    """Raised when the database engine fails to execute an operation"""


class CorruptRecordError(StorageError):
    """Raised when a stored row carries a content kind that cannot be decoded"""
