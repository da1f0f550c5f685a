"""Query descriptors and result rows returned by the storage container"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Union
from loguru import logger

from .database import ContentKind
from .exceptions import CorruptRecordError

DEFAULT_ESCAPE_CHAR = '\\'
FALLBACK_ESCAPE_CHARS = (
    '!', '@', '#', '$', '^', '&', '*', '-', '=', '+', '|', '~', '`', '/', '?', '>', '<', ','
)


class QueryMode(Enum):
    RECENT = 'recent'
    SEARCH = 'search'
    FAVORITES = 'favorites'


@dataclass(frozen=True)
class StorageQuery:
    """What to fetch from the recency ledger; build with the classmethods"""
    mode: QueryMode
    limit: int = 0
    skip: int = 0
    value: str = ''

    @classmethod
    def recent(cls, limit: int, skip: int = 0) -> 'StorageQuery':
        if limit < 0 or skip < 0:
            raise ValueError("limit and skip must be non-negative")
        return cls(QueryMode.RECENT, limit=limit, skip=skip)

    @classmethod
    def search(cls, value: str) -> 'StorageQuery':
        return cls(QueryMode.SEARCH, value=value)

    @classmethod
    def favorites(cls) -> 'StorageQuery':
        return cls(QueryMode.FAVORITES)


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class ThumbnailValue:
    data: bytes


ItemValue = Union[TextValue, ThumbnailValue]


@dataclass
class ReturnedItem:
    """One recency entry joined with its content record"""
    data_id: int
    recent_id: int
    timestamp_ms: int
    is_favorite: bool
    value: ItemValue

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp_ms / 1000, tz=timezone.utc)

    @property
    def is_text(self) -> bool:
        return isinstance(self.value, TextValue)


def decode_value(type_of: int, text_data: Optional[str], thumb_data: Optional[bytes]) -> ItemValue:
    """
    Build the payload variant for a joined row

    Raises:
        CorruptRecordError: if the kind tag is not a readable kind
    """
    if type_of == ContentKind.TEXT:
        if text_data is None:
            raise CorruptRecordError("Text record without text_data")
        return TextValue(text_data)

    if type_of == ContentKind.IMAGE:
        return ThumbnailValue(bytes(thumb_data) if thumb_data is not None else b'')

    raise CorruptRecordError(f"Invalid content kind found: {type_of}")


def choose_escape_char(value: str) -> str:
    """
    Pick the LIKE escape character for a search value.

    The default backslash is used unless the value contains one, in which
    case the first fallback character absent from the value is used. When
    every fallback character also appears in the value there is no safe
    choice; the default is kept and a warning is logged.
    """
    if DEFAULT_ESCAPE_CHAR not in value:
        return DEFAULT_ESCAPE_CHAR

    for char in FALLBACK_ESCAPE_CHARS:
        if char not in value:
            return char

    logger.warning("No unused LIKE escape character for search value, keeping default")
    return DEFAULT_ESCAPE_CHAR


def build_like_pattern(value: str) -> Tuple[str, Optional[str]]:
    """
    Turn a search value into a ``%value%`` substring pattern

    Returns:
        (pattern, escape) where escape is None when the value holds no wildcards
    """
    if '%' not in value and '_' not in value:
        return f'%{value}%', None

    escape = choose_escape_char(value)
    escaped = value.replace('%', f'{escape}%').replace('_', f'{escape}_')
    return f'%{escaped}%', escape
