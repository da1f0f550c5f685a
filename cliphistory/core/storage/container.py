"""Deduplicating clipboard store with a separate recency ledger"""

import hashlib
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from loguru import logger

from .database import ContentKind, ContentRecordDB, DatabaseManager, RecencyEntryDB
from .exceptions import StorageError
from .query import QueryMode, ReturnedItem, StorageQuery, build_like_pattern, decode_value

BYTES_PER_MB = 1000 * 1000
DEFAULT_MAX_SIZE_MB = 5120

# A re-copy of stored content only bumps it back to the top of the recent
# list once it is older than this and enough other copies happened since.
RECENT_COLLAPSE_MINUTES = 60
RECENT_COLLAPSE_MIN_INTERVENING = 30


def current_millis() -> int:
    return int(time.time() * 1000)


def calculate_hash(data: bytes) -> str:
    """SHA-256 hex digest used as the deduplication key"""
    return hashlib.sha256(data).hexdigest()


def should_append_recent(elapsed_ms: int, intervening: int) -> bool:
    """Recency-collapse rule for content that is already stored"""
    minutes_ago = elapsed_ms // 60000
    return (
        minutes_ago > RECENT_COLLAPSE_MINUTES
        and intervening >= RECENT_COLLAPSE_MIN_INTERVENING
    )


def _utf8(value: str) -> bytes:
    try:
        return value.encode('utf-8')
    except UnicodeEncodeError as e:
        raise StorageError(f"Text is not valid UTF-8: {e}") from e


class StorageContainer:
    """
    Storage for clipboard history.

    Content is stored once per distinct payload in ``data``; each observed
    copy is logged in ``recent``. One instance is shared between the
    clipboard listener thread and the GUI thread: every call opens its own
    short session, and all writes go through ``_write_lock`` so that an
    ingestion's lookup/insert/append sequence is never interleaved with
    another write.
    """

    def __init__(self, database_manager: DatabaseManager, clock: Optional[Callable[[], int]] = None):
        """
        Initialize storage container

        Args:
            database_manager: DatabaseManager instance
            clock: Returns the current time in epoch milliseconds
        """
        self.db_manager = database_manager
        self._clock = clock or current_millis
        self._write_lock = threading.RLock()

    @classmethod
    def open(cls, path: Optional[str] = None, clock: Optional[Callable[[], int]] = None) -> 'StorageContainer':
        """
        Open (or create) the store at a filesystem path

        Raises:
            StorageError: if the database cannot be opened or bootstrapped
        """
        try:
            return cls(DatabaseManager(path), clock=clock)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to open store at {path}: {e}") from e

    def close(self):
        self.db_manager.close()

    @contextmanager
    def get_session(self):
        """Get a new database session with proper cleanup"""
        session = self.db_manager.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Storage operation failed: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # Ingestion

    def add_text(self, text_data: str, html_data: Optional[str], config: Any) -> None:
        """
        Store copied text

        Args:
            text_data: Copied text
            html_data: Optional HTML companion of the text
            config: ConfigManager providing ``stores.text.max_size`` (MB)

        Raises:
            StorageError: if the text cannot be encoded as UTF-8, or on database failure
        """
        raw = _utf8(text_data)
        max_size = config.get('stores.text.max_size', DEFAULT_MAX_SIZE_MB)

        if len(raw) > max_size * BYTES_PER_MB:
            logger.info(f"[add_text]: Text Length {len(raw) // BYTES_PER_MB}MB > Max Length {max_size}MB")
            return

        html_size = len(_utf8(html_data)) if html_data is not None else None

        self._ingest(calculate_hash(raw), lambda content_hash: ContentRecordDB(
            hash=content_hash,
            type_of=int(ContentKind.TEXT),
            text_size=len(raw),
            text_data=text_data,
            html_size=html_size,
            html_data=html_data
        ))

    def add_image(self, image_data: bytes, image_thumb_data: Optional[bytes], config: Any) -> None:
        """
        Store a copied image

        Args:
            image_data: Full resolution image bytes
            image_thumb_data: Optional preview bytes
            config: ConfigManager providing ``stores.image.max_size`` (MB)
        """
        max_size = config.get('stores.image.max_size', DEFAULT_MAX_SIZE_MB)

        if len(image_data) > max_size * BYTES_PER_MB:
            logger.info(f"[add_image]: Image Length {len(image_data) // BYTES_PER_MB}MB > Max Length {max_size}MB")
            return

        self._ingest(calculate_hash(image_data), lambda content_hash: ContentRecordDB(
            hash=content_hash,
            type_of=int(ContentKind.IMAGE),
            image_size=len(image_data),
            image_data=image_data,
            image_thumb_size=len(image_thumb_data) if image_thumb_data is not None else None,
            image_thumb_data=image_thumb_data
        ))

    def _ingest(self, content_hash: str, make_record: Callable[[str], ContentRecordDB]) -> None:
        with self._write_lock, self.get_session() as session:
            now = self._clock()
            data_id = self._get_data_id_from_hash(session, content_hash)

            if data_id is None:
                record = make_record(content_hash)
                session.add(record)
                session.flush()
                self._insert_recent(session, record.id, now)
                logger.debug(f"Saved new entry: {content_hash[:8]}")
                return

            latest = self._get_most_recent_entry(session, data_id)

            if latest is None:
                self._insert_recent(session, data_id, now)
                logger.debug(f"Re-listed entry without history: {content_hash[:8]}")
                return

            intervening = self._count_newer_than(session, latest.date)

            if should_append_recent(now - latest.date, intervening):
                self._insert_recent(session, data_id, now)
                logger.debug(f"Bumped existing entry: {content_hash[:8]}")
            else:
                logger.debug(f"Absorbed repeat copy: {content_hash[:8]}")

    # Ledger helpers (caller owns the session)

    @staticmethod
    def _insert_recent(session: Session, data_id: int, date: int) -> None:
        session.add(RecencyEntryDB(row_id=data_id, date=date))

    @staticmethod
    def _get_data_id_from_hash(session: Session, content_hash: str) -> Optional[int]:
        row = session.query(ContentRecordDB.id).filter(ContentRecordDB.hash == content_hash).first()
        return row[0] if row else None

    @staticmethod
    def _get_most_recent_entry(session: Session, data_id: int) -> Optional[RecencyEntryDB]:
        return session.query(RecencyEntryDB).filter(
            RecencyEntryDB.row_id == data_id
        ).order_by(RecencyEntryDB.id.desc()).first()

    @staticmethod
    def _count_newer_than(session: Session, timestamp_ms: int) -> int:
        return session.query(func.count(RecencyEntryDB.id)).filter(
            RecencyEntryDB.date > timestamp_ms
        ).scalar()

    # Queries

    def query(self, query: StorageQuery) -> List[ReturnedItem]:
        """
        Fetch history rows, newest recency entry first

        Args:
            query: StorageQuery.recent / .search / .favorites

        Returns:
            List of returned items
        """
        with self.get_session() as session:
            columns = session.query(
                RecencyEntryDB.id,
                RecencyEntryDB.date,
                ContentRecordDB.is_starred,
                ContentRecordDB.type_of,
                ContentRecordDB.text_data,
                ContentRecordDB.image_thumb_data,
                ContentRecordDB.id
            ).select_from(RecencyEntryDB)

            if query.mode is QueryMode.RECENT:
                rows = columns.join(
                    ContentRecordDB, ContentRecordDB.id == RecencyEntryDB.row_id
                ).order_by(RecencyEntryDB.id.desc()).limit(query.limit).offset(query.skip).all()

            elif query.mode is QueryMode.FAVORITES:
                rows = columns.join(
                    ContentRecordDB, ContentRecordDB.id == RecencyEntryDB.row_id
                ).filter(ContentRecordDB.is_starred.is_(True)).order_by(RecencyEntryDB.id.desc()).all()

            elif query.mode is QueryMode.SEARCH:
                newest = session.query(
                    func.max(RecencyEntryDB.id).label('recent_id')
                ).group_by(RecencyEntryDB.row_id).subquery()

                pattern, escape = build_like_pattern(query.value)

                rows = columns.join(
                    newest, newest.c.recent_id == RecencyEntryDB.id
                ).join(
                    ContentRecordDB, ContentRecordDB.id == RecencyEntryDB.row_id
                ).filter(
                    ContentRecordDB.type_of == int(ContentKind.TEXT),
                    ContentRecordDB.text_data.like(pattern, escape=escape)
                ).order_by(RecencyEntryDB.id.desc()).all()

            else:
                raise ValueError(f"Unknown query mode: {query.mode}")

            return [
                ReturnedItem(
                    data_id=data_id,
                    recent_id=recent_id,
                    timestamp_ms=date,
                    is_favorite=bool(is_starred),
                    value=decode_value(type_of, text_data, thumb_data)
                )
                for recent_id, date, is_starred, type_of, text_data, thumb_data, data_id in rows
            ]

    # Mutations

    def set_favorite(self, content_id: int, value: bool) -> int:
        """
        Set the favorite flag of a content record

        Returns:
            Number of rows affected (0 when the id does not exist)
        """
        with self._write_lock, self.get_session() as session:
            updated = session.query(ContentRecordDB).filter(
                ContentRecordDB.id == content_id
            ).update({ContentRecordDB.is_starred: bool(value)}, synchronize_session=False)

            logger.debug(f"Set favorite: {content_id} -> {value} ({updated} rows)")
            return updated

    def delete(self, content_id: int) -> int:
        """
        Delete a content record and every recency entry pointing at it

        Returns:
            Combined number of rows deleted
        """
        with self._write_lock, self.get_session() as session:
            deleted = session.query(ContentRecordDB).filter(
                ContentRecordDB.id == content_id
            ).delete(synchronize_session=False)

            if deleted == 0:
                return 0

            recents = session.query(RecencyEntryDB).filter(
                RecencyEntryDB.row_id == content_id
            ).delete(synchronize_session=False)

            logger.debug(f"Deleted entry {content_id} with {recents} recent rows")
            return deleted + recents

    def clear_database(self) -> int:
        """
        Remove all content and recency rows

        Returns:
            Total number of rows deleted
        """
        with self._write_lock, self.get_session() as session:
            data_deleted = session.query(ContentRecordDB).delete(synchronize_session=False)
            recent_deleted = session.query(RecencyEntryDB).delete(synchronize_session=False)

            logger.info(f"Cleared database ({data_deleted} entries, {recent_deleted} recent rows)")
            return data_deleted + recent_deleted

    # Aggregates

    def compute_total_size(self) -> int:
        """Sum of stored text sizes in bytes"""
        with self.get_session() as session:
            return session.query(func.coalesce(func.sum(ContentRecordDB.text_size), 0)).scalar()

    def count_the_recents_newer_than(self, timestamp_ms: int) -> int:
        """Number of recency entries observed strictly after ``timestamp_ms``"""
        with self.get_session() as session:
            return self._count_newer_than(session, timestamp_ms)

    def get_image(self, content_id: int) -> bytes:
        """
        Get the full resolution image of a content record

        Returns:
            Image bytes, or b'' when the id does not exist or is not an image
        """
        with self.get_session() as session:
            row = session.query(ContentRecordDB.image_data).filter(
                ContentRecordDB.id == content_id
            ).first()

            if row is None or row[0] is None:
                return b''

            return bytes(row[0])
