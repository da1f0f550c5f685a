"""Database management using SQLAlchemy"""

import os
from enum import IntEnum
from pathlib import Path
from typing import Optional
from sqlalchemy import (
    create_engine, event, inspect, text,
    Column, String, Text, Boolean, Integer, BigInteger, SmallInteger, LargeBinary, ForeignKey
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from loguru import logger

Base = declarative_base()


class ContentKind(IntEnum):
    """Payload kind stored in ``data.type_of``"""
    TEXT = 0
    IMAGE = 1
    FILE = 2  # reserved, never written


class ContentRecordDB(Base):
    """One row per distinct clipboard payload"""
    __tablename__ = 'data'

    id = Column(Integer, primary_key=True, autoincrement=True)
    hash = Column(String(64), unique=True, nullable=False, index=True)
    is_starred = Column(Boolean, nullable=False, default=False)

    type_of = Column(SmallInteger, nullable=False)

    text_size = Column(Integer)
    text_data = Column(Text)

    html_size = Column(Integer)
    html_data = Column(Text)

    image_size = Column(Integer)
    image_data = Column(LargeBinary)
    image_thumb_size = Column(Integer)
    image_thumb_data = Column(LargeBinary)


class RecencyEntryDB(Base):
    """Append-only log of clipboard observations"""
    __tablename__ = 'recent'

    id = Column(Integer, primary_key=True, autoincrement=True)
    row_id = Column(Integer, ForeignKey('data.id'), nullable=False, index=True)
    date = Column(BigInteger, nullable=False, index=True)


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    # LIKE is substring search here, and it must respect case
    cursor.execute("PRAGMA case_sensitive_like=ON")
    cursor.close()


def default_data_dir() -> Path:
    """Application data directory (created on demand)"""
    if 'APPDATA' in os.environ:
        app_data = Path(os.environ['APPDATA']) / 'ClipboardHistory'
    else:
        app_data = Path.home() / '.cliphistory'
    app_data.mkdir(parents=True, exist_ok=True)
    return app_data


class DatabaseManager:
    """Manages database connections and schema bootstrap"""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database manager

        Args:
            db_path: Path to database file (defaults to app data directory)
        """
        if db_path is None:
            db_path = str(default_data_dir() / 'userdata.db')

        self.db_path = db_path
        self.engine = None
        self.SessionLocal = None

        self._initialize_database()

    def _initialize_database(self):
        """Initialize database connection and create tables"""
        try:
            self.engine = create_engine(
                f'sqlite:///{self.db_path}',
                connect_args={'check_same_thread': False}
            )
            event.listen(self.engine, 'connect', _set_sqlite_pragmas)

            # Create tables if they don't exist
            Base.metadata.create_all(bind=self.engine)
            self._add_missing_columns()

            self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

            logger.info(f"Database initialized at: {self.db_path}")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def _add_missing_columns(self):
        """Append nullable model columns that an older database file lacks"""
        inspector = inspect(self.engine)

        with self.engine.begin() as conn:
            for table in Base.metadata.sorted_tables:
                existing = {c['name'] for c in inspector.get_columns(table.name)}

                for column in table.columns:
                    if column.name in existing:
                        continue

                    if not column.nullable:
                        logger.warning(f"Cannot add required column {table.name}.{column.name} to existing table")
                        continue

                    col_type = column.type.compile(dialect=self.engine.dialect)
                    conn.execute(text(f'ALTER TABLE {table.name} ADD COLUMN {column.name} {col_type}'))
                    logger.info(f"Added column {table.name}.{column.name}")

    def get_session(self) -> Session:
        """
        Get database session

        Returns:
            SQLAlchemy session
        """
        if self.SessionLocal is None:
            raise RuntimeError("Database not initialized")

        return self.SessionLocal()

    def close(self):
        """Close database connection"""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connection closed")

    def vacuum(self):
        """Optimize database (VACUUM operation)"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("VACUUM"))
                conn.commit()
            logger.info("Database optimized (VACUUM completed)")

        except Exception as e:
            logger.error(f"VACUUM failed: {e}")
            raise

    def get_size(self) -> int:
        """
        Get database file size in bytes

        Returns:
            Size in bytes
        """
        if os.path.exists(self.db_path):
            return os.path.getsize(self.db_path)
        return 0
