"""
Persistent key-value byte stores backing the catalog.

Every backend honours the same contract: ``read`` returns ``None`` when a
key is absent or unreadable, ``write`` returns ``False`` instead of
raising, and ``remove`` is a no-op for missing keys. Failures are logged
and counted, never propagated.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, LargeBinary, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import get_logger

logger = get_logger()

Base = declarative_base()


class KeyValueStore(Protocol):
    def read(self, key: str) -> Optional[bytes]: ...

    def write(self, key: str, data: bytes) -> bool: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, data: bytes) -> bool:
        self._data[key] = bytes(data)
        return True

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """One file per key inside a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.record_storage_failure(type(e).__name__)
            logger.error("Failed to read store file", path=str(path), error=str(e))
            return None

    def write(self, key: str, data: bytes) -> bool:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            # Atomic on POSIX and Windows
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            logger.record_storage_failure(type(e).__name__)
            logger.error("Failed to write store file", path=str(path), error=str(e))
            return False

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.record_storage_failure(type(e).__name__)
            logger.warning("Failed to remove store file", path=str(path), error=str(e))


class StoreEntry(Base):
    """A single key in the SQLite store."""

    __tablename__ = "store_entries"

    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def init_database(db_path: Path):
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy engine bound to the database
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    return engine


def get_session(engine):
    """
    Get database session.

    Args:
        engine: Engine returned by init_database

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine)
    return Session()


class SqliteStore:
    """Key-value store kept in a SQLite table via SQLAlchemy."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._engine = None
        try:
            self._engine = init_database(self.db_path)
        except (SQLAlchemyError, OSError) as e:
            logger.record_storage_failure(type(e).__name__)
            logger.error("Failed to initialize database", path=str(self.db_path), error=str(e))

    def read(self, key: str) -> Optional[bytes]:
        if self._engine is None:
            return None
        session = get_session(self._engine)
        try:
            entry = session.get(StoreEntry, key)
            return bytes(entry.value) if entry is not None else None
        except SQLAlchemyError as e:
            logger.record_storage_failure(type(e).__name__)
            logger.error("Failed to read database entry", key=key, error=str(e))
            return None
        finally:
            session.close()

    def write(self, key: str, data: bytes) -> bool:
        if self._engine is None:
            return False
        session = get_session(self._engine)
        try:
            entry = session.get(StoreEntry, key)
            if entry is None:
                session.add(StoreEntry(key=key, value=data))
            else:
                entry.value = data
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            logger.record_storage_failure(type(e).__name__)
            logger.error("Failed to write database entry", key=key, error=str(e))
            return False
        finally:
            session.close()

    def remove(self, key: str) -> None:
        if self._engine is None:
            return
        session = get_session(self._engine)
        try:
            session.query(StoreEntry).filter_by(key=key).delete()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.record_storage_failure(type(e).__name__)
            logger.warning("Failed to remove database entry", key=key, error=str(e))
        finally:
            session.close()


def open_store(location: str) -> KeyValueStore:
    """Pick a backend from a location string.

    ``:memory:`` gives a MemoryStore, ``*.db``/``*.sqlite`` a SqliteStore,
    anything else is treated as a directory for a FileStore.
    """
    if location == ":memory:":
        return MemoryStore()
    path = Path(location)
    if path.suffix in {".db", ".sqlite", ".sqlite3"}:
        return SqliteStore(path)
    return FileStore(path)
