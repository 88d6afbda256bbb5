"""
Database connection and transaction management.
One Store wraps one SQLite connection for the lifetime of the process; it is
created at startup and handed to every service function.
"""
import logging
import shutil
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from chitfund.exceptions import ConnectionError, ConstraintError

logger = logging.getLogger(__name__)


def ensure_database_file(db_path: Path, bundled_path: Optional[Path] = None) -> bool:
    """
    Copy the bundled database into place if the target file is missing.
    Returns True when a copy was made. A missing or unreadable bundled file
    is tolerated: the store is then created empty on open.
    """
    db_path = Path(db_path)
    if db_path.exists() or bundled_path is None:
        return False

    bundled_path = Path(bundled_path)
    if not bundled_path.exists():
        logger.info(f"No bundled database at {bundled_path}, a new one will be created")
        return False

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(bundled_path, db_path)
    except OSError as e:
        logger.warning(f"Could not copy bundled database, will create new one: {e}")
        return False

    logger.info(f"Database copied from {bundled_path} to {db_path}")
    return True


class Store:
    """SQLite store handle with explicit transactions."""

    def __init__(self, path):
        self.path = Path(path)
        self._conn = None
        self._depth = 0

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self):
        """Open the connection. Failure here is fatal to startup."""
        if self._conn is not None:
            return self
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode; multi-statement writes go through transaction()
            conn = sqlite3.connect(str(self.path), isolation_level=None, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error opening database {self.path}: {e}")
            raise ConnectionError(f"Could not open database: {e}") from e
        self._conn = conn
        logger.info(f"Connected to SQLite database at {self.path}")
        return self

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Database connection closed")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise ConnectionError("Database connection is not open")
        return self._conn

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self, immediate: bool = False):
        """
        Run the enclosed statements atomically.

        immediate=True takes SQLite's write lock up front (BEGIN IMMEDIATE),
        which serializes read-check-write sequences against other writers.
        Nested calls join the outer transaction.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        conn = self.conn
        conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        self._depth = 1
        try:
            yield self
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            self._depth = 0

    def execute(self, query: str, params=()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(query, params)
        except sqlite3.IntegrityError as e:
            raise ConstraintError(_describe_integrity_error(e)) from e

    def fetchone(self, query: str, params=()) -> Optional[dict]:
        row = self.execute(query, params).fetchone()
        return dict(row) if row else None

    def fetchall(self, query: str, params=()) -> list:
        return [dict(row) for row in self.execute(query, params).fetchall()]

    def scalar(self, query: str, params=()):
        row = self.execute(query, params).fetchone()
        return row[0] if row else None


def _describe_integrity_error(error: sqlite3.IntegrityError) -> str:
    message = str(error)
    if message.startswith("UNIQUE constraint failed:"):
        columns = message.split(":", 1)[1].strip()
        return f"Duplicate value for {columns}"
    return message


def open_store(path, bundled_path: Optional[Path] = None) -> Store:
    """Open the store and bring its schema up to date."""
    from chitfund.schema import initialize_schema

    ensure_database_file(Path(path), bundled_path)
    store = Store(path).open()
    try:
        initialize_schema(store)
    except Exception:
        store.close()
        raise
    return store
