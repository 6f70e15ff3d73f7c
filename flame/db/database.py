"""SQLite store that backs the dashboard models."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import peewee

from flame.core.logging_utils import get_logger
from flame.db.models import ALL_MODELS, database_proxy

logger = get_logger(__name__)

IN_MEMORY = ":memory:"
SQLITE_PRAGMAS = {
    "journal_mode": "wal",
    "synchronous": "normal",
    "foreign_keys": 1,
}


class Database:
    """Owns the SQLite file and binds the model proxy to it.

    Creating a ``Database`` rebinds every model, so the most recently created
    instance is the one queries run against.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        if path != IN_MEMORY:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        # worker threads get their own connection; the flag only lifts sqlite3's check
        self._sqlite = peewee.SqliteDatabase(path, pragmas=SQLITE_PRAGMAS, check_same_thread=False)
        database_proxy.initialize(self._sqlite)

    def __repr__(self) -> str:
        return f"Database(path={self.display_path!r})"

    @property
    def database(self) -> peewee.SqliteDatabase:
        return self._sqlite

    @property
    def display_path(self) -> str:
        """File name only, for logs."""
        return self.path if self.path == IN_MEMORY else Path(self.path).name

    def atomic(self) -> Any:
        """Transaction at the outermost level, savepoint when nested."""
        return self._sqlite.atomic()

    @contextlib.contextmanager
    def session(self) -> Iterator[peewee.SqliteDatabase]:
        """Hold a connection for the block, reusing the calling thread's open one."""
        if self._sqlite.is_closed():
            with self._sqlite.connection_context():
                yield self._sqlite
        else:
            yield self._sqlite

    def migrate(self) -> None:
        """Create missing tables; existing ones are left as they are."""
        with self.session():
            self._sqlite.create_tables(ALL_MODELS, safe=True)
        logger.info(
            "db_migrated",
            extra={"path": self.display_path, "tables": [m._meta.table_name for m in ALL_MODELS]},
        )

    def close(self) -> None:
        if not self._sqlite.is_closed():
            self._sqlite.close()
