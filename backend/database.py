import sqlite3
import os
from datetime import datetime
from typing import Optional, Protocol
from contextlib import contextmanager

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
DATABASE_PATH = os.path.join(BACKEND_DIR, "ai_todo.db")


class KeyValueStorage(Protocol):
    """The local-storage primitive the task store persists through."""

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...


class MemoryStorage:
    """Dict-backed storage, for tests and embedding."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize database by running Alembic migrations."""
    import subprocess

    # Migrations ship with the source tree only (see pyproject.toml)
    if not os.path.exists(os.path.join(BACKEND_DIR, "alembic.ini")):
        raise RuntimeError(
            f"alembic.ini not found in {BACKEND_DIR}; install with `pip install -e .` "
            "or run from a source checkout"
        )

    # Run alembic from the backend directory so alembic.ini is found
    subprocess.run(
        ["alembic", "-x", f"db_path={DATABASE_PATH}", "upgrade", "head"],
        cwd=BACKEND_DIR,
        check=True
    )


class SqliteStorage:
    """
    Key-value storage in the local_storage table.
    Read failures count as "no data"; write failures propagate.
    """

    def get(self, key: str) -> Optional[bytes]:
        try:
            with get_db() as conn:
                row = conn.execute(
                    "SELECT value FROM local_storage WHERE key = ?",
                    (key,)
                ).fetchone()
        except sqlite3.Error as e:
            print(f"Could not read {key!r} from local storage: {e}")
            return None
        if not row:
            return None
        value = row["value"]
        # Rows written by hand may hold TEXT rather than BLOB
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        now = datetime.now().isoformat()
        with get_db() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO local_storage (key, value, updated_at) VALUES (?, ?, ?)",
                (key, sqlite3.Binary(value), now)
            )
            conn.commit()
