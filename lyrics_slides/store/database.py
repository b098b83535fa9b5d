"""
Thread-safe SQLite song store for lyrics-slides.

One row per song in `songs`. The lookup chain reads it through two
queries: an exact title match (cache hit) and a broad, Unicode
case-insensitive match used to find duplicate candidates. upsert_song()
runs that match and the following write as one locked transaction, so
concurrent saves of the same song never produce two rows.

Schema:
    songs:  id, title, artist, lyrics, source, created_at, updated_at

Usage:
    store = SongStore(Path("~/.lyrics-slides/songs.db").expanduser())

    song_id = store.insert({"title": "Song", "artist": "", "lyrics": "...", "source": "api"})
    store.update(song_id, {"lyrics": "..."})

    # From coroutines
    rows = await store.afind_by_exact_title("Song")
"""

import asyncio
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator

from ..core.exceptions import StoreError


DATABASE_VERSION = 1

# Columns callers may write
SONG_FIELDS = ("title", "artist", "lyrics", "source")


def _casefold(value: Any) -> str:
    return value.casefold() if isinstance(value, str) else ""


def _like_pattern(title: str) -> str:
    escaped = title.casefold().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS songs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    artist TEXT DEFAULT '',
    lyrics TEXT,
    source TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_songs_title ON songs(title);
"""


class SongStore:
    """
    Thread-safe SQLite song store.

    Uses a single persistent connection with thread locking for safety.
    All public methods acquire self._lock before executing; the a-prefixed
    coroutines run the same methods in a worker thread.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if not self.db_path.parent.exists():
            raise StoreError(
                f"Parent directory does not exist: {self.db_path.parent}",
                details={"path": str(self.db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to initialize database: {e}",
                details={"path": str(self.db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get the persistent database connection as a context manager.

        The connection is created once and reused; sqlite3 errors raised
        inside the block are converted to StoreError.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # We handle thread safety with _lock
            )
            self._conn.row_factory = sqlite3.Row
            # SQLite LIKE only folds ASCII letters
            self._conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield self._conn
        except sqlite3.Error as e:
            raise StoreError(f"Database operation failed: {e}", details={"path": str(self.db_path)}) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = cursor.fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise StoreError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by_exact_title(self, title: str) -> list[dict[str, Any]]:
        """Songs whose title equals `title` exactly (case-sensitive)."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "SELECT * FROM songs WHERE title = ? ORDER BY updated_at DESC, id DESC",
                    (title,)
                )
                return [dict(row) for row in cursor.fetchall()]

    def find_by_title(self, title: str) -> list[dict[str, Any]]:
        """Songs whose title contains `title`, ignoring case (Unicode casefold)."""
        with self._lock:
            with self._get_connection() as conn:
                return self._select_by_title(conn, title)

    def get_by_id(self, song_id: int) -> dict[str, Any] | None:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT * FROM songs WHERE id = ?", (song_id,))
                row = cursor.fetchone()
                return dict(row) if row else None

    def count(self) -> int:
        with self._lock:
            with self._get_connection() as conn:
                return conn.execute("SELECT COUNT(*) FROM songs").fetchone()[0]

    def _select_by_title(self, conn: sqlite3.Connection, title: str) -> list[dict[str, Any]]:
        cursor = conn.execute(
            "SELECT * FROM songs WHERE casefold(title) LIKE ? ESCAPE '\\' ORDER BY id",
            (_like_pattern(title),)
        )
        return [dict(row) for row in cursor.fetchall()]

    # =========================================================================
    # Writes
    # =========================================================================

    def insert(self, record: dict[str, Any]) -> int:
        """
        Insert a song and return its database ID.

        Raises:
            StoreError: If the record has no title
        """
        self._check_title(record)
        with self._lock:
            with self._get_connection() as conn:
                song_id = self._insert_row(conn, record)
                conn.commit()
                return song_id

    def update(self, song_id: int, fields: dict[str, Any]) -> bool:
        """
        Update selected fields of a song. Returns False if the ID does not exist.

        Raises:
            StoreError: If fields contains a column that cannot be written
        """
        self._check_fields(fields)
        if not fields:
            return self.get_by_id(song_id) is not None

        with self._lock:
            with self._get_connection() as conn:
                updated = self._update_row(conn, song_id, fields)
                conn.commit()
                return updated

    def upsert_song(self, record: dict[str, Any], matches: Callable[[dict[str, Any]], bool]) -> tuple[int, bool]:
        """
        Update the first stored song accepted by `matches`, or insert `record`.

        Candidates are the songs whose title contains record["title"]. The
        lookup and the write happen in one transaction under the store lock.
        On a match the lyrics are replaced, and the source too when the
        record carries one.

        Returns:
            (song_id, created)

        Raises:
            StoreError: If the record has no title or the write fails
        """
        self._check_title(record)
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    candidates = self._select_by_title(conn, record["title"])
                    match = next((row for row in candidates if matches(row)), None)

                    if match is None:
                        song_id, created = self._insert_row(conn, record), True
                    else:
                        fields = {"lyrics": record.get("lyrics")}
                        if record.get("source"):
                            fields["source"] = record["source"]
                        self._update_row(conn, match["id"], fields)
                        song_id, created = match["id"], False
                except Exception:
                    conn.rollback()
                    raise
                conn.commit()
                return song_id, created

    def delete(self, song_id: int) -> bool:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("DELETE FROM songs WHERE id = ?", (song_id,))
                conn.commit()
                return cursor.rowcount > 0

    def _check_title(self, record: dict[str, Any]) -> None:
        if not record.get("title"):
            raise StoreError("Cannot insert a song without title", details={"record": dict(record)})

    def _check_fields(self, fields: dict[str, Any]) -> None:
        unknown = [name for name in fields if name not in SONG_FIELDS]
        if unknown:
            raise StoreError(f"Unknown song fields: {', '.join(unknown)}", details={"fields": unknown})

    def _insert_row(self, conn: sqlite3.Connection, record: dict[str, Any]) -> int:
        now = self._now_iso()
        cursor = conn.execute("""
            INSERT INTO songs (title, artist, lyrics, source, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            record["title"], record.get("artist") or "", record.get("lyrics"),
            record.get("source"), now, now
        ))
        return cursor.lastrowid

    def _update_row(self, conn: sqlite3.Connection, song_id: int, fields: dict[str, Any]) -> bool:
        values = dict(fields)
        if "artist" in values:
            values["artist"] = values["artist"] or ""
        values["updated_at"] = self._now_iso()

        assignments = ", ".join(f"{name} = ?" for name in values)
        cursor = conn.execute(
            f"UPDATE songs SET {assignments} WHERE id = ?",
            (*values.values(), song_id)
        )
        return cursor.rowcount > 0

    # =========================================================================
    # Async wrappers
    # =========================================================================

    async def afind_by_exact_title(self, title: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.find_by_exact_title, title)

    async def afind_by_title(self, title: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.find_by_title, title)

    async def ainsert(self, record: dict[str, Any]) -> int:
        return await asyncio.to_thread(self.insert, record)

    async def aupdate(self, song_id: int, fields: dict[str, Any]) -> bool:
        return await asyncio.to_thread(self.update, song_id, fields)

    async def aupsert_song(self, record: dict[str, Any], matches: Callable[[dict[str, Any]], bool]) -> tuple[int, bool]:
        return await asyncio.to_thread(self.upsert_song, record, matches)
