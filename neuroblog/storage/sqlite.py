"""SQLite-backed suggestion store."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from neuroblog.core.errors import NotFound, PersistenceError, StateConflict
from neuroblog.models.content import Post, Suggestion, SuggestionStatus
from neuroblog.storage.base import SuggestionStore

logger = logging.getLogger(__name__)


def _ts(moment: datetime) -> str:
    """Serialize timestamps as UTC ISO strings so they sort lexically."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


class SQLiteSuggestionStore(SuggestionStore):
    """Stores suggestions and posts in a local SQLite database.

    Indexed columns carry what the pipeline filters on; the full entity
    is kept as JSON in ``data``.

    Queries run synchronously on the calling thread. They are short
    statements against a local file, so they do not yield to the event loop.
    """

    def __init__(self, db_path: str = "neuroblog.db"):
        self.db_path = Path(db_path)
        if self.db_path.parent != Path("."):
            self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path, timeout=10)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}")
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    def _init_database(self):
        """Create tables and indexes."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS suggestions (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL,
                    source TEXT NOT NULL,
                    external_id TEXT,
                    generated_at TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS posts (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL,
                    news_source TEXT,
                    created_at TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            # Create indexes for performance
            conn.execute("CREATE INDEX IF NOT EXISTS idx_suggestion_status ON suggestions(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_suggestion_generated ON suggestions(generated_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_post_created ON posts(created_at)")

    async def create_suggestion(self, suggestion: Suggestion) -> Suggestion:
        with self._connect() as conn:
            self._insert_suggestion(conn, suggestion)
        return suggestion

    async def get_suggestion(self, suggestion_id: str) -> Optional[Suggestion]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM suggestions WHERE id = ?", (suggestion_id,)
            ).fetchone()
        return Suggestion.model_validate_json(row[0]) if row else None

    async def find_suggestions(
        self,
        status: Optional[SuggestionStatus] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        query = "SELECT data FROM suggestions WHERE 1=1"
        params: list = []
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        if since is not None:
            query += " AND generated_at >= ?"
            params.append(_ts(since))
        query += " ORDER BY generated_at DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Suggestion.model_validate_json(row[0]) for row in rows]

    async def count_suggestions(self, status: Optional[SuggestionStatus] = None) -> int:
        with self._connect() as conn:
            if status is None:
                row = conn.execute("SELECT COUNT(*) FROM suggestions").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM suggestions WHERE status = ?", (status.value,)
                ).fetchone()
        return row[0]

    async def update_suggestion(
        self,
        suggestion: Suggestion,
        expected_status: Optional[SuggestionStatus] = None,
    ) -> Suggestion:
        with self._connect() as conn:
            self._write_suggestion(conn, suggestion, expected_status)
        return suggestion

    async def delete_suggestion(self, suggestion_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM suggestions WHERE id = ?", (suggestion_id,))
        return cursor.rowcount > 0

    async def create_post(self, post: Post) -> Post:
        with self._connect() as conn:
            self._insert_post(conn, post)
        return post

    async def get_post(self, post_id: str) -> Optional[Post]:
        with self._connect() as conn:
            row = conn.execute("SELECT data FROM posts WHERE id = ?", (post_id,)).fetchone()
        return Post.model_validate_json(row[0]) if row else None

    async def find_posts(
        self, since: Optional[datetime] = None, limit: Optional[int] = None
    ) -> List[Post]:
        query = "SELECT data FROM posts"
        params: list = []
        if since is not None:
            query += " WHERE created_at >= ?"
            params.append(_ts(since))
        query += " ORDER BY created_at DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Post.model_validate_json(row[0]) for row in rows]

    async def commit_transition(
        self,
        suggestion: Suggestion,
        expected_status: SuggestionStatus,
        post: Optional[Post] = None,
    ) -> Suggestion:
        # One transaction: a failed status check rolls back the post insert
        with self._connect() as conn:
            self._write_suggestion(conn, suggestion, expected_status)
            if post is not None:
                self._insert_post(conn, post, replace=True)
        return suggestion

    def _insert_suggestion(self, conn: sqlite3.Connection, suggestion: Suggestion) -> None:
        conn.execute(
            """
            INSERT INTO suggestions (id, title, status, source, external_id, generated_at, data)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                suggestion.id,
                suggestion.title,
                suggestion.status.value,
                suggestion.source,
                suggestion.external_id,
                _ts(suggestion.generated_at),
                suggestion.model_dump_json(),
            ),
        )

    def _write_suggestion(
        self,
        conn: sqlite3.Connection,
        suggestion: Suggestion,
        expected_status: Optional[SuggestionStatus],
    ) -> None:
        query = "UPDATE suggestions SET title = ?, status = ?, source = ?, external_id = ?, data = ? WHERE id = ?"
        params = [
            suggestion.title,
            suggestion.status.value,
            suggestion.source,
            suggestion.external_id,
            suggestion.model_dump_json(),
            suggestion.id,
        ]
        if expected_status is not None:
            query += " AND status = ?"
            params.append(expected_status.value)

        cursor = conn.execute(query, params)
        if cursor.rowcount == 1:
            return

        row = conn.execute(
            "SELECT status FROM suggestions WHERE id = ?", (suggestion.id,)
        ).fetchone()
        if row is None:
            raise NotFound(suggestion.id)
        raise StateConflict(suggestion.id, row[0], expected_status.value)

    def _insert_post(
        self, conn: sqlite3.Connection, post: Post, replace: bool = False
    ) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        conn.execute(
            f"""
            {verb} INTO posts (id, title, status, news_source, created_at, data)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                post.id,
                post.title,
                post.status.value,
                post.news_source,
                _ts(post.created_at),
                post.model_dump_json(),
            ),
        )
