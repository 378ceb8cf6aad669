"""DocumentStore: aiosqlite-backed JSON documents for finances, memories and profiles."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import aiosqlite

from src.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

FINANCES = "finances"
MEMORIES = "memories"
PROFILES = "profiles"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (collection, id)
)
"""

_CREATE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_documents_user
ON documents (collection, user_id)
"""


class DocumentStore:
    """Persists per-user JSON documents grouped into collections.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``);
    callers hand the instance to whatever needs persistence.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    async def _connect(self) -> aiosqlite.Connection:
        """Open a connection and ensure the schema exists."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        db.row_factory = aiosqlite.Row
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.execute(_CREATE_INDEX)
            await db.commit()
            self._initialised = True
        return db

    @staticmethod
    def _row_to_doc(row: aiosqlite.Row) -> dict[str, Any]:
        doc = json.loads(row["data"])
        doc["id"] = row["id"]
        doc["user_id"] = row["user_id"]
        doc.setdefault("created_at", row["created_at"])
        doc.setdefault("updated_at", row["updated_at"])
        return doc

    # -- Write ---------------------------------------------------------------

    async def set(self, collection: str, doc_id: str, user_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document, preserving its original created_at."""
        now = datetime.now(UTC).isoformat()
        payload = json.dumps({k: v for k, v in data.items() if k not in ("id", "user_id")})
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT created_at FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            existing = await cursor.fetchone()
            created_at = existing["created_at"] if existing else now
            await db.execute(
                """
                INSERT OR REPLACE INTO documents
                    (collection, id, user_id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (collection, doc_id, user_id, payload, created_at, now),
            )
            await db.commit()
            logger.debug("Stored %s/%s for user %s", collection, doc_id, user_id)
        finally:
            await db.close()

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> bool:
        """Shallow-merge *changes* into a document. Returns False if it does not exist."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return False
            merged = {**json.loads(row["data"]), **changes}
            merged.pop("id", None)
            merged.pop("user_id", None)
            await db.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (json.dumps(merged), datetime.now(UTC).isoformat(), collection, doc_id),
            )
            await db.commit()
            return True
        finally:
            await db.close()

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns True if a row was removed."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()

    # -- Read ----------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document, or None if not found."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT * FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
            return self._row_to_doc(row) if row else None
        finally:
            await db.close()

    async def list_for_user(self, collection: str, user_id: str) -> list[dict[str, Any]]:
        """All of a user's documents in *collection*, oldest first."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                """
                SELECT * FROM documents
                WHERE collection = ? AND user_id = ?
                ORDER BY created_at ASC
                """,
                (collection, user_id),
            )
            rows = await cursor.fetchall()
            return [self._row_to_doc(row) for row in rows]
        finally:
            await db.close()
