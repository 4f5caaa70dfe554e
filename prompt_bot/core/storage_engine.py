from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from .error_engine import ErrorEngine


logger = logging.getLogger(__name__)


class MirrorStorageEngine:
    """Async SQLite-backed document table for the persistence mirror.

    Every registry is stored as JSON documents keyed by
    ``(user_id, namespace, key)``. There is no schema per registry; the
    namespaces are ``users``, ``pseudonyms``, ``points``, ``submissions``
    and ``prompts``.
    """

    def __init__(self, db_path: str, error_engine: Optional[ErrorEngine] = None) -> None:
        self._project_root = Path(__file__).resolve().parents[2]
        raw_path = Path(db_path)
        if raw_path.is_absolute():
            resolved = raw_path
        else:
            resolved = (self._project_root / raw_path).resolve()

        self._db_path = resolved
        self._conn: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._error_engine = error_engine or ErrorEngine()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def initialize(self) -> None:
        """Open the database and ensure the document table exists.

        Safe to call multiple times; subsequent calls are no-ops.
        """

        if self._conn is not None:
            return

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(self._db_path)
            await self._conn.execute("PRAGMA journal_mode=WAL;")
            await self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    user_id     INTEGER NOT NULL,
                    namespace   TEXT    NOT NULL,
                    key         TEXT    NOT NULL,
                    value_json  TEXT    NOT NULL,
                    updated_at  TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (user_id, namespace, key)
                )
                """
            )
            await self._conn.commit()
            logger.info("MirrorStorageEngine initialised at %s", self._db_path)
        except Exception as exc:
            self._error_engine.log_exception(exc, context="MirrorStorageEngine.initialize")
            self._conn = None
            raise

    async def close(self) -> None:
        conn = self._conn
        if conn is None:
            return
        self._conn = None
        await conn.close()

    async def upsert(self, user_id: int, namespace: str, key: str, value: Any) -> None:
        """Store a JSON-serialisable document for a user + namespace + key."""

        if self._conn is None:
            await self.initialize()

        assert self._conn is not None  # for type checkers

        payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False)

        async with self._lock:
            await self._conn.execute(
                """
                INSERT INTO documents (user_id, namespace, key, value_json, updated_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id, namespace, key)
                DO UPDATE SET
                    value_json = excluded.value_json,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (int(user_id), namespace, key, payload),
            )
            await self._conn.commit()

    async def load_namespace(self, namespace: str) -> List[Tuple[int, str, Any]]:
        """Return every ``(user_id, key, document)`` in a namespace.

        Rows come back in insertion order; undecodable rows are skipped.
        """

        if self._conn is None:
            await self.initialize()

        assert self._conn is not None  # for type checkers

        async with self._lock:
            cursor = await self._conn.execute(
                """
                SELECT user_id, key, value_json
                FROM documents
                WHERE namespace = ?
                ORDER BY rowid
                """,
                (namespace,),
            )
            rows = await cursor.fetchall()
            await cursor.close()

        result: List[Tuple[int, str, Any]] = []
        for user_id, key, value_json in rows:
            try:
                result.append((int(user_id), str(key), json.loads(value_json)))
            except json.JSONDecodeError:
                logger.warning("Skipping undecodable %s document for user %s", namespace, user_id)
                continue
        return result


__all__ = ["MirrorStorageEngine"]
