"""Best-effort write-behind mirror of the in-memory registries.

Registry mutations call :meth:`PersistenceMirror.enqueue` and return at once;
a single background task drains the queue into :class:`MirrorStorageEngine`.
Any storage failure is logged and dropped. The bot never waits on the mirror
except through :meth:`flush` (tests, shutdown).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .error_engine import ErrorEngine
from .storage_engine import MirrorStorageEngine


logger = logging.getLogger(__name__)

USERS_NAMESPACE = "users"
PSEUDONYMS_NAMESPACE = "pseudonyms"
POINTS_NAMESPACE = "points"
SUBMISSIONS_NAMESPACE = "submissions"
PROMPTS_NAMESPACE = "prompts"

REHYDRATED_NAMESPACES = (
    USERS_NAMESPACE,
    PSEUDONYMS_NAMESPACE,
    POINTS_NAMESPACE,
    SUBMISSIONS_NAMESPACE,
)

Document = Tuple[int, str, Any]


@dataclass(slots=True, frozen=True)
class MirrorWrite:
    user_id: int
    namespace: str
    key: str
    value: Any


class PersistenceMirror:
    def __init__(
        self,
        storage: Optional[MirrorStorageEngine] = None,
        error_engine: Optional[ErrorEngine] = None,
    ) -> None:
        self._storage = storage
        self._error_engine = error_engine or ErrorEngine()
        self._queue: "asyncio.Queue[MirrorWrite]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task[None]] = None
        self._enabled = storage is not None
        self.failed_writes = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Open storage and launch the drain task; degrade to memory-only on failure."""

        if not self._enabled or self._worker is not None:
            return
        assert self._storage is not None
        try:
            await self._storage.initialize()
        except Exception as exc:
            self._error_engine.log_exception(exc, context="PersistenceMirror.start")
            logger.warning("Persistence unavailable; continuing with in-memory storage only")
            self._enabled = False
            return
        self._worker = asyncio.create_task(self._drain(), name="promptbot-persistence-mirror")

    def enqueue(self, namespace: str, user_id: int, key: str, value: Any) -> None:
        if not self._enabled:
            return
        self._queue.put_nowait(MirrorWrite(user_id=int(user_id), namespace=namespace, key=key, value=value))

    async def _drain(self) -> None:
        assert self._storage is not None
        while True:
            write = await self._queue.get()
            try:
                await self._storage.upsert(write.user_id, write.namespace, write.key, write.value)
            except Exception as exc:
                self.failed_writes += 1
                self._error_engine.log_exception(
                    exc,
                    context=f"PersistenceMirror write {write.namespace}/{write.user_id}/{write.key}",
                )
            finally:
                self._queue.task_done()

    async def flush(self) -> None:
        """Wait until every queued write has been attempted."""

        if self._worker is None:
            return
        await self._queue.join()

    async def load_all(self) -> Dict[str, List[Document]]:
        """Bulk-read the rehydrated namespaces; empty on any failure."""

        if not self._enabled:
            logger.info("Persistence disabled; starting with empty in-memory state")
            return {}
        assert self._storage is not None
        loaded: Dict[str, List[Document]] = {}
        try:
            for namespace in REHYDRATED_NAMESPACES:
                loaded[namespace] = await self._storage.load_namespace(namespace)
                logger.info("Loaded %s %s documents", len(loaded[namespace]), namespace)
        except Exception as exc:
            self._error_engine.log_exception(exc, context="PersistenceMirror.load_all")
            logger.warning("Continuing with fresh in-memory storage")
            return {}
        return loaded

    async def close(self) -> None:
        worker = self._worker
        if worker is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning("Persistence mirror closed with %s pending writes", self._queue.qsize())
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        if self._storage is not None:
            await self._storage.close()


__all__ = [
    "PersistenceMirror",
    "MirrorWrite",
    "USERS_NAMESPACE",
    "PSEUDONYMS_NAMESPACE",
    "POINTS_NAMESPACE",
    "SUBMISSIONS_NAMESPACE",
    "PROMPTS_NAMESPACE",
]
