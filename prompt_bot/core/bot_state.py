from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from .message_tracker import MessageTracker
from .persistence_mirror import (
    POINTS_NAMESPACE,
    PSEUDONYMS_NAMESPACE,
    SUBMISSIONS_NAMESPACE,
    USERS_NAMESPACE,
    PersistenceMirror,
)
from .points_ledger import PointsLedger
from .submission_log import SubmissionLog
from .user_registry import UserRegistry


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BotState:
    """All mutable bot state, owned by the runner and injected everywhere else."""

    registry: UserRegistry
    ledger: PointsLedger
    submissions: SubmissionLog
    tracker: MessageTracker
    mirror: PersistenceMirror

    @classmethod
    def create(
        cls,
        mirror: Optional[PersistenceMirror] = None,
        rng: Optional[random.Random] = None,
    ) -> "BotState":
        mirror = mirror or PersistenceMirror(storage=None)
        ledger = PointsLedger(mirror)
        return cls(
            registry=UserRegistry(ledger, mirror, rng=rng),
            ledger=ledger,
            submissions=SubmissionLog(mirror),
            tracker=MessageTracker(),
            mirror=mirror,
        )

    async def rehydrate(self) -> None:
        """Load the mirrored registries once at startup."""

        loaded = await self.mirror.load_all()
        if not loaded:
            return
        users, pseudonyms = self.registry.rehydrate(
            loaded.get(USERS_NAMESPACE, []),
            loaded.get(PSEUDONYMS_NAMESPACE, []),
        )
        points = self.ledger.rehydrate(loaded.get(POINTS_NAMESPACE, []))
        submissions = self.submissions.rehydrate(loaded.get(SUBMISSIONS_NAMESPACE, []))
        logger.info(
            "Rehydrated %s users, %s pseudonyms, %s point records, %s submissions",
            users,
            pseudonyms,
            points,
            submissions,
        )


__all__ = ["BotState"]
