from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .persistence_mirror import POINTS_NAMESPACE, PersistenceMirror


logger = logging.getLogger(__name__)

POINTS_KEY = "total"


class PointsLedger:
    """Per-user point totals.

    Totals never go down: ``increment`` clamps negative amounts to zero.
    ``top_n`` sorts by total descending; ties keep the order in which users
    first entered the ledger.
    """

    def __init__(self, mirror: Optional[PersistenceMirror] = None) -> None:
        self._points: Dict[int, int] = {}
        self._mirror = mirror

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._points

    def __len__(self) -> int:
        return len(self._points)

    def get(self, user_id: int) -> int:
        return self._points.get(user_id, 0)

    def ensure(self, user_id: int) -> bool:
        """Create a zero entry when missing. Returns True if one was created."""

        if user_id in self._points:
            return False
        self._points[user_id] = 0
        self._sync(user_id)
        return True

    def increment(self, user_id: int, amount: int) -> int:
        amount = max(int(amount), 0)
        total = self._points.get(user_id, 0) + amount
        self._points[user_id] = total
        self._sync(user_id)
        logger.debug("User %s +%s points (total %s)", user_id, amount, total)
        return total

    def top_n(self, n: int) -> List[Tuple[int, int]]:
        if n <= 0:
            return []
        # sorted() is stable, so equal totals keep insertion order.
        ranked = sorted(self._points.items(), key=lambda item: item[1], reverse=True)
        return ranked[:n]

    def rehydrate(self, documents: Iterable[Tuple[int, str, dict]]) -> int:
        loaded = 0
        for user_id, _key, document in documents:
            try:
                self._points[int(user_id)] = max(int(document.get("points", 0)), 0)
            except (AttributeError, TypeError, ValueError):
                continue
            loaded += 1
        return loaded

    def _sync(self, user_id: int) -> None:
        if self._mirror is not None:
            self._mirror.enqueue(
                POINTS_NAMESPACE,
                user_id,
                POINTS_KEY,
                {"user_id": user_id, "points": self._points[user_id]},
            )


__all__ = ["PointsLedger"]
