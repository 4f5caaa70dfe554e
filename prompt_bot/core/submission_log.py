from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .models import PromptBroadcast, Submission
from .persistence_mirror import SUBMISSIONS_NAMESPACE, PersistenceMirror


logger = logging.getLogger(__name__)


class SubmissionLog:
    """Validated submissions plus the prompt broadcasts they answer."""

    def __init__(self, mirror: Optional[PersistenceMirror] = None) -> None:
        self._submissions: Dict[str, Submission] = {}
        self._by_public_message: Dict[int, str] = {}
        self._broadcasts: List[PromptBroadcast] = []
        self._mirror = mirror

    def __len__(self) -> int:
        return len(self._submissions)

    def get(self, submission_id: str) -> Optional[Submission]:
        return self._submissions.get(submission_id)

    def add(self, submission: Submission) -> Submission:
        self._submissions[submission.submission_id] = submission
        if submission.public_message_id is not None:
            self._by_public_message[submission.public_message_id] = submission.submission_id
        latest = self.latest_broadcast
        if latest is not None and not submission.is_reply:
            latest.responses.append(submission.submission_id)
        self._sync(submission)
        return submission

    def by_public_message(self, message_id: int) -> Optional[Submission]:
        submission_id = self._by_public_message.get(message_id)
        return self._submissions.get(submission_id) if submission_id else None

    def for_user(self, user_id: int) -> List[Submission]:
        return [sub for sub in self._submissions.values() if sub.user_id == user_id]

    def count_for_user(self, user_id: int) -> int:
        return sum(1 for sub in self._submissions.values() if sub.user_id == user_id)

    def record_broadcast(self, broadcast: PromptBroadcast) -> None:
        self._broadcasts.append(broadcast)

    @property
    def latest_broadcast(self) -> Optional[PromptBroadcast]:
        return self._broadcasts[-1] if self._broadcasts else None

    @property
    def broadcasts(self) -> List[PromptBroadcast]:
        return list(self._broadcasts)

    def rehydrate(self, documents: Iterable[Tuple[int, str, dict]]) -> int:
        loaded = 0
        for _user_id, _key, document in documents:
            try:
                submission = Submission.from_record(document)
            except (KeyError, AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed submission document %s", _key)
                continue
            self._submissions[submission.submission_id] = submission
            if submission.public_message_id is not None:
                self._by_public_message[submission.public_message_id] = submission.submission_id
            loaded += 1
        return loaded

    def _sync(self, submission: Submission) -> None:
        if self._mirror is not None:
            self._mirror.enqueue(
                SUBMISSIONS_NAMESPACE,
                submission.user_id,
                submission.submission_id,
                submission.to_record(),
            )


__all__ = ["SubmissionLog"]
