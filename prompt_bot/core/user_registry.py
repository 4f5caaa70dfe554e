"""User profiles and their pseudonyms.

:meth:`UserRegistry.get_or_create` is the single entry point that enforces
"every known user has a pseudonym and a points entry". Records that went
missing (for example after a partial restore from the mirror) are recreated
there and nowhere else.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, Iterable, Optional, Tuple

from prompt_bot.config import ConfigurationError

from .models import COHORT_LABELS, SUPPORTED_LANGUAGES, Pseudonym, UserProfile
from .persistence_mirror import PSEUDONYMS_NAMESPACE, USERS_NAMESPACE, PersistenceMirror
from .points_ledger import PointsLedger
from .pseudonyms import build_pseudonym


logger = logging.getLogger(__name__)

PROFILE_KEY = "profile"
PSEUDONYM_KEY = "handle"


class UserRegistry:
    def __init__(
        self,
        ledger: PointsLedger,
        mirror: Optional[PersistenceMirror] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._users: Dict[int, UserProfile] = {}
        self._pseudonyms: Dict[int, Pseudonym] = {}
        self._ledger = ledger
        self._mirror = mirror
        self._rng = rng or random.Random()

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def __len__(self) -> int:
        return len(self._users)

    def get(self, user_id: int) -> Optional[UserProfile]:
        return self._users.get(user_id)

    def get_or_create(self, user_id: int, team_id: Optional[int] = None) -> UserProfile:
        user = self._users.get(user_id)
        if user is None:
            user = UserProfile(user_id=user_id, team_id=team_id)
            self._users[user_id] = user
            self._sync_user(user)
            logger.info("Registered new user %s", user_id)

        if user_id not in self._pseudonyms:
            pseudonym = build_pseudonym(
                self._rng,
                cohort_label=COHORT_LABELS.get(user.target_language or ""),
            )
            self._pseudonyms[user_id] = pseudonym
            self._sync_pseudonym(user_id, pseudonym)
            logger.debug("Assigned pseudonym %s to user %s", pseudonym.handle, user_id)

        self._ledger.ensure(user_id)
        return user

    def pseudonym_for(self, user_id: int) -> Pseudonym:
        self.get_or_create(user_id)
        return self._pseudonyms[user_id]

    def peek_pseudonym(self, user_id: int) -> Optional[Pseudonym]:
        """Read-only lookup that never creates anything."""

        return self._pseudonyms.get(user_id)

    def set_target_language(self, user_id: int, language: str, team_id: Optional[int] = None) -> UserProfile:
        code = (language or "").strip().lower()
        if code not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(
                f"Unsupported target language '{language}'; expected one of {', '.join(SUPPORTED_LANGUAGES)}"
            )
        user = self.get_or_create(user_id, team_id)
        user.target_language = code
        self._sync_user(user)

        pseudonym = self._pseudonyms[user_id]
        pseudonym.cohort_label = COHORT_LABELS[code]
        self._sync_pseudonym(user_id, pseudonym)
        logger.info("User %s target language set to %s", user_id, code)
        return user

    def rehydrate(
        self,
        users: Iterable[Tuple[int, str, dict]],
        pseudonyms: Iterable[Tuple[int, str, dict]],
    ) -> Tuple[int, int]:
        user_count = 0
        for user_id, _key, document in users:
            try:
                self._users[int(user_id)] = UserProfile.from_record(int(user_id), document)
            except (AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed user document for %s", user_id)
                continue
            user_count += 1

        pseudonym_count = 0
        for user_id, _key, document in pseudonyms:
            try:
                self._pseudonyms[int(user_id)] = Pseudonym.from_record(document)
            except (KeyError, AttributeError, TypeError, ValueError):
                logger.warning("Skipping malformed pseudonym document for %s", user_id)
                continue
            pseudonym_count += 1
        return user_count, pseudonym_count

    def _sync_user(self, user: UserProfile) -> None:
        if self._mirror is not None:
            self._mirror.enqueue(USERS_NAMESPACE, user.user_id, PROFILE_KEY, user.to_record())

    def _sync_pseudonym(self, user_id: int, pseudonym: Pseudonym) -> None:
        if self._mirror is not None:
            self._mirror.enqueue(PSEUDONYMS_NAMESPACE, user_id, PSEUDONYM_KEY, pseudonym.to_record())


__all__ = ["UserRegistry"]
