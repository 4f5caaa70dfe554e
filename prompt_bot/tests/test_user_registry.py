import random

import pytest

from prompt_bot.config import ConfigurationError
from prompt_bot.core.persistence_mirror import PSEUDONYMS_NAMESPACE, USERS_NAMESPACE
from prompt_bot.core.points_ledger import PointsLedger
from prompt_bot.core.user_registry import UserRegistry


def _registry(mirror=None) -> UserRegistry:
    return UserRegistry(PointsLedger(mirror), mirror, rng=random.Random(3))


def test_get_or_create_is_idempotent():
    registry = _registry()
    first = registry.get_or_create(10, team_id=1)
    handle = registry.pseudonym_for(10).handle

    second = registry.get_or_create(10, team_id=1)

    assert second is first
    assert registry.pseudonym_for(10).handle == handle
    assert registry._ledger.get(10) == 0
    assert first.target_language is None
    assert len(registry) == 1


def test_get_or_create_repairs_missing_pseudonym_and_points():
    registry = _registry()
    registry.rehydrate([(5, "profile", {"target_language": "ja"})], [])
    assert registry.peek_pseudonym(5) is None
    assert 5 not in registry._ledger

    user = registry.get_or_create(5)

    assert user.target_language == "ja"
    assert registry.peek_pseudonym(5).cohort_label == "ja-learners"
    assert registry._ledger.get(5) == 0
    assert 5 in registry._ledger


def test_set_target_language_updates_cohort():
    registry = _registry()
    registry.set_target_language(3, "EN")
    assert registry.get(3).target_language == "en"
    assert registry.pseudonym_for(3).cohort_label == "en-learners"


def test_set_target_language_rejects_unsupported_codes():
    registry = _registry()
    with pytest.raises(ConfigurationError):
        registry.set_target_language(3, "fr")


def test_mutations_are_mirrored():
    mirror = _RecordingMirror()
    registry = _registry(mirror)
    registry.get_or_create(8)
    registry.set_target_language(8, "ja")

    namespaces = [write[0] for write in mirror.writes]
    assert namespaces.count(USERS_NAMESPACE) == 2
    assert namespaces.count(PSEUDONYMS_NAMESPACE) == 2
    assert mirror.writes[-1][3]["cohort_label"] == "ja-learners"


def test_rehydrate_skips_malformed_records():
    registry = _registry()
    users, pseudonyms = registry.rehydrate(
        [(1, "profile", {"target_language": "xx"}), ("bad", "profile", {})],
        [(1, "handle", {"handle": "AB-1 🐼🌱"}), (2, "handle", {})],
    )
    assert (users, pseudonyms) == (1, 1)
    assert registry.get(1).target_language is None
    assert registry.peek_pseudonym(1).emoji1 == "🐼"
    assert registry.peek_pseudonym(1).emoji2 == "🌱"


class _RecordingMirror:
    def __init__(self):
        self.writes = []

    def enqueue(self, namespace, user_id, key, value):
        self.writes.append((namespace, user_id, key, value))
