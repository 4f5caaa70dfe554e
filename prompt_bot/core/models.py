"""Plain data records shared by the registries, pipeline and broadcaster."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


SUPPORTED_LANGUAGES = ("en", "ja")
LANGUAGE_LABELS = {"en": "English", "ja": "Japanese"}
LANGUAGE_FLAGS = {"en": "🇺🇸", "ja": "🇯🇵"}
COHORT_LABELS = {"en": "en-learners", "ja": "ja-learners"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def language_label(code: Optional[str]) -> str:
    if not code:
        return "Not set"
    return f"{LANGUAGE_FLAGS.get(code, '')} {LANGUAGE_LABELS.get(code, code)}".strip()


def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(str(raw))
    except (TypeError, ValueError):
        return utcnow()


@dataclass(slots=True)
class UserProfile:
    user_id: int
    team_id: Optional[int] = None
    target_language: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def native_language(self) -> Optional[str]:
        """The language the user is *not* practising."""

        if self.target_language == "ja":
            return "en"
        if self.target_language == "en":
            return "ja"
        return None

    def to_record(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "team_id": self.team_id,
            "target_language": self.target_language,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, user_id: int, record: Dict[str, Any]) -> "UserProfile":
        target = record.get("target_language")
        return cls(
            user_id=int(user_id),
            team_id=record.get("team_id"),
            target_language=target if target in SUPPORTED_LANGUAGES else None,
            created_at=_parse_timestamp(record.get("created_at")),
        )


@dataclass(slots=True)
class Pseudonym:
    handle: str
    emoji1: str
    emoji2: str
    cohort_label: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "emoji1": self.emoji1,
            "emoji2": self.emoji2,
            "cohort_label": self.cohort_label,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Pseudonym":
        handle = str(record["handle"])
        # Documents without the emoji fields: the pair follows the space in the handle.
        _, _, emoji = handle.partition(" ")
        return cls(
            handle=handle,
            emoji1=str(record.get("emoji1") or emoji[:1]),
            emoji2=str(record.get("emoji2") or emoji[1:2]),
            cohort_label=record.get("cohort_label"),
        )


@dataclass(slots=True, frozen=True)
class Submission:
    """One validated response. Frozen; the pipeline stores it with its feedback already set."""

    submission_id: str
    user_id: int
    pseudonym: str
    text: str
    language: str
    target_language: str
    created_at: datetime = field(default_factory=utcnow)
    feedback: Optional[str] = None
    public_channel_id: Optional[int] = None
    public_message_id: Optional[int] = None
    parent_message_id: Optional[int] = None

    @property
    def is_reply(self) -> bool:
        return self.parent_message_id is not None

    def to_record(self) -> Dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "user_id": self.user_id,
            "pseudonym": self.pseudonym,
            "text": self.text,
            "language": self.language,
            "target_language": self.target_language,
            "created_at": self.created_at.isoformat(),
            "feedback": self.feedback,
            "public_channel_id": self.public_channel_id,
            "public_message_id": self.public_message_id,
            "parent_message_id": self.parent_message_id,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Submission":
        return cls(
            submission_id=str(record["submission_id"]),
            user_id=int(record["user_id"]),
            pseudonym=str(record.get("pseudonym", "")),
            text=str(record.get("text", "")),
            language=str(record.get("language", "")),
            target_language=str(record.get("target_language", "")),
            created_at=_parse_timestamp(record.get("created_at")),
            feedback=record.get("feedback"),
            public_channel_id=record.get("public_channel_id"),
            public_message_id=record.get("public_message_id"),
            parent_message_id=record.get("parent_message_id"),
        )


@dataclass(slots=True, frozen=True)
class BilingualPrompt:
    category: str
    en: str
    ja: str

    def for_language(self, code: str) -> str:
        return self.ja if code == "ja" else self.en

    @property
    def topic(self) -> str:
        return self.category.replace("_", " ").upper()

    def to_record(self) -> Dict[str, str]:
        return {"category": self.category, "en": self.en, "ja": self.ja}


@dataclass(slots=True, frozen=True)
class MessageRef:
    """Where a posted message lives, so later events can be correlated."""

    channel_id: int
    message_id: int


@dataclass(slots=True, frozen=True)
class ChannelMember:
    user_id: int
    display_name: str = ""
    is_bot: bool = False


@dataclass(slots=True)
class PromptBroadcast:
    broadcast_id: str
    prompt: BilingualPrompt
    trigger: str
    created_at: datetime = field(default_factory=utcnow)
    announcement: Optional[MessageRef] = None
    responses: List[str] = field(default_factory=list)
    delivered: int = 0
    reminded: int = 0
    failed: int = 0


__all__ = [
    "SUPPORTED_LANGUAGES",
    "LANGUAGE_LABELS",
    "LANGUAGE_FLAGS",
    "COHORT_LABELS",
    "UserProfile",
    "Pseudonym",
    "Submission",
    "BilingualPrompt",
    "MessageRef",
    "ChannelMember",
    "PromptBroadcast",
    "language_label",
    "utcnow",
]
