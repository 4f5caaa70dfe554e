from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(slots=True, frozen=True)
class TrackedPrompt:
    message_id: int
    prompt_text: str
    language: str


@dataclass(slots=True, frozen=True)
class TrackedFeedback:
    message_id: int
    feedback_text: str
    original_text: str


class MessageTracker:
    """Remembers each user's latest prompt DM and feedback DM.

    Only the most recent one of each kind is kept; a ❓ reaction on an older
    message is treated as untracked.
    """

    def __init__(self) -> None:
        self._prompts: Dict[int, TrackedPrompt] = {}
        self._feedback: Dict[int, TrackedFeedback] = {}

    def remember_prompt(self, user_id: int, message_id: int, prompt_text: str, language: str) -> None:
        self._prompts[user_id] = TrackedPrompt(message_id, prompt_text, language)

    def remember_feedback(self, user_id: int, message_id: int, feedback_text: str, original_text: str) -> None:
        self._feedback[user_id] = TrackedFeedback(message_id, feedback_text, original_text)

    def prompt_for(self, user_id: int, message_id: int) -> Optional[TrackedPrompt]:
        tracked = self._prompts.get(user_id)
        return tracked if tracked and tracked.message_id == message_id else None

    def feedback_for(self, user_id: int, message_id: int) -> Optional[TrackedFeedback]:
        tracked = self._feedback.get(user_id)
        return tracked if tracked and tracked.message_id == message_id else None


__all__ = ["MessageTracker", "TrackedPrompt", "TrackedFeedback"]
