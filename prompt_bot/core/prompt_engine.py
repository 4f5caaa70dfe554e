"""AI-backed prompt and feedback generation for PromptBot.

Every public coroutine here returns usable text: model failures, missing API
keys and malformed replies are logged and replaced by canned content from
:mod:`prompt_bot.core.tutor_prompts`. Callers never see an exception from
this module.
"""

from __future__ import annotations

import json
import logging
import random
import re
import uuid
from typing import Any, Optional

from .models import LANGUAGE_LABELS, BilingualPrompt, utcnow
from .openai_engine import OpenAIEngine
from .persistence_mirror import PROMPTS_NAMESPACE, PersistenceMirror
from .tutor_prompts import (
    DETAILED_CORRECTION_SYSTEM,
    FALLBACK_DETAILED_CORRECTION,
    FALLBACK_FEEDBACK,
    FALLBACK_READING_NOTE,
    FEEDBACK_SYSTEM,
    PROMPT_GENERATOR_SYSTEM,
    PROMPT_GENERATOR_USER,
    PROMPT_TEMPLATES,
    READING_ANNOTATION_SYSTEM,
)


logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*|\s*```")
# Generated prompts are not tied to a user; they are mirrored under id 0.
PROMPT_OWNER_ID = 0


class PromptGenerationError(ValueError):
    """Raised internally when a model reply cannot be used as a prompt."""


def parse_prompt_payload(content: str) -> BilingualPrompt:
    """Turn a (possibly fenced) JSON model reply into a :class:`BilingualPrompt`."""

    cleaned = _CODE_FENCE.sub("", content or "").strip()
    try:
        payload: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise PromptGenerationError(f"Prompt reply is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise PromptGenerationError("Prompt reply is not a JSON object")
    fields = {}
    for name in ("category", "en", "ja"):
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            raise PromptGenerationError(f"Prompt reply is missing '{name}'")
        fields[name] = value.strip()
    return BilingualPrompt(**fields)


class PromptEngine:
    def __init__(
        self,
        openai: Optional[OpenAIEngine] = None,
        mirror: Optional[PersistenceMirror] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._openai = openai
        self._mirror = mirror
        self._rng = rng or random.Random()

    @property
    def ai_available(self) -> bool:
        return bool(self._openai and self._openai.configured)

    def fallback_prompt(self) -> BilingualPrompt:
        return BilingualPrompt(**self._rng.choice(PROMPT_TEMPLATES))

    async def generate_prompt(self) -> BilingualPrompt:
        if not self.ai_available:
            logger.info("OpenAI not configured; using a canned prompt")
            return self.fallback_prompt()
        assert self._openai is not None
        try:
            content = await self._openai.chat_completion(
                [
                    {"role": "system", "content": PROMPT_GENERATOR_SYSTEM},
                    {"role": "user", "content": PROMPT_GENERATOR_USER},
                ],
                temperature=0.8,
                max_tokens=300,
            )
            prompt = parse_prompt_payload(content)
        except Exception as exc:
            logger.warning("Prompt generation failed, using a canned prompt: %s", exc)
            return self.fallback_prompt()

        if self._mirror is not None:
            record = {**prompt.to_record(), "created_at": utcnow().isoformat(), "is_ai_generated": True}
            self._mirror.enqueue(PROMPTS_NAMESPACE, PROMPT_OWNER_ID, uuid.uuid4().hex, record)
        return prompt

    async def generate_feedback(self, text: str, target_language: str) -> str:
        language = LANGUAGE_LABELS.get(target_language, "English")
        fallback = FALLBACK_FEEDBACK.format(language=language)
        if not self.ai_available:
            return fallback
        assert self._openai is not None
        try:
            feedback = await self._openai.chat_completion(
                [
                    {"role": "system", "content": FEEDBACK_SYSTEM.get(target_language, FEEDBACK_SYSTEM["en"])},
                    {"role": "user", "content": f'Please provide gentle feedback on this {language} text: "{text}"'},
                ],
                temperature=0.7,
                max_tokens=400,
            )
        except Exception as exc:
            logger.warning("Feedback generation failed: %s", exc)
            return fallback
        return feedback or fallback

    async def generate_detailed_correction(self, text: str, target_language: str) -> str:
        if not self.ai_available:
            return FALLBACK_DETAILED_CORRECTION
        assert self._openai is not None
        language = LANGUAGE_LABELS.get(target_language, "English")
        try:
            explanation = await self._openai.chat_completion(
                [
                    {
                        "role": "system",
                        "content": DETAILED_CORRECTION_SYSTEM.get(target_language, DETAILED_CORRECTION_SYSTEM["en"]),
                    },
                    {"role": "user", "content": f'Analyze this {language} text and provide detailed corrections: "{text}"'},
                ],
                temperature=0.7,
                max_tokens=800,
            )
        except Exception as exc:
            logger.warning("Detailed correction failed: %s", exc)
            return FALLBACK_DETAILED_CORRECTION
        return explanation or FALLBACK_DETAILED_CORRECTION

    async def generate_reading_annotation(self, text: str) -> str:
        """Return Japanese ``text`` with hiragana readings after kanji words."""

        fallback = f"{text}\n\n{FALLBACK_READING_NOTE}"
        if not self.ai_available:
            return fallback
        assert self._openai is not None
        try:
            annotated = await self._openai.chat_completion(
                [
                    {"role": "system", "content": READING_ANNOTATION_SYSTEM},
                    {"role": "user", "content": text},
                ],
                temperature=0.3,
                max_tokens=500,
            )
        except Exception as exc:
            logger.warning("Reading annotation failed: %s", exc)
            return fallback
        return annotated or fallback


__all__ = ["PromptEngine", "PromptGenerationError", "parse_prompt_payload"]
