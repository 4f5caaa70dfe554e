"""Dictionary lookups for learners who ask "define X" in a DM.

Japanese headwords are resolved through the public Jisho API; English words
are turned into a short English→Japanese entry by the OpenAI model in JSON
mode. Both paths raise :class:`DictionaryLookupError` on transport or parse
failures so the caller can reply with an apology instead of crashing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import httpx

from .language_classifier import ENGLISH, JAPANESE
from .openai_engine import OpenAIEngine
from .tutor_prompts import ENGLISH_DICTIONARY_SYSTEM


logger = logging.getLogger(__name__)

JISHO_API_URL = "https://jisho.org/api/v1/search/words"
JISHO_SEARCH_URL = "https://jisho.org/search/{word}"
MAX_SENSES = 3

_ENGLISH_PREFIXES: Tuple[str, ...] = ("define ", "look up ")
_QUOTED_PREFIX = 'what does "'
_QUOTED_SUFFIX = '" mean?'
_JAPANESE_SUFFIXES: Tuple[str, ...] = ("意味", "とは")


class DictionaryLookupError(RuntimeError):
    """The dictionary backend could not be reached or returned garbage."""


class DictionaryEntryNotFound(DictionaryLookupError):
    """The backend answered, but had nothing for the requested word."""

    def __init__(self, word: str, search_url: Optional[str] = None) -> None:
        super().__init__(f"No dictionary entry for {word!r}")
        self.word = word
        self.search_url = search_url


@dataclass(slots=True, frozen=True)
class DictionarySense:
    part_of_speech: str
    meaning: str


@dataclass(slots=True, frozen=True)
class DictionaryEntry:
    headword: str
    reading: str
    senses: Tuple[DictionarySense, ...] = field(default_factory=tuple)
    provider: str = ""
    source_url: Optional[str] = None

    @property
    def title(self) -> str:
        if self.headword and self.reading:
            return f"{self.headword} ({self.reading})"
        return self.headword or self.reading


def parse_dictionary_command(text: str, native_language: Optional[str]) -> Optional[str]:
    """Return the word a message asks to define, or ``None`` if it is not a lookup.

    An empty string means the command was recognised but no word was given.
    The Japanese-style suffix forms are only honoured for learners whose
    native language is Japanese.
    """

    stripped = (text or "").strip()
    lowered = stripped.lower()
    for prefix in _ENGLISH_PREFIXES:
        if lowered.startswith(prefix) or lowered == prefix.strip():
            return stripped[len(prefix):].strip()
    if lowered.startswith(_QUOTED_PREFIX) and lowered.endswith(_QUOTED_SUFFIX):
        return stripped[len(_QUOTED_PREFIX):len(stripped) - len(_QUOTED_SUFFIX)].strip()
    if native_language == JAPANESE:
        for suffix in _JAPANESE_SUFFIXES:
            if stripped.endswith(" " + suffix) or stripped == suffix:
                return stripped[: -len(suffix)].strip()
    return None


class DictionaryEngine:
    def __init__(
        self,
        openai: Optional[OpenAIEngine] = None,
        *,
        model: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._openai = openai
        self._model = model
        self._timeout = timeout
        self._transport = transport

    async def lookup(self, word: str, language: str) -> DictionaryEntry:
        if language == ENGLISH:
            return await self._lookup_english(word)
        if language == JAPANESE:
            return await self._lookup_japanese(word)
        raise DictionaryLookupError(f"Unsupported dictionary language: {language}")

    async def _lookup_japanese(self, word: str) -> DictionaryEntry:
        search_url = JISHO_SEARCH_URL.format(word=quote(word))
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(JISHO_API_URL, params={"keyword": word})
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Jisho lookup for %r failed: %s", word, exc)
            raise DictionaryLookupError("Jisho.org is unavailable") from exc

        results = payload.get("data") if isinstance(payload, dict) else None
        if not results:
            raise DictionaryEntryNotFound(word, search_url)

        try:
            return self._parse_jisho_entry(results[0], search_url)
        except (AttributeError, TypeError, KeyError, IndexError) as exc:
            logger.warning("Malformed Jisho payload for %r: %s", word, exc)
            raise DictionaryLookupError(f"Unparsable Jisho entry for {word!r}") from exc

    @staticmethod
    def _parse_jisho_entry(entry: Any, search_url: str) -> DictionaryEntry:
        japanese = (entry.get("japanese") or [{}])[0]
        senses: List[DictionarySense] = []
        for sense in (entry.get("senses") or [])[:MAX_SENSES]:
            senses.append(
                DictionarySense(
                    part_of_speech=", ".join(sense.get("parts_of_speech") or []),
                    meaning="; ".join(sense.get("english_definitions") or []),
                )
            )
        return DictionaryEntry(
            headword=japanese.get("word") or "",
            reading=japanese.get("reading") or "",
            senses=tuple(senses),
            provider="Jisho.org",
            source_url=search_url,
        )

    async def _lookup_english(self, word: str) -> DictionaryEntry:
        if self._openai is None or not self._openai.configured:
            raise DictionaryLookupError("English dictionary requires an OpenAI key")
        try:
            raw = await self._openai.chat_completion(
                [
                    {"role": "system", "content": ENGLISH_DICTIONARY_SYSTEM},
                    {"role": "user", "content": word},
                ],
                temperature=0.1,
                max_tokens=500,
                model=self._model,
                json_mode=True,
            )
            payload: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DictionaryLookupError(f"Unparsable dictionary entry for {word!r}") from exc
        except Exception as exc:
            logger.warning("OpenAI dictionary lookup for %r failed: %s", word, exc)
            raise DictionaryLookupError("OpenAI dictionary is unavailable") from exc

        if not isinstance(payload, dict):
            raise DictionaryLookupError(f"Unparsable dictionary entry for {word!r}")
        definitions = payload.get("definitions") or []
        if not definitions:
            raise DictionaryEntryNotFound(word)
        senses = tuple(
            DictionarySense(
                part_of_speech=str(item.get("part_of_speech", "")),
                meaning=str(item.get("japanese_meaning", "")),
            )
            for item in definitions[:MAX_SENSES]
            if isinstance(item, dict)
        )
        return DictionaryEntry(
            headword=str(payload.get("word") or word),
            reading=str(payload.get("reading") or ""),
            senses=senses,
            provider="OpenAI",
        )


__all__ = [
    "DictionaryEngine",
    "DictionaryEntry",
    "DictionaryEntryNotFound",
    "DictionaryLookupError",
    "DictionarySense",
    "parse_dictionary_command",
]
