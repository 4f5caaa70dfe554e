"""Direct-message response handling: validate, relay anonymously, reward.

A learner's DM goes through, in order: the language-selection gate, the
dictionary gate, language validation and then the accepted path
(public post → AI feedback DM → points and submission record). If the
feedback DM fails the public post stays but no points are awarded and nothing
is recorded; the exception propagates to the caller, which reports a generic
error to the learner.

Reactions are handled here as well: approving emoji award kudos points to the
reacting user, and ❓ on a tracked prompt or feedback DM asks the AI for
readings or a detailed correction.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
import enum
import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional
import uuid

from .bot_state import BotState
from .dictionary_engine import (
    DictionaryEngine,
    DictionaryEntryNotFound,
    DictionaryLookupError,
    parse_dictionary_command,
)
from .language_classifier import ENGLISH, JAPANESE, detect_language
from .models import MessageRef, Submission
from .prompt_engine import PromptEngine
from .ui_engine import (
    DICTIONARY_FAILED,
    DICTIONARY_NOT_FOUND,
    DICTIONARY_SEARCHING,
    DICTIONARY_UNSUPPORTED,
    DICTIONARY_USAGE,
    LANGUAGE_SELECTION_NEEDED,
    PUBLIC_CHANNEL_MISSING,
    READING_ONLY_JAPANESE,
    REPLY_CONFIRMED,
    SUBMISSION_CONFIRMED,
    PromptUIEngine,
)

if TYPE_CHECKING:  # pragma: no cover
    import discord

    from prompt_bot.config import PromptBotConfig

    from .chat_gateway import DiscordChatGateway


logger = logging.getLogger(__name__)

KUDOS_EMOJI = frozenset({"✅", "⭐", "🌟", "👏"})
HELP_EMOJI = frozenset({"❓", "❔"})

ReplyViewFactory = Callable[[], Optional["discord.ui.View"]]


def normalize_emoji(emoji: str) -> str:
    """Drop variation selectors so ``⭐️`` and ``⭐`` compare equal."""

    return (emoji or "").replace("\ufe0f", "").strip()


class ResponseState(enum.Enum):
    AWAITING_LANGUAGE_SELECTION = "awaiting_language_selection"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    DICTIONARY_LOOKUP = "dictionary_lookup"
    IGNORED = "ignored"
    NOT_CONFIGURED = "not_configured"


@dataclass(slots=True)
class PipelineResult:
    state: ResponseState
    detected_language: Optional[str] = None
    submission: Optional[Submission] = None
    message: Optional[str] = None


class ResponsePipeline:
    def __init__(
        self,
        state: BotState,
        gateway: "DiscordChatGateway",
        prompt_engine: PromptEngine,
        config: "PromptBotConfig",
        *,
        dictionary: Optional[DictionaryEngine] = None,
        ui: Optional[PromptUIEngine] = None,
        reply_view_factory: Optional[ReplyViewFactory] = None,
    ) -> None:
        self.state = state
        self.gateway = gateway
        self.prompt_engine = prompt_engine
        self.config = config
        self.dictionary = dictionary
        self.ui = ui or PromptUIEngine()
        self.reply_view_factory = reply_view_factory
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _detect(self, text: str) -> str:
        return detect_language(text, fallback_length=self.config.english_fallback_length)

    def _reply_view(self) -> Optional["discord.ui.View"]:
        return self.reply_view_factory() if self.reply_view_factory is not None else None

    # ------------------------------------------------------------------
    # Direct messages
    # ------------------------------------------------------------------

    async def handle_direct_message(self, user_id: int, text: str, team_id: Optional[int] = None) -> PipelineResult:
        raw = text or ""
        text = raw.strip()
        if not text:
            return PipelineResult(ResponseState.IGNORED)

        async with self._lock_for(user_id):
            user = self.state.registry.get_or_create(user_id, team_id)
            if user.target_language is None:
                await self.gateway.send_direct(user_id, content=LANGUAGE_SELECTION_NEEDED)
                return PipelineResult(ResponseState.AWAITING_LANGUAGE_SELECTION, message=LANGUAGE_SELECTION_NEEDED)

            if self.dictionary is not None:
                word = parse_dictionary_command(text, user.native_language)
                if word is not None:
                    message = await self._lookup_word(user_id, word)
                    return PipelineResult(ResponseState.DICTIONARY_LOOKUP, message=message)

            target = user.target_language
            # The length fallback counts the message as sent, surrounding whitespace included.
            detected = self._detect(raw)
            logger.info("User %s responded | detected=%s expected=%s", user_id, detected, target)
            if detected != target:
                message = self.ui.rejection_message(target, detected)
                await self.gateway.send_direct(user_id, content=message)
                return PipelineResult(ResponseState.REJECTED, detected, message=message)

            channel_id = self.config.prompt_channel_id
            if not channel_id:
                logger.warning("Accepted response from %s but no prompt channel is configured", user_id)
                await self.gateway.send_direct(user_id, content=PUBLIC_CHANNEL_MISSING)
                return PipelineResult(ResponseState.NOT_CONFIGURED, detected, message=PUBLIC_CHANNEL_MISSING)

            pseudonym = self.state.registry.pseudonym_for(user_id)
            public = await self.gateway.post_to_channel(
                channel_id,
                embed=self.ui.build_submission_embed(pseudonym, text, target),
                view=self._reply_view(),
            )
            reward = self.config.rewards.submission
            confirmation = SUBMISSION_CONFIRMED.format(handle=pseudonym.handle, points=reward)
            submission = await self._complete_accepted(
                Submission(
                    submission_id=uuid.uuid4().hex,
                    user_id=user_id,
                    pseudonym=pseudonym.handle,
                    text=text,
                    language=detected,
                    target_language=target,
                    public_channel_id=public.channel_id,
                    public_message_id=public.message_id,
                ),
                reward,
                confirmation,
            )
            logger.info("Processed valid response from %s (%s)", user_id, pseudonym.handle)
            return PipelineResult(ResponseState.ACCEPTED, detected, submission, confirmation)

    # ------------------------------------------------------------------
    # Anonymous threaded replies
    # ------------------------------------------------------------------

    async def handle_reply(
        self,
        user_id: int,
        text: str,
        parent_channel_id: int,
        parent_message_id: int,
        parent_handle: Optional[str] = None,
        team_id: Optional[int] = None,
    ) -> PipelineResult:
        raw = text or ""
        text = raw.strip()
        if not text:
            return PipelineResult(ResponseState.IGNORED)

        async with self._lock_for(user_id):
            user = self.state.registry.get_or_create(user_id, team_id)
            if user.target_language is None:
                return PipelineResult(ResponseState.AWAITING_LANGUAGE_SELECTION, message=LANGUAGE_SELECTION_NEEDED)

            # Replies come from a modal, so the correction goes back there rather than by DM.
            target = user.target_language
            detected = self._detect(raw)
            if detected != target:
                message = self.ui.rejection_message(target, detected)
                return PipelineResult(ResponseState.REJECTED, detected, message=message)

            pseudonym = self.state.registry.pseudonym_for(user_id)
            public = await self.gateway.reply_to_message(
                parent_channel_id,
                parent_message_id,
                embed=self.ui.build_reply_embed(pseudonym, text, parent_handle),
                view=self._reply_view(),
            )
            reward = self.config.rewards.reply
            confirmation = REPLY_CONFIRMED.format(handle=pseudonym.handle, points=reward)
            submission = await self._complete_accepted(
                Submission(
                    submission_id=uuid.uuid4().hex,
                    user_id=user_id,
                    pseudonym=pseudonym.handle,
                    text=text,
                    language=detected,
                    target_language=target,
                    public_channel_id=public.channel_id,
                    public_message_id=public.message_id,
                    parent_message_id=parent_message_id,
                ),
                reward,
                confirmation,
            )
            logger.info("Reply posted by %s (%s)", user_id, pseudonym.handle)
            return PipelineResult(ResponseState.ACCEPTED, detected, submission, confirmation)

    async def _complete_accepted(self, submission: Submission, reward: int, confirmation: str) -> Submission:
        """Feedback DM first; points and the stored record only once it was delivered."""

        user_id = submission.user_id
        feedback = await self.prompt_engine.generate_feedback(submission.text, submission.target_language)
        ref = await self.gateway.send_direct(
            user_id,
            content=confirmation,
            embed=self.ui.build_feedback_embed(feedback, submission.target_language),
        )
        self.state.tracker.remember_feedback(user_id, ref.message_id, feedback, submission.text)
        self.state.ledger.increment(user_id, reward)
        return self.state.submissions.add(replace(submission, feedback=feedback))

    # ------------------------------------------------------------------
    # Dictionary
    # ------------------------------------------------------------------

    async def _lookup_word(self, user_id: int, word: str) -> str:
        assert self.dictionary is not None
        if not word:
            await self.gateway.send_direct(user_id, content=DICTIONARY_USAGE)
            return DICTIONARY_USAGE

        language = self._detect(word)
        if language not in (ENGLISH, JAPANESE):
            message = DICTIONARY_UNSUPPORTED.format(word=word)
            await self.gateway.send_direct(user_id, content=message)
            return message

        logger.info("User %s requested a dictionary entry for %r", user_id, word)
        placeholder = await self.gateway.send_direct(user_id, content=DICTIONARY_SEARCHING.format(word=word))
        embed = None
        try:
            entry = await self.dictionary.lookup(word, language)
        except DictionaryEntryNotFound as exc:
            message = DICTIONARY_NOT_FOUND.format(word=word)
            if exc.search_url:
                message = f"{message}\n{exc.search_url}"
        except DictionaryLookupError as exc:
            logger.warning("Dictionary lookup for %r failed: %s", word, exc)
            message = DICTIONARY_FAILED.format(word=word)
        else:
            message = f"📖 Definition for \"{word}\""
            embed = self.ui.build_dictionary_embed(entry)
        finally:
            await self._discard_placeholder(placeholder)

        await self.gateway.send_direct(user_id, content=message, embed=embed)
        return message

    async def _discard_placeholder(self, ref: MessageRef) -> None:
        try:
            await self.gateway.delete_message(ref)
        except Exception as exc:
            logger.warning("Couldn't delete the dictionary placeholder message: %s", exc)

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def handle_reaction(self, user_id: int, message_id: int, emoji: str) -> Optional[str]:
        """Apply a reaction; returns ``"kudos"``, ``"reading"``, ``"correction"`` or None."""

        emoji = normalize_emoji(emoji)
        if emoji in KUDOS_EMOJI:
            return self._award_kudos(user_id, message_id)
        if emoji in HELP_EMOJI:
            return await self._handle_help(user_id, message_id)
        return None

    def _award_kudos(self, user_id: int, message_id: int) -> Optional[str]:
        if not self.config.allow_self_kudos:
            target = self.state.submissions.by_public_message(message_id)
            if target is not None and target.user_id == user_id:
                logger.info("Ignoring self-kudos from %s on %s", user_id, message_id)
                return None
        self.state.registry.get_or_create(user_id)
        total = self.state.ledger.increment(user_id, self.config.rewards.kudos)
        logger.info("Kudos from %s on %s (total %s)", user_id, message_id, total)
        return "kudos"

    async def _handle_help(self, user_id: int, message_id: int) -> Optional[str]:
        tracker = self.state.tracker
        prompt = tracker.prompt_for(user_id, message_id)
        if prompt is not None:
            user = self.state.registry.get(user_id)
            if user is None or user.target_language != JAPANESE:
                await self.gateway.send_direct(user_id, content=READING_ONLY_JAPANESE)
                return None
            annotated = await self.prompt_engine.generate_reading_annotation(prompt.prompt_text)
            await self.gateway.send_direct(user_id, embed=self.ui.build_reading_embed(annotated))
            return "reading"

        feedback = tracker.feedback_for(user_id, message_id)
        if feedback is not None:
            user = self.state.registry.get(user_id)
            if user is None or user.target_language is None:
                await self.gateway.send_direct(user_id, content=LANGUAGE_SELECTION_NEEDED)
                return None
            explanation = await self.prompt_engine.generate_detailed_correction(
                feedback.original_text, user.target_language
            )
            await self.gateway.send_direct(user_id, embed=self.ui.build_correction_embed(explanation))
            return "correction"

        logger.debug("Help reaction from %s on untracked message %s", user_id, message_id)
        return None


__all__ = [
    "HELP_EMOJI",
    "KUDOS_EMOJI",
    "PipelineResult",
    "ResponsePipeline",
    "ResponseState",
    "normalize_emoji",
]
