"""Embed and message builders, keeping discord.py formatting out of the core."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import discord

from .dictionary_engine import DictionaryEntry
from .models import (
    LANGUAGE_FLAGS,
    LANGUAGE_LABELS,
    BilingualPrompt,
    Pseudonym,
    UserProfile,
    language_label,
)


GENERIC_ERROR = "😵 Sorry, something went wrong while processing your message. Please try again in a moment."
SETUP_REMINDER = (
    "👋 A new conversation prompt was just posted! Pick your target language with `/home` "
    "so I can send prompts in the language you are practising."
)
LANGUAGE_SELECTION_NEEDED = (
    "👋 Before you can respond, please choose your target language. "
    "Use `/home` and press 🇯🇵 **Japanese** or 🇺🇸 **English**."
)
UNKNOWN_LANGUAGE = "⚠️ I couldn't detect the language clearly. Please try writing in {language}."
WRONG_LANGUAGE = "{flag} Please respond in {language}! Your target language is set to {language}."
DICTIONARY_USAGE = "Please tell me what word you want to define. For example: `define industry` or `presentation 意味`"
DICTIONARY_UNSUPPORTED = "😕 Sorry, I can only define English or Japanese words. I couldn't understand \"{word}\"."
DICTIONARY_SEARCHING = "One moment, searching for \"{word}\"... 📖"
DICTIONARY_FAILED = "❌ Sorry, I had an error looking up \"{word}\". Please try again later."
DICTIONARY_NOT_FOUND = "😕 Sorry, I couldn't find \"{word}\"."
PUBLIC_CHANNEL_MISSING = "⚠️ The prompt channel is not configured yet, so I can't share your response. Please tell an admin."
READING_ONLY_JAPANESE = "ℹ️ Readings are only available for Japanese prompts."
SUBMISSION_CONFIRMED = "✅ Your response was shared anonymously as **{handle}**. +{points} point(s)!"
REPLY_CONFIRMED = "✅ Your reply was posted anonymously as **{handle}**. +{points} point(s)!"

_LANGUAGE_COLOURS = {"ja": discord.Colour.red(), "en": discord.Colour.blue()}


class PromptUIEngine:
    """Formatting helpers for every surface the bot posts to."""

    # ------------------------------------------------------------------
    # Corrective / plain text
    # ------------------------------------------------------------------

    @staticmethod
    def rejection_message(target_language: str, detected_language: str) -> str:
        label = LANGUAGE_LABELS.get(target_language, target_language)
        if detected_language not in LANGUAGE_LABELS:
            return UNKNOWN_LANGUAGE.format(language=label)
        return WRONG_LANGUAGE.format(flag=LANGUAGE_FLAGS.get(target_language, ""), language=label).strip()

    # ------------------------------------------------------------------
    # Prompt broadcast
    # ------------------------------------------------------------------

    def build_announcement_embed(self, prompt: BilingualPrompt) -> discord.Embed:
        embed = discord.Embed(
            title="🌏 New conversation prompt!",
            description=(
                "A new prompt has been sent to everyone by DM in the language they are practising. "
                "Reply to the DM and your answer will appear here anonymously."
            ),
            colour=discord.Colour.gold(),
        )
        embed.add_field(name="Topic", value=prompt.topic, inline=False)
        embed.set_footer(text="React with ⭐ to give kudos to answers you like")
        return embed

    def build_prompt_embed(self, prompt: BilingualPrompt, language: str) -> discord.Embed:
        embed = discord.Embed(
            title=f"{LANGUAGE_FLAGS.get(language, '')} {prompt.topic}".strip(),
            description=prompt.for_language(language),
            colour=_LANGUAGE_COLOURS.get(language, discord.Colour.blurple()),
        )
        if language == "ja":
            embed.set_footer(text="Reply here in Japanese • React with ❓ for readings")
        else:
            embed.set_footer(text="Reply here in English")
        return embed

    # ------------------------------------------------------------------
    # Public posts
    # ------------------------------------------------------------------

    def build_submission_embed(self, pseudonym: Pseudonym, text: str, language: str) -> discord.Embed:
        embed = discord.Embed(
            description=self._truncate(text, 4000),
            colour=_LANGUAGE_COLOURS.get(language, discord.Colour.blurple()),
        )
        embed.set_author(name=pseudonym.handle)
        footer = language_label(language)
        if pseudonym.cohort_label:
            footer = f"{footer} • {pseudonym.cohort_label}"
        embed.set_footer(text=footer)
        return embed

    def build_reply_embed(self, pseudonym: Pseudonym, text: str, parent_handle: Optional[str]) -> discord.Embed:
        embed = discord.Embed(description=self._truncate(text, 4000), colour=discord.Colour.teal())
        embed.set_author(name=f"↪️ {pseudonym.handle}")
        if parent_handle:
            embed.set_footer(text=f"Replying to {parent_handle}")
        return embed

    # ------------------------------------------------------------------
    # Private feedback
    # ------------------------------------------------------------------

    def build_feedback_embed(self, feedback: str, target_language: str) -> discord.Embed:
        embed = discord.Embed(
            title="📝 Feedback on your response",
            description=self._truncate(feedback, 4000),
            colour=discord.Colour.green(),
        )
        embed.set_footer(text=f"{language_label(target_language)} • React with ❓ for a detailed explanation")
        return embed

    def build_correction_embed(self, explanation: str) -> discord.Embed:
        return discord.Embed(
            title="🔍 Detailed explanation",
            description=self._truncate(explanation, 4000),
            colour=discord.Colour.dark_green(),
        )

    def build_reading_embed(self, annotated: str) -> discord.Embed:
        return discord.Embed(
            title="📖 Prompt with readings",
            description=self._truncate(annotated, 4000),
            colour=discord.Colour.red(),
        )

    def build_dictionary_embed(self, entry: DictionaryEntry) -> discord.Embed:
        embed = discord.Embed(title=f"📖 {entry.title}", colour=discord.Colour.dark_blue())
        for index, sense in enumerate(entry.senses, start=1):
            name = f"{index}. ({sense.part_of_speech})" if sense.part_of_speech else f"{index}."
            embed.add_field(name=name, value=self._truncate(sense.meaning or "—", 1024), inline=False)
        if entry.source_url:
            embed.url = entry.source_url
        embed.set_footer(text=f"Powered by {entry.provider}" if entry.provider else "")
        return embed

    # ------------------------------------------------------------------
    # Home / stats
    # ------------------------------------------------------------------

    def build_home_embed(self, user: UserProfile, pseudonym: Pseudonym, points: int) -> discord.Embed:
        embed = discord.Embed(
            title="🏠 PromptBot home",
            description="Choose the language you are practising. Prompts arrive by DM; reply there to take part.",
            colour=discord.Colour.blurple(),
        )
        embed.add_field(name="Your anonymous name", value=pseudonym.handle, inline=True)
        embed.add_field(name="Points", value=str(points), inline=True)
        embed.add_field(name="Target language", value=language_label(user.target_language), inline=False)
        return embed

    def build_stats_embed(
        self,
        user: UserProfile,
        pseudonym: Pseudonym,
        points: int,
        submissions: int,
    ) -> discord.Embed:
        embed = discord.Embed(title=f"📊 Stats for {pseudonym.handle}", colour=discord.Colour.purple())
        embed.add_field(name="Target language", value=language_label(user.target_language), inline=False)
        embed.add_field(name="Points", value=str(points), inline=True)
        embed.add_field(name="Responses", value=str(submissions), inline=True)
        return embed

    def build_leaderboard_embed(self, rows: Sequence[Tuple[str, int]]) -> discord.Embed:
        embed = discord.Embed(title="🏆 Leaderboard", colour=discord.Colour.gold())
        if not rows:
            embed.description = "No points yet. Answer a prompt to get on the board!"
            return embed
        medals = {1: "🥇", 2: "🥈", 3: "🥉"}
        lines: List[str] = []
        for rank, (handle, points) in enumerate(rows, start=1):
            marker = medals.get(rank, f"`{rank:>2}.`")
            lines.append(f"{marker} {handle} — **{points}**")
        embed.description = "\n".join(lines)
        return embed

    @staticmethod
    def _truncate(text: str, limit: int = 1000) -> str:
        if len(text) <= limit:
            return text
        return text[: limit - 3] + "..."


__all__ = [
    "PromptUIEngine",
    "GENERIC_ERROR",
    "SETUP_REMINDER",
    "LANGUAGE_SELECTION_NEEDED",
    "DICTIONARY_USAGE",
    "DICTIONARY_UNSUPPORTED",
    "DICTIONARY_SEARCHING",
    "DICTIONARY_FAILED",
    "DICTIONARY_NOT_FOUND",
    "PUBLIC_CHANNEL_MISSING",
    "READING_ONLY_JAPANESE",
    "SUBMISSION_CONFIRMED",
    "REPLY_CONFIRMED",
]
