"""Buttons and modals: language picker, test prompt and anonymous replies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord

from prompt_bot.core.models import LANGUAGE_FLAGS, LANGUAGE_LABELS
from prompt_bot.core.ui_engine import GENERIC_ERROR, LANGUAGE_SELECTION_NEEDED, PromptUIEngine

if TYPE_CHECKING:  # pragma: no cover
    from prompt_bot.core.bot_state import BotState
    from prompt_bot.core.broadcaster import PromptBroadcaster
    from prompt_bot.core.error_engine import ErrorEngine
    from prompt_bot.core.response_pipeline import ResponsePipeline


logger = logging.getLogger(__name__)

REPLY_BUTTON_ID = "promptbot:reply"


async def send_apology(interaction: discord.Interaction, text: str = GENERIC_ERROR) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(text, ephemeral=True)
    else:
        await interaction.response.send_message(text, ephemeral=True)


class ReplyModal(discord.ui.Modal):
    """Collects an anonymous reply to one public response."""

    def __init__(
        self,
        pipeline: "ResponsePipeline",
        error_engine: "ErrorEngine",
        *,
        parent_channel_id: int,
        parent_message_id: int,
        parent_handle: Optional[str],
        target_language: str,
    ) -> None:
        super().__init__(title="💬 Reply anonymously")
        self.pipeline = pipeline
        self.error_engine = error_engine
        self.parent_channel_id = parent_channel_id
        self.parent_message_id = parent_message_id
        self.parent_handle = parent_handle
        language = LANGUAGE_LABELS.get(target_language, target_language)
        self.reply_input: discord.ui.TextInput = discord.ui.TextInput(
            label=f"Your reply ({language})",
            style=discord.TextStyle.paragraph,
            placeholder=f"Write your reply in {language}...",
            max_length=2000,
        )
        self.add_item(self.reply_input)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        result = await self.error_engine.guard(
            "reply modal",
            self.pipeline.handle_reply(
                interaction.user.id,
                self.reply_input.value,
                self.parent_channel_id,
                self.parent_message_id,
                self.parent_handle,
                team_id=interaction.guild_id,
            ),
            on_error=lambda _exc: send_apology(interaction),
        )
        if result is not None and result.message:
            await interaction.followup.send(result.message, ephemeral=True)


class ReplyButtonView(discord.ui.View):
    """Persistent "Reply anonymously" button attached to every public post."""

    def __init__(self, pipeline: "ResponsePipeline", error_engine: "ErrorEngine") -> None:
        super().__init__(timeout=None)
        self.pipeline = pipeline
        self.error_engine = error_engine

    @discord.ui.button(
        label="Reply anonymously",
        emoji="💬",
        style=discord.ButtonStyle.secondary,
        custom_id=REPLY_BUTTON_ID,
    )
    async def reply_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self.error_engine.guard(
            "reply button",
            self._open_reply_modal(interaction),
            on_error=lambda _exc: send_apology(interaction),
        )

    async def _open_reply_modal(self, interaction: discord.Interaction) -> None:
        user = self.pipeline.state.registry.get_or_create(interaction.user.id, interaction.guild_id)
        if not user.target_language:
            await interaction.response.send_message(LANGUAGE_SELECTION_NEEDED, ephemeral=True)
            return
        message = interaction.message
        if message is None:
            await send_apology(interaction)
            return
        parent_handle = None
        if message.embeds and message.embeds[0].author:
            parent_handle = message.embeds[0].author.name
        modal = ReplyModal(
            self.pipeline,
            self.error_engine,
            parent_channel_id=message.channel.id,
            parent_message_id=message.id,
            parent_handle=parent_handle,
            target_language=user.target_language,
        )
        await interaction.response.send_modal(modal)


class HomeView(discord.ui.View):
    """Language picker plus a personal test prompt, bound to one user."""

    def __init__(
        self,
        state: "BotState",
        broadcaster: "PromptBroadcaster",
        error_engine: "ErrorEngine",
        owner_id: int,
        *,
        ui: Optional[PromptUIEngine] = None,
    ) -> None:
        super().__init__(timeout=600)
        self.state = state
        self.broadcaster = broadcaster
        self.error_engine = error_engine
        self.owner_id = owner_id
        self.ui = ui or PromptUIEngine()
        self._update_button_states()

    def _update_button_states(self) -> None:
        user = self.state.registry.get(self.owner_id)
        current = user.target_language if user else None
        self.japanese_button.style = discord.ButtonStyle.primary if current == "ja" else discord.ButtonStyle.secondary
        self.english_button.style = discord.ButtonStyle.primary if current == "en" else discord.ButtonStyle.secondary

    def build_embed(self) -> discord.Embed:
        registry = self.state.registry
        user = registry.get_or_create(self.owner_id)
        return self.ui.build_home_embed(user, registry.pseudonym_for(self.owner_id), self.state.ledger.get(self.owner_id))

    async def _ensure_owner(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message("This panel belongs to someone else. Use `/home` to open yours.", ephemeral=True)
            return False
        return True

    async def _select_language(self, interaction: discord.Interaction, code: str) -> None:
        if not await self._ensure_owner(interaction):
            return
        self.state.registry.set_target_language(self.owner_id, code, interaction.guild_id)
        self._update_button_states()
        await interaction.response.edit_message(
            content=(
                f"🎯 Target language set to {LANGUAGE_FLAGS[code]} {LANGUAGE_LABELS[code]}! "
                "You'll receive prompts in this language."
            ),
            embed=self.build_embed(),
            view=self,
        )

    @discord.ui.button(label="Japanese", emoji="🇯🇵", style=discord.ButtonStyle.secondary)
    async def japanese_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self.error_engine.guard(
            "home: select Japanese",
            self._select_language(interaction, "ja"),
            on_error=lambda _exc: send_apology(interaction),
        )

    @discord.ui.button(label="English", emoji="🇺🇸", style=discord.ButtonStyle.secondary)
    async def english_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self.error_engine.guard(
            "home: select English",
            self._select_language(interaction, "en"),
            on_error=lambda _exc: send_apology(interaction),
        )

    @discord.ui.button(label="Generate Test Prompt", emoji="🚀", style=discord.ButtonStyle.success, row=1)
    async def test_prompt_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        if not await self._ensure_owner(interaction):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        ref = await self.error_engine.guard(
            "home: test prompt",
            self.broadcaster.send_test_prompt(self.owner_id),
            on_error=lambda _exc: send_apology(
                interaction, "❌ Sorry, there was an error generating a test prompt. Please try again later."
            ),
        )
        if ref is not None:
            await interaction.followup.send("🚀 Test prompt sent! Check your DMs.", ephemeral=True)
        elif not self.state.registry.get_or_create(self.owner_id).target_language:
            await interaction.followup.send(LANGUAGE_SELECTION_NEEDED, ephemeral=True)


__all__ = ["HomeView", "ReplyButtonView", "ReplyModal", "REPLY_BUTTON_ID", "send_apology"]
