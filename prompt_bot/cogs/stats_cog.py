"""Stats, leaderboard and the manual broadcast trigger."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from prompt_bot.config import PromptBotConfig
from prompt_bot.core.bot_state import BotState
from prompt_bot.core.broadcaster import PromptBroadcaster
from prompt_bot.core.error_engine import ErrorEngine
from prompt_bot.core.ui_engine import PromptUIEngine

from .views import send_apology


logger = logging.getLogger(__name__)


class StatsCog(commands.Cog):
    def __init__(
        self,
        bot: commands.Bot,
        config: PromptBotConfig,
        state: BotState,
        broadcaster: PromptBroadcaster,
        error_engine: ErrorEngine,
        ui: PromptUIEngine | None = None,
    ) -> None:
        self.bot = bot
        self.config = config
        self.state = state
        self.broadcaster = broadcaster
        self.error_engine = error_engine
        self.ui = ui or PromptUIEngine()

    def leaderboard_rows(self) -> list[tuple[str, int]]:
        rows: list[tuple[str, int]] = []
        for user_id, points in self.state.ledger.top_n(self.config.leaderboard_size):
            pseudonym = self.state.registry.peek_pseudonym(user_id)
            rows.append((pseudonym.handle if pseudonym else "Unknown", points))
        return rows

    def _can_trigger(self, user_id: int) -> bool:
        return not self.config.owner_ids or user_id in self.config.owner_ids

    # --------------------------------------------------------------
    # Slash commands
    # --------------------------------------------------------------

    @app_commands.command(name="stats", description="Show your anonymous learning stats")
    async def stats(self, interaction: discord.Interaction) -> None:
        await self.error_engine.guard(
            "/stats",
            self._send_stats(interaction),
            on_error=lambda _exc: send_apology(interaction),
        )

    @app_commands.command(name="leaderboard", description="Show the top learners by points")
    async def leaderboard(self, interaction: discord.Interaction) -> None:
        await self.error_engine.guard(
            "/leaderboard",
            self._send_leaderboard(interaction),
            on_error=lambda _exc: send_apology(interaction),
        )

    async def _send_stats(self, interaction: discord.Interaction) -> None:
        user_id = interaction.user.id
        registry = self.state.registry
        user = registry.get_or_create(user_id, interaction.guild_id)
        embed = self.ui.build_stats_embed(
            user,
            registry.pseudonym_for(user_id),
            self.state.ledger.get(user_id),
            self.state.submissions.count_for_user(user_id),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _send_leaderboard(self, interaction: discord.Interaction) -> None:
        embed = self.ui.build_leaderboard_embed(self.leaderboard_rows())
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="testprompt", description="Broadcast a prompt to the prompt channel now")
    async def testprompt(self, interaction: discord.Interaction) -> None:
        if not self._can_trigger(interaction.user.id):
            await interaction.response.send_message("Only bot owners can trigger a broadcast.", ephemeral=True)
            return
        logger.info("/testprompt triggered by %s", interaction.user.id)
        await interaction.response.send_message(
            "🚀 Triggering a prompt broadcast... check the prompt channel!", ephemeral=True
        )

        async def report_failure(exc: BaseException) -> None:
            await interaction.followup.send(f"❌ Error posting test prompt: {exc}", ephemeral=True)

        broadcast = await self.error_engine.guard(
            "/testprompt",
            self.broadcaster.broadcast(trigger="manual"),
            on_error=report_failure,
        )
        if broadcast is None:
            if not self.broadcaster.channel_id:
                await interaction.followup.send("⚠️ PROMPT_CHANNEL_ID is not configured.", ephemeral=True)
            return
        await interaction.followup.send(
            f"✅ Prompt sent: {broadcast.delivered} delivered, {broadcast.reminded} reminders, "
            f"{broadcast.failed} failed.",
            ephemeral=True,
        )


async def setup(bot: commands.Bot) -> None:  # pragma: no cover - dynamic loading guard
    raise RuntimeError("Use PromptBotRunner to load StatsCog")


__all__ = ["StatsCog"]
