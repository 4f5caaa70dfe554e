from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from prompt_bot.core.bot_state import BotState
from prompt_bot.core.broadcaster import PromptBroadcaster
from prompt_bot.core.error_engine import ErrorEngine
from prompt_bot.core.ui_engine import PromptUIEngine

from .views import HomeView, send_apology


class HomeCog(commands.Cog):
    """The `/home` panel: anonymous name, points and language picker."""

    def __init__(
        self,
        bot: commands.Bot,
        state: BotState,
        broadcaster: PromptBroadcaster,
        error_engine: ErrorEngine,
        ui: PromptUIEngine | None = None,
    ) -> None:
        self.bot = bot
        self.state = state
        self.broadcaster = broadcaster
        self.error_engine = error_engine
        self.ui = ui or PromptUIEngine()

    def build_view(self, user_id: int, team_id: int | None = None) -> HomeView:
        self.state.registry.get_or_create(user_id, team_id)
        return HomeView(self.state, self.broadcaster, self.error_engine, user_id, ui=self.ui)

    @app_commands.command(name="home", description="Open your PromptBot home panel")
    async def home(self, interaction: discord.Interaction) -> None:
        await self.error_engine.guard(
            "/home",
            self._send_home(interaction),
            on_error=lambda _exc: send_apology(interaction),
        )

    async def _send_home(self, interaction: discord.Interaction) -> None:
        view = self.build_view(interaction.user.id, interaction.guild_id)
        await interaction.response.send_message(embed=view.build_embed(), view=view, ephemeral=True)


async def setup(bot: commands.Bot) -> None:  # pragma: no cover - dynamic loading guard
    raise RuntimeError("Use PromptBotRunner to load HomeCog")


__all__ = ["HomeCog"]
