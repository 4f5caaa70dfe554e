"""DM responses and emoji reactions, routed into the response pipeline."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from prompt_bot.core.error_engine import ErrorEngine
from prompt_bot.core.response_pipeline import ResponsePipeline
from prompt_bot.core.ui_engine import GENERIC_ERROR


logger = logging.getLogger(__name__)


class ResponseCog(commands.Cog):
    """Feeds learner DMs and reactions to :class:`ResponsePipeline`."""

    def __init__(self, bot: commands.Bot, pipeline: ResponsePipeline, error_engine: ErrorEngine) -> None:
        self.bot = bot
        self.pipeline = pipeline
        self.error_engine = error_engine

    # --------------------------------------------------------------
    # Events
    # --------------------------------------------------------------

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.guild is not None or message.author.bot:
            return
        if not (message.content or "").strip():
            return

        async def apologise(_exc: BaseException) -> None:
            await message.channel.send(GENERIC_ERROR)

        await self.error_engine.guard(
            f"direct message from {message.author.id}",
            self.pipeline.handle_direct_message(message.author.id, message.content),
            on_error=apologise,
        )

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        bot_user = self.bot.user
        if bot_user and payload.user_id == bot_user.id:
            return
        if payload.member is not None and payload.member.bot:
            return

        async def apologise(_exc: BaseException) -> None:
            await self.pipeline.gateway.send_direct(payload.user_id, content=GENERIC_ERROR)

        await self.error_engine.guard(
            f"reaction {payload.emoji} from {payload.user_id}",
            self.pipeline.handle_reaction(payload.user_id, payload.message_id, str(payload.emoji)),
            on_error=apologise,
        )


async def setup(bot: commands.Bot) -> None:  # pragma: no cover - dynamic loading guard
    raise RuntimeError("Use PromptBotRunner to load ResponseCog")


__all__ = ["ResponseCog"]
