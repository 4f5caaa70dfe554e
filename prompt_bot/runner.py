"""Async bootstrapper for PromptBot."""

from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

from prompt_bot.cogs.home_cog import HomeCog
from prompt_bot.cogs.response_cog import ResponseCog
from prompt_bot.cogs.stats_cog import StatsCog
from prompt_bot.cogs.views import ReplyButtonView
from prompt_bot.config import PromptBotConfig
from prompt_bot.core.bot_state import BotState
from prompt_bot.core.broadcaster import PromptBroadcaster
from prompt_bot.core.chat_gateway import DiscordChatGateway
from prompt_bot.core.dictionary_engine import DictionaryEngine
from prompt_bot.core.error_engine import ErrorEngine
from prompt_bot.core.logging_utils import configure_library_logging
from prompt_bot.core.openai_engine import OpenAIEngine
from prompt_bot.core.persistence_mirror import PersistenceMirror
from prompt_bot.core.prompt_engine import PromptEngine
from prompt_bot.core.response_pipeline import ResponsePipeline
from prompt_bot.core.scheduler import PromptScheduler
from prompt_bot.core.storage_engine import MirrorStorageEngine
from prompt_bot.core.ui_engine import PromptUIEngine


logger = logging.getLogger(__name__)


class PromptBotRunner:
    """Full lifecycle manager for the discord.py bot instance."""

    def __init__(self, config: PromptBotConfig | None = None) -> None:
        load_dotenv()
        self.config = config or PromptBotConfig.from_env()
        configure_library_logging(level=self.config.log_level)
        self.error_engine = ErrorEngine()
        self.error_engine.catch_uncaught()

        storage = (
            MirrorStorageEngine(self.config.db_path, self.error_engine)
            if self.config.db_path
            else None
        )
        self.mirror = PersistenceMirror(storage, self.error_engine)
        self.state = BotState.create(self.mirror)

        self.openai = OpenAIEngine(api_key=self.config.openai_api_key, model=self.config.openai_model)
        self.prompt_engine = PromptEngine(self.openai, self.mirror)
        self.dictionary = DictionaryEngine(self.openai, model=self.config.dictionary_model)
        self.ui = PromptUIEngine()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.guilds = True
        intents.dm_messages = True
        intents.reactions = True

        self.bot = commands.Bot(
            command_prefix=self.config.command_prefix,
            intents=intents,
            help_command=None,
        )

        self.gateway = DiscordChatGateway(self.bot)
        self.pipeline = ResponsePipeline(
            self.state,
            self.gateway,
            self.prompt_engine,
            self.config,
            dictionary=self.dictionary,
            ui=self.ui,
            reply_view_factory=self._build_reply_view,
        )
        self.broadcaster = PromptBroadcaster(
            self.state,
            self.gateway,
            self.prompt_engine,
            self.config.prompt_channel_id,
            ui=self.ui,
        )
        self.scheduler = PromptScheduler(
            self._scheduled_broadcast,
            self.config.prompt_schedule,
            self.config.tzinfo,
        )
        self._startup_done = False

        # Expose config and shared services on the bot instance for cogs and scripts.
        setattr(self.bot, "config", self.config)
        setattr(self.bot, "prompt_state", self.state)
        setattr(self.bot, "prompt_pipeline", self.pipeline)
        setattr(self.bot, "prompt_broadcaster", self.broadcaster)
        setattr(self.bot, "error_engine", self.error_engine)

        self._log_prelaunch_sequence()

        async def setup_hook() -> None:
            self.error_engine.install_loop_handler(asyncio.get_running_loop())
            await self.mirror.start()
            await self.state.rehydrate()

            await self.bot.add_cog(ResponseCog(self.bot, self.pipeline, self.error_engine))
            await self.bot.add_cog(HomeCog(self.bot, self.state, self.broadcaster, self.error_engine, self.ui))
            await self.bot.add_cog(
                StatsCog(self.bot, self.config, self.state, self.broadcaster, self.error_engine, self.ui)
            )
            # Re-attach the reply button to posts made before a restart.
            self.bot.add_view(self._build_reply_view())

            try:
                if self.config.test_guild_ids:
                    for gid in self.config.test_guild_ids:
                        guild = discord.Object(id=gid)
                        self.bot.tree.copy_global_to(guild=guild)
                        await self.bot.tree.sync(guild=guild)
                else:
                    await self.bot.tree.sync()
                logger.info("Slash commands synced")
            except Exception as exc:
                logger.warning("Failed to sync slash commands: %s", exc)

            self.scheduler.start()

        self.bot.setup_hook = setup_hook  # type: ignore[assignment]

        @self.bot.event  # type: ignore[misc]
        async def on_ready() -> None:
            guild_names = ", ".join(guild.name for guild in self.bot.guilds)
            bot_user = self.bot.user
            user_id = bot_user.id if bot_user else "unknown"
            logger.info("PromptBot connected as %s (%s) in %s", bot_user, user_id, guild_names)
            if self._startup_done:
                return
            self._startup_done = True
            await self._run_startup_actions()

    def _build_reply_view(self) -> ReplyButtonView:
        return ReplyButtonView(self.pipeline, self.error_engine)

    async def _scheduled_broadcast(self) -> None:
        logger.info("Posting scheduled prompt")
        await self.error_engine.guard("scheduled broadcast", self.broadcaster.broadcast(trigger="scheduled"))

    async def _run_startup_actions(self) -> None:
        channel_id = self.config.prompt_channel_id
        if self.config.announce_on_startup and channel_id:
            await self.error_engine.guard(
                "startup announcement",
                self.gateway.post_to_channel(channel_id, content="🤖 PromptBot is online and ready for prompts!"),
            )
        if self.config.broadcast_on_startup:
            await self.error_engine.guard("startup broadcast", self.broadcaster.broadcast(trigger="startup"))

    async def start(self) -> None:
        logger.info("Launch sequence complete. Connecting to Discord gateway.")
        try:
            await self.bot.start(self.config.discord_token)
        finally:
            await self.close()

    async def close(self) -> None:
        self.scheduler.shutdown()
        await self.mirror.close()
        await self.openai.close()
        if not self.bot.is_closed():
            await self.bot.close()

    def _log_prelaunch_sequence(self) -> None:
        self.error_engine.takeoff_sequence()
        logger.info("==============================================")
        logger.info("      PromptBot launch control: sequence start ")
        logger.info("==============================================")
        if self.config.prompt_channel_id:
            logger.info("Prompt channel: %s", self.config.prompt_channel_id)
        else:
            logger.warning("Prompt channel: <none> (set PROMPT_CHANNEL_ID to enable broadcasts)")
        logger.info("Schedule: '%s' in %s", self.config.prompt_schedule, self.config.timezone)
        logger.info("Storage: %s", self.config.db_path or "<memory only>")
        logger.info("AI: %s", self.config.openai_model if self.openai.configured else "<canned fallbacks>")
        rewards = self.config.rewards
        logger.info(
            "Rewards: submission=%s reply=%s kudos=%s (self-kudos %s)",
            rewards.submission,
            rewards.reply,
            rewards.kudos,
            "allowed" if self.config.allow_self_kudos else "ignored",
        )
        if self.config.owner_ids:
            logger.info("Owner IDs: %s", ", ".join(str(oid) for oid in sorted(self.config.owner_ids)))


def run_prompt_bot() -> None:
    runner = PromptBotRunner()
    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("PromptBot interrupted by user")


__all__ = ["PromptBotRunner", "run_prompt_bot"]
