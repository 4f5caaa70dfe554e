"""Environment-backed configuration helpers for PromptBot."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional, Set
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_PROMPT_SCHEDULE = "0 9,14,18 * * mon,wed,fri"
DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_DB_PATH = "data/promptbot.sqlite3"
_DISABLED_VALUES = {"", "none", "off", "false", "0", "memory"}


class ConfigurationError(RuntimeError):
    """Raised when configuration (or a configured value) is unusable."""


def _int_list(value: str) -> List[int]:
    ints: List[int] = []
    for chunk in (value or "").replace(";", ",").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            ints.append(int(chunk))
        except ValueError:
            continue
    return ints


def _split_ints(value: str) -> Set[int]:
    return set(_int_list(value))


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(int(raw), minimum)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(slots=True, frozen=True)
class RewardTable:
    """Points granted per event type."""

    submission: int = 1
    reply: int = 1
    kudos: int = 1


@dataclass(slots=True)
class PromptBotConfig:
    discord_token: str
    prompt_channel_id: Optional[int] = None
    owner_ids: Set[int] = field(default_factory=set)
    test_guild_ids: Set[int] = field(default_factory=set)
    command_prefix: str = "!"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    dictionary_model: str = "gpt-4o-mini"
    # None keeps everything in memory.
    db_path: Optional[str] = DEFAULT_DB_PATH
    prompt_schedule: str = DEFAULT_PROMPT_SCHEDULE
    timezone: str = DEFAULT_TIMEZONE
    rewards: RewardTable = field(default_factory=RewardTable)
    allow_self_kudos: bool = True
    english_fallback_length: int = 50
    leaderboard_size: int = 10
    broadcast_on_startup: bool = False
    announce_on_startup: bool = False
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown timezone '{self.timezone}'") from exc

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.db_path)

    @classmethod
    def from_env(cls) -> "PromptBotConfig":
        token = os.getenv("DISCORD_TOKEN", "").strip()
        if not token:
            raise ConfigurationError("DISCORD_TOKEN is required to run the bot")

        # Accept a single ID or a list and use the first valid integer.
        channel_ids = _int_list(os.getenv("PROMPT_CHANNEL_ID", ""))
        prompt_channel_id = channel_ids[0] if channel_ids else None

        db_raw = os.getenv("PROMPTBOT_DB_PATH")
        if db_raw is None:
            db_path: Optional[str] = DEFAULT_DB_PATH
        elif db_raw.strip().lower() in _DISABLED_VALUES:
            db_path = None
        else:
            db_path = db_raw.strip()

        config = cls(
            discord_token=token,
            prompt_channel_id=prompt_channel_id,
            owner_ids=_split_ints(os.getenv("OWNER_IDS", "")),
            test_guild_ids=_split_ints(os.getenv("TEST_GUILDS", "")),
            command_prefix=os.getenv("BOT_PREFIX", "!").strip() or "!",
            # Support both OPENAI_API_KEY and legacy OPEN_AI_API_KEY
            openai_api_key=(
                os.getenv("OPENAI_API_KEY", "").strip()
                or os.getenv("OPEN_AI_API_KEY", "").strip()
                or None
            ),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini",
            dictionary_model=os.getenv("OPENAI_DICTIONARY_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini",
            db_path=db_path,
            prompt_schedule=os.getenv("PROMPT_SCHEDULE", DEFAULT_PROMPT_SCHEDULE).strip()
            or DEFAULT_PROMPT_SCHEDULE,
            timezone=os.getenv("TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE,
            rewards=RewardTable(
                submission=_int_env("REWARD_SUBMISSION", 1),
                reply=_int_env("REWARD_REPLY", 1),
                kudos=_int_env("REWARD_KUDOS", 1),
            ),
            allow_self_kudos=_bool_env("ALLOW_SELF_KUDOS", True),
            english_fallback_length=_int_env("ENGLISH_FALLBACK_LENGTH", 50, minimum=1),
            leaderboard_size=_int_env("LEADERBOARD_SIZE", 10, minimum=1),
            broadcast_on_startup=_bool_env("BROADCAST_ON_STARTUP", False),
            announce_on_startup=_bool_env("ANNOUNCE_ON_STARTUP", False),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` for values that cannot work."""

        from prompt_bot.core.scheduler import build_trigger

        build_trigger(self.prompt_schedule, self.tzinfo)


__all__ = ["PromptBotConfig", "RewardTable", "ConfigurationError"]
