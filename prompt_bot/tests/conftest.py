import itertools
from pathlib import Path
import random
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prompt_bot.config import PromptBotConfig  # noqa: E402
from prompt_bot.core.bot_state import BotState  # noqa: E402
from prompt_bot.core.error_engine import ErrorEngine  # noqa: E402
from prompt_bot.core.models import MessageRef  # noqa: E402
from prompt_bot.core.persistence_mirror import PersistenceMirror  # noqa: E402
from prompt_bot.core.prompt_engine import PromptEngine  # noqa: E402
from prompt_bot.core.response_pipeline import ResponsePipeline  # noqa: E402


PROMPT_CHANNEL_ID = 555


@pytest.fixture()
def sample_config() -> PromptBotConfig:
    return PromptBotConfig(
        discord_token="testing-token",
        prompt_channel_id=PROMPT_CHANNEL_ID,
        owner_ids={1},
        test_guild_ids={2},
        db_path=None,
    )


@pytest.fixture()
def error_engine(tmp_path):
    engine = ErrorEngine(log_file=str(tmp_path / "errors.log"))
    yield engine
    for handler in list(engine.logger.handlers):
        handler.close()
        engine.logger.removeHandler(handler)


@pytest.fixture()
def state(error_engine) -> BotState:
    mirror = PersistenceMirror(storage=None, error_engine=error_engine)
    return BotState.create(mirror=mirror, rng=random.Random(42))


@pytest.fixture()
def gateway():
    """AsyncMock stand-in for DiscordChatGateway that hands out fresh message ids."""

    ids = itertools.count(9000)
    double = MagicMock()
    double.send_direct = AsyncMock(side_effect=lambda user_id, **_: MessageRef(user_id, next(ids)))
    double.post_to_channel = AsyncMock(side_effect=lambda channel_id, **_: MessageRef(channel_id, next(ids)))
    double.reply_to_message = AsyncMock(
        side_effect=lambda channel_id, message_id, **_: MessageRef(channel_id, next(ids))
    )
    double.delete_message = AsyncMock(return_value=None)
    double.list_channel_members = AsyncMock(return_value=[])
    return double


@pytest.fixture()
def prompt_engine() -> PromptEngine:
    engine = PromptEngine(openai=None, rng=random.Random(7))
    engine.generate_feedback = AsyncMock(return_value="Nice work!")  # type: ignore[method-assign]
    return engine


@pytest.fixture()
def pipeline(state, gateway, prompt_engine, sample_config) -> ResponsePipeline:
    return ResponsePipeline(state, gateway, prompt_engine, sample_config)


__all__ = ["PROMPT_CHANNEL_ID"]
