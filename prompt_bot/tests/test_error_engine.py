import asyncio
import logging
import sys
from unittest.mock import AsyncMock

import pytest


async def _boom():
    raise ValueError("kaboom")


async def _ok():
    return 42


@pytest.mark.asyncio
async def test_guard_returns_result(error_engine):
    assert await error_engine.guard("ok", _ok()) == 42


@pytest.mark.asyncio
async def test_guard_logs_and_notifies(error_engine, tmp_path):
    on_error = AsyncMock()

    assert await error_engine.guard("handler", _boom(), on_error=on_error) is None

    on_error.assert_awaited_once()
    assert isinstance(on_error.await_args.args[0], ValueError)
    for handler in error_engine.logger.handlers:
        handler.flush()
    log_text = (tmp_path / "errors.log").read_text(encoding="utf-8")
    assert "Exception in handler: ValueError: kaboom" in log_text


@pytest.mark.asyncio
async def test_failing_notification_is_logged_not_raised(error_engine, tmp_path):
    on_error = AsyncMock(side_effect=RuntimeError("dm closed"))

    assert await error_engine.guard("handler", _boom(), on_error=on_error) is None

    for handler in error_engine.logger.handlers:
        handler.flush()
    assert "handler (error notification)" in (tmp_path / "errors.log").read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_guard_does_not_swallow_cancellation(error_engine):
    async def cancelled():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await error_engine.guard("cancel", cancelled())


def test_catch_uncaught_installs_excepthook(error_engine, monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.__excepthook__)
    error_engine.catch_uncaught()
    assert sys.excepthook is not sys.__excepthook__


def test_library_logging_uses_package_logger():
    from prompt_bot.core.logging_utils import configure_library_logging

    logger = configure_library_logging(level="debug")
    try:
        assert logger.name == "prompt_bot"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False
    finally:
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
