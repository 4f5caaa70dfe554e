import asyncio
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import traceback
from typing import Any, Awaitable, Callable, Optional, TypeVar


T = TypeVar("T")
ErrorCallback = Callable[[BaseException], Awaitable[Any]]


class ErrorEngine:
    """Central sink for unexpected exceptions.

    ``guard`` is the one place event handlers are wrapped: it logs the failure
    to the rotating error log, runs an optional apology callback and swallows
    the exception so the gateway connection keeps running.
    """

    def __init__(self, log_file: str = "logs/promptbot_errors.log"):
        self.logger = logging.getLogger("PromptBotErrorEngine")
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        # Avoid attaching duplicate file handlers if constructed multiple times
        abs_path = os.path.abspath(log_file)
        has_handler = any(
            isinstance(h, RotatingFileHandler)
            and getattr(h, "baseFilename", None) == abs_path
            for h in self.logger.handlers
        )
        if not has_handler:
            handler = RotatingFileHandler(abs_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
            formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
        self.logger.setLevel(logging.DEBUG)

    def log(self, message: str, level: str = "INFO", emoji: str = "✨"):
        msg = f"{emoji} {message}"
        if level == "DEBUG":
            self.logger.debug(msg)
        elif level == "WARNING":
            self.logger.warning(msg)
        elif level == "ERROR":
            self.logger.error(msg)
        else:
            self.logger.info(msg)

    def log_exception(self, exc: BaseException, context: str = ""):
        if exc.__traceback__ is not None:
            tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        else:
            tb = traceback.format_exc()
        self.logger.error(f"💥 Exception in {context}: {type(exc).__name__}: {exc}\n{tb}")
        print(f"[PromptBot Error] {type(exc).__name__}: {exc} in {context}", file=sys.stderr)

    async def guard(
        self,
        context: str,
        handler: Awaitable[T],
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[T]:
        """Await ``handler``; on failure log, notify via ``on_error`` and return None."""

        try:
            return await handler
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.log_exception(exc, context=context)
            if on_error is not None:
                try:
                    await on_error(exc)
                except Exception as notify_exc:
                    self.log_exception(notify_exc, context=f"{context} (error notification)")
            return None

    def catch_uncaught(self):
        def handle_exception(exc_type, exc_value, exc_traceback):
            if issubclass(exc_type, KeyboardInterrupt):
                sys.__excepthook__(exc_type, exc_value, exc_traceback)
                return
            self.log_exception(exc_value, context="Uncaught Exception")
            print("🔄 PromptBot will continue running...", file=sys.stderr)
        sys.excepthook = handle_exception

    def install_loop_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        """Log exceptions from tasks nobody awaited instead of losing them."""

        def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
            exc = context.get("exception")
            message = context.get("message", "Unhandled exception in event loop")
            if exc is None:
                self.log(message, level="ERROR", emoji="⚠️")
                return
            self.log_exception(exc, context=f"Unhandled task exception: {message}")

        loop.set_exception_handler(handle_loop_exception)

    def takeoff_sequence(self):
        self.log("PromptBot is preparing for takeoff...", emoji="🚀")
        self.log("Checking systems...", level="DEBUG", emoji="🔎")
        self.log("All systems go!", emoji="✅")
