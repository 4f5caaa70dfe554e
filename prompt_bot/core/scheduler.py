"""Cron-driven prompt broadcasts on the bot's own event loop."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from prompt_bot.config import ConfigurationError


logger = logging.getLogger(__name__)

BROADCAST_JOB_ID = "prompt_broadcast"


def build_trigger(expression: str, timezone: tzinfo) -> CronTrigger:
    """Parse a five-field crontab expression.

    Use day names (``mon,wed,fri``) rather than numbers: APScheduler counts
    weekdays from Monday = 0, unlike classic cron.
    """

    try:
        return CronTrigger.from_crontab(expression, timezone=timezone)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid PROMPT_SCHEDULE '{expression}': {exc}") from exc


class PromptScheduler:
    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        expression: str,
        timezone: tzinfo,
    ) -> None:
        self._job = job
        self.expression = expression
        self.timezone = timezone
        self.trigger = build_trigger(expression, timezone)
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the scheduler. Must be called with the event loop running."""

        if self.running:
            return
        scheduler = AsyncIOScheduler(timezone=self.timezone)
        scheduler.add_job(
            self._job,
            trigger=self.trigger,
            id=BROADCAST_JOB_ID,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=300,
        )
        scheduler.start()
        self._scheduler = scheduler
        job = scheduler.get_job(BROADCAST_JOB_ID)
        logger.info("Prompt schedule '%s' (%s); next run at %s", self.expression, self.timezone, job.next_run_time)

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None


__all__ = ["PromptScheduler", "build_trigger", "BROADCAST_JOB_ID"]
