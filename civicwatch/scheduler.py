from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "news_ingest"


class NewsScheduler:
    """Runs a callback at startup and at the top of every even hour.

    Overlapping ticks are skipped (max_instances=1); a callback exception is
    logged and does not affect later ticks.
    """

    def __init__(
        self,
        timezone: Optional[str] = None,
        hour: str = "*/2",
        minute: int = 0,
        run_on_start: bool = True,
    ):
        self.run_on_start = run_on_start
        self._sched = BackgroundScheduler(timezone=timezone)
        self.trigger = CronTrigger(hour=hour, minute=minute, timezone=self._sched.timezone)
        self._callback: Optional[Callable[[], Any]] = None

    @property
    def running(self) -> bool:
        return bool(self._sched.running)

    def _tick(self) -> None:
        if self._callback is None:
            return
        try:
            self._callback()
        except Exception as e:
            logger.exception("scheduled tick failed: %s", e)

    def start(self, callback: Callable[[], Any]) -> None:
        self._callback = callback
        kwargs = {}
        if self.run_on_start:
            kwargs["next_run_time"] = dt.datetime.now(self._sched.timezone)
        self._sched.add_job(
            self._tick,
            trigger=self.trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=15 * 60,
            replace_existing=True,
            **kwargs,
        )
        self._sched.start()
        job = self._sched.get_job(JOB_ID)
        logger.info("scheduler started tz=%s next_run=%s", self._sched.timezone, job.next_run_time if job else None)

    def stop(self, wait: bool = False) -> None:
        if self._sched.running:
            self._sched.shutdown(wait=wait)
            logger.info("scheduler stopped")
