"""Daily scheduling of the worklog fetch."""

import enum
import logging
import threading
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from clients import JiraClient
from models import FetchResult
from storage import Storage
from utils import DEFAULT_SCHEDULE_TIME, DEFAULT_TIMEZONE, ConfigError, parse_schedule_time
from worklog_job import fetch_worklogs

logger = logging.getLogger(__name__)

JOB_ID = "daily_worklog_fetch"


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class JobAlreadyRunningError(Exception):
    """A worklog fetch is already in progress."""


class WorklogScheduler:
    """Runs the worklog fetch once a day and on demand, never two at a time.

    Scheduled and manual triggers share one guard. A scheduled trigger that
    finds a run in flight is skipped; a manual one raises
    JobAlreadyRunningError.
    """

    def __init__(
        self,
        storage: Storage,
        client_factory: Callable[[], JiraClient] = JiraClient.from_env,
        schedule_time: str = DEFAULT_SCHEDULE_TIME,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self.storage = storage
        self.client_factory = client_factory
        self.hour, self.minute = parse_schedule_time(schedule_time)
        self.timezone = timezone

        self._guard = threading.Lock()
        self._state = SchedulerState.IDLE
        self.last_result: FetchResult | None = None
        self.last_error: str | None = None
        self.last_run_at: datetime | None = None

        try:
            trigger = CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone)
        except (LookupError, ValueError):
            raise ConfigError(f"Invalid WORKLOG_TIMEZONE '{timezone}'")

        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            func=self._scheduled_run,
            trigger=trigger,
            id=JOB_ID,
            name=f"Fetch worklogs daily at {self.hour:02d}:{self.minute:02d} {self.timezone}",
            replace_existing=True,
        )

    @property
    def state(self) -> SchedulerState:
        return self._state

    def start(self) -> None:
        self._scheduler.start()
        logger.info(
            "Daily worklog job scheduled at %02d:%02d %s", self.hour, self.minute, self.timezone
        )

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def run(self, worklog_date: str | None = None) -> FetchResult:
        """Run the fetch now.

        Raises:
            JobAlreadyRunningError: if another run holds the guard
            ConfigError: if Jira credentials are missing
        """
        if not self._guard.acquire(blocking=False):
            raise JobAlreadyRunningError("Worklog fetch already running")

        self._state = SchedulerState.RUNNING
        self.last_run_at = datetime.now()
        try:
            client = self.client_factory()
            result = fetch_worklogs(self.storage, client, worklog_date)
        except Exception as e:
            self.last_error = str(e)
            raise
        else:
            self.last_result = result
            self.last_error = None
            return result
        finally:
            self._state = SchedulerState.IDLE
            self._guard.release()

    def _scheduled_run(self) -> None:
        try:
            self.run()
        except JobAlreadyRunningError:
            logger.info("Skipping scheduled job - already running")
        except Exception:
            logger.exception("Scheduled worklog fetch failed")

    def next_run_time(self) -> datetime | None:
        job = self._scheduler.get_job(JOB_ID)
        if job is None:
            return None
        return getattr(job, "next_run_time", None)

    def status(self) -> dict:
        next_run = self.next_run_time()
        return {
            "state": self._state.value,
            "scheduleTime": f"{self.hour:02d}:{self.minute:02d}",
            "timezone": self.timezone,
            "nextRunTime": next_run.isoformat() if next_run else None,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
            "lastError": self.last_error,
        }
