from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from django.conf import settings
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


SWEEP_JOB_ID = "crm-session-sweep"


def job_id_for(session_id):
    return f"notifications-{session_id}"


class NotificationScheduler:
    """
    Background polling of notification feeds, one job per CRM session.

    - Respects ENABLE_SCHEDULER setting
    - Jobs are owned by the session lifecycle: added at login,
      removed at logout or when a sweep finds the session expired
    - Never runs two refreshes of the same feed at once
    """

    def __init__(self, scheduler=None, interval_minutes=None, enabled=None):
        self.interval_minutes = (
            interval_minutes
            if interval_minutes is not None
            else settings.NOTIFICATION_REFRESH_MINUTES
        )
        self._scheduler = scheduler
        self._enabled = enabled
        self.sweep_minutes = getattr(settings, "SESSION_SWEEP_MINUTES", 15)

    @property
    def enabled(self):
        if self._enabled is not None:
            return self._enabled
        return self._scheduler is not None or getattr(settings, "ENABLE_SCHEDULER", False)

    @property
    def running(self):
        return self._scheduler is not None and self._scheduler.running

    # --------------------------------------------
    # SCHEDULER LIFECYCLE
    # --------------------------------------------
    def start(self):
        if not self.enabled:
            logger.info("APScheduler disabled via settings (ENABLE_SCHEDULER=False)")
            return False

        # SAFETY LOCK (NO DOUBLE START)
        if self.running:
            logger.info("APScheduler already running, skipping initialization")
            return False

        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(timezone=settings.TIME_ZONE)

        logger.info("Starting APScheduler...")
        self._scheduler.start()
        return True

    def shutdown(self):
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("APScheduler stopped")

    # --------------------------------------------
    # PER-SESSION POLLING
    # --------------------------------------------
    def start_polling(self, session_id, aggregator):
        """
        Refresh `aggregator` now, then every interval, until stop_polling().
        """
        if not self.enabled:
            return None

        if not self.running:
            self.start()

        job = self._scheduler.add_job(
            run_notification_refresh,
            trigger="interval",
            minutes=self.interval_minutes,
            args=[aggregator],
            id=job_id_for(session_id),
            next_run_time=timezone.now(),
            replace_existing=True,
            max_instances=1,      # Prevent overlapping runs
            coalesce=True,        # Merge missed runs
        )

        logger.info(
            "Notification polling started for session %s: every %s minutes",
            session_id,
            self.interval_minutes,
        )
        return job

    def stop_polling(self, session_id):
        if self._scheduler is None:
            return False

        try:
            self._scheduler.remove_job(job_id_for(session_id))
        except JobLookupError:
            return False

        logger.info("Notification polling stopped for session %s", session_id)
        return True

    def start_sweeping(self, sweep):
        """
        Run `sweep` every SESSION_SWEEP_MINUTES to close sessions whose
        cookie expired without a logout. Added once; later calls reuse it.
        """
        if not self.enabled:
            return None

        if not self.running:
            self.start()

        job = self._scheduler.get_job(SWEEP_JOB_ID)
        if job is not None:
            return job

        job = self._scheduler.add_job(
            sweep,
            trigger="interval",
            minutes=self.sweep_minutes,
            id=SWEEP_JOB_ID,
            max_instances=1,
            coalesce=True,
        )

        logger.info("Expired session sweep scheduled: every %s minutes", self.sweep_minutes)
        return job

    def is_polling(self, session_id):
        return (
            self._scheduler is not None
            and self._scheduler.get_job(job_id_for(session_id)) is not None
        )


def run_notification_refresh(aggregator):
    """
    Job body. Keeps all business logic in the aggregator; a failed
    refresh is logged there and the next tick retries.
    """
    if aggregator.closed:
        return
    aggregator.refresh()
