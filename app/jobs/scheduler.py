"""
Background Jobs - periodic feed checks, the startup verification sweep and cleanup
"""
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime, timedelta
import atexit
import logging

logger = logging.getLogger('main')

FEED_CHECK_JOB_ID = 'free_games_check'
VERIFY_JOB_ID = 'steam_free_games_verify'
CLEANUP_JOB_ID = 'free_games_cleanup'


class JobScheduler:
    """Owns the background scheduler and the jobs that drive the free games pipeline"""

    def __init__(self, app, feed_service, verifier, settings=None):
        self.app = app
        self.feed_service = feed_service
        self.verifier = verifier
        if settings is None:
            from settings import load_settings

            settings = load_settings()["free_games"]
        self.settings = settings
        self.scheduler = BackgroundScheduler(job_defaults={'max_instances': 1, 'coalesce': True})
        self._jobs_registered = False

    def start(self):
        """Register jobs and start the scheduler thread"""
        self._register_jobs()
        self.scheduler.start()
        atexit.register(self.shutdown)
        logger.info("Job scheduler started")

    def _register_jobs(self):
        """Register the feed, verification and cleanup jobs once"""
        if self._jobs_registered:
            return

        interval = self.settings.get('check_interval_minutes', 60)
        verify_delay = self.settings.get('verify_startup_delay_seconds', 30)
        now = datetime.now()

        # Feed check: once at startup, then on a fixed interval
        self.scheduler.add_job(
            func=self.run_feed_check,
            trigger=IntervalTrigger(minutes=interval),
            id=FEED_CHECK_JOB_ID,
            name='Check free games feed',
            next_run_time=now,
            replace_existing=True,
        )

        # One-shot Steam verification, delayed to stay clear of startup load
        self.scheduler.add_job(
            func=self.run_verification,
            trigger=DateTrigger(run_date=now + timedelta(seconds=verify_delay)),
            id=VERIFY_JOB_ID,
            name='Verify Steam free games',
            replace_existing=True,
        )

        # Age-based cleanup (daily at 4 AM)
        self.scheduler.add_job(
            func=self.run_cleanup,
            trigger=CronTrigger(hour=4, minute=0),
            id=CLEANUP_JOB_ID,
            name='Clean up old free games',
            replace_existing=True,
        )

        self._jobs_registered = True
        logger.info(f"Background jobs registered (feed every {interval} min, verification in {verify_delay}s)")

    def run_feed_check(self):
        with self.app.app_context():
            try:
                return self.feed_service.check_for_new_games()
            except Exception as e:
                logger.error(f"Error during free games check job: {e}")

    def run_verification(self):
        with self.app.app_context():
            try:
                return self.verifier.verify_all()
            except Exception as e:
                logger.error(f"Error during Steam verification job: {e}")

    def run_cleanup(self):
        with self.app.app_context():
            try:
                return self.feed_service.cleanup(self.settings.get('retention_days', 30))
            except Exception as e:
                logger.error(f"Error during free games cleanup job: {e}")

    def get_jobs(self):
        return [
            {
                'id': job.id,
                'name': job.name,
                'next_run_time': job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self.scheduler.get_jobs()
        ]

    def pause(self):
        if self.scheduler.running:
            self.scheduler.pause()

    def resume(self):
        if self.scheduler.running:
            self.scheduler.resume()

    def shutdown(self):
        """Stop the scheduler without waiting for running jobs"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Job scheduler shutdown")
