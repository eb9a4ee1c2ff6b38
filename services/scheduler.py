"""
Background Job Scheduler - Runs the periodic reminder sweep.
"""

import logging
import threading
from datetime import timedelta
from typing import Dict, Any, Optional, Callable

from app.utils.helpers import now, isoformat

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler = None

REMINDER_JOB_ID = 'process_reminders'


class BackgroundScheduler:
    """Simple background scheduler for running periodic tasks."""

    def __init__(self, poll_seconds: int = 10):
        self.jobs: Dict[str, Dict] = {}
        self.running = False
        self.poll_seconds = poll_seconds
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()

    def add_job(self, job_id: str, func: Callable, interval_seconds: int,
                run_immediately: bool = False, kwargs: Dict = None):
        """
        Add a job to the scheduler.

        Args:
            job_id: Unique identifier for the job
            func: Function to call
            interval_seconds: How often to run (in seconds)
            run_immediately: Whether to run once immediately
            kwargs: Keyword arguments to pass to the function
        """
        current = now()
        with self._lock:
            self.jobs[job_id] = {
                'func': func,
                'interval': interval_seconds,
                'kwargs': kwargs or {},
                'last_run': None,
                'next_run': current if run_immediately else current + timedelta(seconds=interval_seconds),
                'run_count': 0,
                'last_error': None,
            }
            logger.info(f"Added job '{job_id}' with interval {interval_seconds}s")

    def remove_job(self, job_id: str):
        with self._lock:
            if job_id in self.jobs:
                del self.jobs[job_id]
                logger.info(f"Removed job '{job_id}'")

    def get_job_status(self) -> Dict[str, Any]:
        """Get status of all jobs."""
        with self._lock:
            return {
                job_id: {
                    'interval': job['interval'],
                    'last_run': isoformat(job['last_run']),
                    'next_run': isoformat(job['next_run']),
                    'run_count': job['run_count'],
                    'last_error': job['last_error'],
                }
                for job_id, job in self.jobs.items()
            }

    def start(self):
        """Start the scheduler in a background thread."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()
        logger.info("Background scheduler started")

    def stop(self):
        """Stop the scheduler."""
        self.running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        logger.info("Background scheduler stopped")

    def run_pending(self, current=None) -> int:
        """Run every job whose next_run has arrived. Returns how many ran."""
        current = current or now()
        with self._lock:
            due = [(job_id, job) for job_id, job in self.jobs.items() if current >= job['next_run']]

        for job_id, job in due:
            try:
                logger.debug(f"Running job '{job_id}'")
                job['func'](**job['kwargs'])
                with self._lock:
                    job['last_error'] = None
            except Exception as e:
                logger.error(f"Job '{job_id}' failed: {e}")
                with self._lock:
                    job['last_error'] = str(e)
            with self._lock:
                job['last_run'] = current
                job['next_run'] = current + timedelta(seconds=job['interval'])
                job['run_count'] += 1
        return len(due)

    def _run_loop(self):
        while self.running and not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(timeout=self.poll_seconds)


def get_scheduler() -> BackgroundScheduler:
    """Get or create the global scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler()
    return _scheduler


def init_scheduler(interval_seconds: int = 60):
    """Register the reminder sweep and start the scheduler."""
    from services.reminder_service import run_reminder_check

    scheduler = get_scheduler()
    scheduler.add_job(
        REMINDER_JOB_ID,
        run_reminder_check,
        interval_seconds=interval_seconds,
        run_immediately=True
    )
    scheduler.start()
    logger.info(f"Scheduler initialized, reminder sweep every {interval_seconds}s")
    return scheduler
