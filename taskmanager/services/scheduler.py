from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from typing import Callable, Dict, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from ..core.config import SCAN_INTERVAL_MINUTES
from ..db.repositories import TaskRepository, UserRepository
from ..db.session import SessionLocal
from ..utils.logger import get_logger
from ..utils.time import utcnow
from .notification_service import NotificationService
from .scanner import scan_due_soon, scan_overdue

logger = get_logger(__name__)

SCAN_JOB_ID = "scan_tasks"


class TaskScheduler:
    """
    Owns the recurring due-date scan.

    One job runs both scanners back to back every ``interval_minutes``. A
    scanner that raises is logged and the other one still runs; the job
    itself never raises into APScheduler, so the next tick is unaffected.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        notifier: Optional[NotificationService] = None,
        interval_minutes: int = SCAN_INTERVAL_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or NotificationService()
        self.interval_minutes = interval_minutes
        self.clock = clock
        self._scheduler = BackgroundScheduler()

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def run_scans(self) -> Dict[str, Optional[int]]:
        results: Dict[str, Optional[int]] = {"due_soon": None, "overdue": None}
        db: Optional[Session] = None
        try:
            db = self.session_factory()
            task_repo = TaskRepository(db)
            user_repo = UserRepository(db)
            now = self.clock()
            logger.debug(f"Running task due date check at {now}")

            scans = (("due_soon", scan_due_soon), ("overdue", scan_overdue))
            for name, scan in scans:
                try:
                    results[name] = scan(task_repo, user_repo, self.notifier, now)
                except Exception as e:
                    logger.error(f"Error in {name} scan: {e}")
                    db.rollback()

        except Exception as e:
            logger.error(f"Error in run_scans: {e}")
        finally:
            if db is not None:
                db.close()

        return results

    def start(self):
        try:
            self._scheduler.add_job(
                func=self.run_scans,
                trigger=IntervalTrigger(minutes=self.interval_minutes),
                id=SCAN_JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info(f"Scheduled: Scan tasks (every {self.interval_minutes} minute(s))")

            self._scheduler.start()
            logger.info("Task scheduler started successfully")

        except Exception as e:
            logger.error(f"Error starting scheduler: {e}")
            raise

    def shutdown(self):
        if not self._scheduler.running:
            return
        try:
            self._scheduler.shutdown(wait=False)
            logger.info("Task scheduler shutdown successfully")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {e}")

    def get_job(self):
        return self._scheduler.get_job(SCAN_JOB_ID)
