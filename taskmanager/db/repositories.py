"""
Store access used by the due-date scanners.

The scanners only see these two repositories, so they can be exercised
against any SQLAlchemy session (or a fake with the same methods).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from .models.task import Task
from .models.user import User
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TaskFilter:
    user_id: Optional[int] = None
    due_after: Optional[datetime] = None     # exclusive
    due_before: Optional[datetime] = None    # exclusive
    due_until: Optional[datetime] = None     # inclusive
    completed: Optional[bool] = None
    status_not: Optional[str] = None


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_tasks(self, task_filter: TaskFilter) -> List[Task]:
        query = self.db.query(Task)

        if task_filter.user_id is not None:
            query = query.filter(Task.user_id == task_filter.user_id)
        if task_filter.due_after is not None:
            query = query.filter(Task.due_date > task_filter.due_after)
        if task_filter.due_before is not None:
            query = query.filter(Task.due_date < task_filter.due_before)
        if task_filter.due_until is not None:
            query = query.filter(Task.due_date <= task_filter.due_until)
        if task_filter.completed is not None:
            query = query.filter(Task.completed == task_filter.completed)
        if task_filter.status_not is not None:
            query = query.filter(Task.status != task_filter.status_not)

        try:
            return query.order_by(Task.id.asc()).all()
        except Exception:
            self.db.rollback()
            raise

    def set_task_status(self, task_id: int, status: str) -> Optional[Task]:
        try:
            task = self.db.get(Task, task_id)
            if not task:
                return None

            task.status = status
            self.db.commit()
            self.db.refresh(task)
            return task

        except Exception:
            self.db.rollback()
            raise


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> List[User]:
        try:
            return self.db.query(User).order_by(User.id.asc()).all()
        except Exception:
            self.db.rollback()
            raise

    def get_user(self, user_id: int) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except Exception:
            self.db.rollback()
            raise
