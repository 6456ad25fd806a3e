import json
from sqlalchemy.orm import Session
from sqlalchemy import String, and_, cast, or_
from datetime import timedelta
from typing import List, Optional
from ..db.models.task import Task, TaskStatus, TaskPriority
from ..db.models.user import User
from ..schemas.task import TaskCreate, TaskUpdate, TaskSummary
from ..utils.logger import get_logger
from ..utils.time import utcnow, to_naive_utc
from .permissions import ensure_task_access

logger = get_logger(__name__)

# Columns a client may clear by sending null
NULLABLE_FIELDS = {"description", "due_date"}


class TaskService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def create_task(self, task_data: TaskCreate) -> Task:
        try:
            task = Task(
                user_id=self.user.id,
                title=task_data.title,
                description=task_data.description,
                due_date=to_naive_utc(task_data.due_date),
                priority=task_data.priority or TaskPriority.MEDIUM,
                tags=list(task_data.tags),
                completed=False,
                status=TaskStatus.PENDING,
            )

            self.db.add(task)
            self.db.commit()
            self.db.refresh(task)

            logger.info(f"Task created: {task.id} - {task.title}")
            return task

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating task: {e}")
            raise

    def get_tasks(
        self,
        skip: int = 0,
        limit: int = 20,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        tags: Optional[List[str]] = None,
        search: Optional[str] = None
    ) -> List[Task]:
        try:
            query = self.db.query(Task).filter(Task.user_id == self.user.id)

            if status:
                query = query.filter(Task.status == status)

            if priority:
                query = query.filter(Task.priority == priority)

            if search:
                search_term = f"%{search}%"
                query = query.filter(
                    or_(
                        Task.title.ilike(search_term),
                        Task.description.ilike(search_term)
                    )
                )

            if tags:
                # Match any tag against the serialized JSON list
                query = query.filter(
                    or_(*[
                        cast(Task.tags, String).contains(json.dumps(tag), autoescape=True)
                        for tag in tags
                    ])
                )

            tasks = query.order_by(
                Task.due_date.asc().nullslast(),
                Task.created_at.desc()
            ).offset(skip).limit(limit).all()

            logger.info(f"Retrieved {len(tasks)} tasks for user {self.user.id}")
            return tasks

        except Exception as e:
            logger.error(f"Error retrieving tasks: {e}")
            raise

    def get_task_by_id(self, task_id: int) -> Optional[Task]:
        task = self.db.get(Task, task_id)
        if not task:
            logger.warning(f"Task {task_id} not found for user {self.user.id}")
            return None

        ensure_task_access(self.user, task)
        return task

    def update_task(self, task_id: int, task_data: TaskUpdate) -> Optional[Task]:
        task = self.get_task_by_id(task_id)
        if not task:
            return None

        try:
            update_data = task_data.model_dump(exclude_unset=True)

            for field, value in update_data.items():
                if value is None and field not in NULLABLE_FIELDS:
                    continue
                if field == "due_date":
                    value = to_naive_utc(value)
                setattr(task, field, value)

            self._sync_status(task, update_data)

            self.db.commit()
            self.db.refresh(task)

            logger.info(f"Task updated: {task.id}")
            return task

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating task {task_id}: {e}")
            raise

    def _sync_status(self, task: Task, update_data: dict):
        if update_data.get("completed") is True:
            task.status = TaskStatus.COMPLETED
        elif update_data.get("completed") is False:
            task.status = TaskStatus.PENDING
        elif (
            "due_date" in update_data
            and task.status == TaskStatus.OVERDUE
            and (task.due_date is None or task.due_date > utcnow())
        ):
            # Pushed back out of the past, the scanner may pick it up again
            task.status = TaskStatus.PENDING

    def delete_task(self, task_id: int) -> bool:
        task = self.get_task_by_id(task_id)
        if not task:
            return False

        try:
            self.db.delete(task)
            self.db.commit()

            logger.info(f"Task deleted: {task_id}")
            return True

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting task {task_id}: {e}")
            raise

    def mark_as_completed(self, task_id: int) -> Optional[Task]:
        return self.update_task(task_id, TaskUpdate(completed=True))

    def get_task_summary(self) -> TaskSummary:
        try:
            now = utcnow()
            owned = self.db.query(Task).filter(Task.user_id == self.user.id)

            total = owned.count()
            completed = owned.filter(Task.completed == True).count()
            pending = total - completed

            overdue = owned.filter(
                and_(
                    Task.completed == False,
                    or_(
                        Task.status == TaskStatus.OVERDUE,
                        Task.due_date < now
                    )
                )
            ).count()

            today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
            today_end = today_start + timedelta(days=1)
            due_today = owned.filter(
                and_(
                    Task.due_date >= today_start,
                    Task.due_date < today_end,
                    Task.completed == False
                )
            ).count()

            return TaskSummary(
                total=total,
                completed=completed,
                pending=pending,
                overdue=overdue,
                due_today=due_today
            )

        except Exception as e:
            logger.error(f"Error getting task summary: {e}")
            raise
