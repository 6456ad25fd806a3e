from .user import User, NotificationType
from .task import Task, TaskStatus, TaskPriority

__all__ = [
    "User",
    "NotificationType",
    "Task",
    "TaskStatus",
    "TaskPriority",
]
