from typing import Annotated
from fastapi import Depends
from ..core.exceptions import ForbiddenError
from ..db.models.task import Task
from ..db.models.user import User
from .auth import get_current_user

ADMIN_ROLE = "admin"


def is_admin(user: User) -> bool:
    return ADMIN_ROLE in (user.roles or [])


def can_access_task(user: User, task: Task) -> bool:
    return task.user_id == user.id or is_admin(user)


def ensure_task_access(user: User, task: Task):
    if not can_access_task(user, task):
        raise ForbiddenError("You do not have access to this task")


def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not is_admin(user):
        raise ForbiddenError("Admin role required")
    return user


admin_dependency = Annotated[User, Depends(require_admin)]
