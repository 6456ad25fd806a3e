from ..db.models.task import Task
from ..db.models.user import User, NotificationType
from .logger import get_logger

logger = get_logger(__name__)

OVERDUE_INTERVAL = 0


def build_reminder(user: User, task: Task, interval: int):
    """Return (subject, template name, context) for a due-soon or overdue notice."""
    context = {
        "name": user.name,
        "title": task.title,
        "interval": interval,
        "due_date": task.due_date,
    }
    if interval == OVERDUE_INTERVAL:
        return f"Task Overdue: {task.title}", "task-overdue", context
    return f"Task Reminder: {task.title}", "task-reminder", context


def send_task_reminder(notifier, user: User, task: Task, interval: int):
    subject, template_name, context = build_reminder(user, task, interval)

    if user.notification_type == NotificationType.PUSH:
        if interval == OVERDUE_INTERVAL:
            body = f"'{task.title}' is overdue"
        else:
            body = f"'{task.title}' is due within {interval} minutes"
        notifier.send_push(user.id, subject, body)
    else:
        notifier.send_email(user.email, subject, template_name, context)

    logger.debug(f"Dispatched {template_name} for task {task.id} to user {user.id}")
