"""
Due-date scanners run on every scheduler tick.

scan_due_soon sends reminders for tasks whose due date falls inside one of the
owner's notification windows (now, now + interval]. It keeps no record of what
was already sent, so a task that stays inside a window is reminded again on
the next tick.

scan_overdue moves past-due, incomplete tasks to the overdue status and tells
the owner once, at the moment of the transition.
"""
from datetime import datetime, timedelta
from ..db.models.task import TaskStatus
from ..db.repositories import TaskFilter, TaskRepository, UserRepository
from ..utils.logger import get_logger
from ..utils.notifications import send_task_reminder, OVERDUE_INTERVAL
from ..utils.time import to_naive_utc

logger = get_logger(__name__)


def scan_due_soon(
    task_repo: TaskRepository,
    user_repo: UserRepository,
    notifier,
    now: datetime
) -> int:
    now = to_naive_utc(now)
    dispatched = 0

    try:
        users = user_repo.list_users()
    except Exception as e:
        logger.error(f"Error listing users for due-soon scan: {e}")
        return dispatched

    for user in users:
        if not user.notification_enabled or not user.notification_intervals:
            continue

        for interval in user.notification_intervals:
            try:
                tasks = task_repo.find_tasks(TaskFilter(
                    user_id=user.id,
                    completed=False,
                    status_not=TaskStatus.OVERDUE,
                    due_after=now,
                    due_until=now + timedelta(minutes=interval),
                ))
            except Exception as e:
                logger.error(f"Error finding tasks due within {interval} min for user {user.id}: {e}")
                continue

            for task in tasks:
                try:
                    send_task_reminder(notifier, user, task, interval)
                    dispatched += 1
                except Exception as e:
                    logger.error(f"Error sending reminder for task {task.id}: {e}")

    if dispatched:
        logger.info(f"Dispatched {dispatched} due-soon reminders")
    return dispatched


def scan_overdue(
    task_repo: TaskRepository,
    user_repo: UserRepository,
    notifier,
    now: datetime
) -> int:
    now = to_naive_utc(now)
    transitioned = 0

    try:
        tasks = task_repo.find_tasks(TaskFilter(
            due_before=now,
            completed=False,
            status_not=TaskStatus.OVERDUE,
        ))
    except Exception as e:
        logger.error(f"Error finding overdue tasks: {e}")
        return transitioned

    # Commits inside the loop expire the loaded rows, so read ids up front
    candidates = [(task.id, task.user_id) for task in tasks]

    for task_id, user_id in candidates:
        try:
            updated = task_repo.set_task_status(task_id, TaskStatus.OVERDUE)
        except Exception as e:
            # Left untouched, picked up again on the next tick
            logger.error(f"Error marking task {task_id} as overdue: {e}")
            continue

        if updated is None:
            logger.warning(f"Task {task_id} disappeared before it could be marked overdue")
            continue

        transitioned += 1
        logger.info(f"Task {task_id} marked as overdue")

        try:
            user = user_repo.get_user(user_id)
        except Exception as e:
            logger.error(f"Error loading owner {user_id} of overdue task {task_id}: {e}")
            continue

        if user is None:
            logger.warning(f"Owner {user_id} of overdue task {task_id} not found, skipping notification")
            continue
        if not user.notification_enabled:
            continue

        try:
            send_task_reminder(notifier, user, updated, OVERDUE_INTERVAL)
        except Exception as e:
            logger.error(f"Error sending overdue notice for task {task_id}: {e}")

    if transitioned:
        logger.info(f"Marked {transitioned} tasks as overdue")
    return transitioned
