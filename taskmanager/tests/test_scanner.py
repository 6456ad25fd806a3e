# taskmanager/tests/test_scanner.py

from datetime import timedelta, timezone

from taskmanager.db.models import Task, TaskStatus, NotificationType
from taskmanager.db.repositories import TaskRepository, UserRepository
from taskmanager.services.scanner import scan_due_soon, scan_overdue


def _repos(db):
    return TaskRepository(db), UserRepository(db)


class FlakyTaskRepository(TaskRepository):
    """Fails the status write for selected task ids."""

    def __init__(self, db, failing_ids):
        super().__init__(db)
        self.failing_ids = set(failing_ids)

    def set_task_status(self, task_id, status):
        if task_id in self.failing_ids:
            raise RuntimeError("write failed")
        return super().set_task_status(task_id, status)


class MissingUserRepository(UserRepository):
    def get_user(self, user_id):
        return None


class BrokenUserRepository(UserRepository):
    def list_users(self):
        raise RuntimeError("users table unavailable")


# --- due-soon scanner ---

def test_single_interval_reminder(db, make_user, make_task, notifier, now):
    user = make_user(name="Ada", notification_intervals=[60])
    task = make_task(user, title="Ship release", due_in_minutes=45)

    dispatched = scan_due_soon(*_repos(db), notifier, now)

    assert dispatched == 1
    assert len(notifier.emails) == 1
    sent = notifier.emails[0]
    assert sent.to == user.email
    assert sent.template_name == "task-reminder"
    assert sent.context == {
        "name": "Ada",
        "title": "Ship release",
        "interval": 60,
        "due_date": task.due_date,
    }


def test_one_reminder_per_matching_interval(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[30, 1440])
    make_task(user, due_in_minutes=20)

    assert scan_due_soon(*_repos(db), notifier, now) == 2
    assert [e.context["interval"] for e in notifier.emails] == [30, 1440]


def test_task_outside_every_window_is_not_reminded(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[30, 1440])
    make_task(user, due_in_minutes=2000)

    assert scan_due_soon(*_repos(db), notifier, now) == 0
    assert notifier.emails == []


def test_disabled_notifications_produce_nothing(db, make_user, make_task, notifier, now):
    user = make_user(notification_enabled=False, notification_intervals=[60, 1440])
    make_task(user, due_in_minutes=10)
    make_task(user, due_in_minutes=100)

    assert scan_due_soon(*_repos(db), notifier, now) == 0
    assert notifier.emails == []


def test_empty_interval_list_is_skipped(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[])
    make_task(user, due_in_minutes=10)

    assert scan_due_soon(*_repos(db), notifier, now) == 0


def test_window_is_open_at_now_and_closed_at_interval(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    make_task(user, title="at now", due_in_minutes=0)
    make_task(user, title="at edge", due_in_minutes=60)
    make_task(user, title="past edge", due_in_minutes=61)

    scan_due_soon(*_repos(db), notifier, now)

    assert [e.context["title"] for e in notifier.emails] == ["at edge"]


def test_completed_overdue_and_undated_tasks_are_skipped(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    make_task(user, title="done", due_in_minutes=30, completed=True)
    make_task(user, title="already overdue", due_in_minutes=30, status=TaskStatus.OVERDUE)
    make_task(user, title="no date")

    assert scan_due_soon(*_repos(db), notifier, now) == 0


def test_only_owner_tasks_are_matched(db, make_user, make_task, notifier, now):
    alice = make_user(name="Alice", notification_intervals=[60])
    bob = make_user(name="Bob", notification_enabled=False)
    make_task(bob, title="bob's", due_in_minutes=30)
    make_task(alice, title="alice's", due_in_minutes=30)

    scan_due_soon(*_repos(db), notifier, now)

    assert [(e.to, e.context["title"]) for e in notifier.emails] == [(alice.email, "alice's")]


def test_due_soon_repeats_on_every_run(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    make_task(user, due_in_minutes=45)

    scan_due_soon(*_repos(db), notifier, now)
    scan_due_soon(*_repos(db), notifier, now + timedelta(minutes=5))

    assert len(notifier.emails) == 2


def test_due_soon_does_not_mutate_tasks(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    task = make_task(user, due_in_minutes=45)

    scan_due_soon(*_repos(db), notifier, now)
    db.refresh(task)

    assert task.status == TaskStatus.PENDING
    assert task.completed is False


def test_push_users_get_push_reminders(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60], notification_type=NotificationType.PUSH)
    make_task(user, title="Stand-up", due_in_minutes=15)

    scan_due_soon(*_repos(db), notifier, now)

    assert notifier.emails == []
    assert len(notifier.pushes) == 1
    assert notifier.pushes[0].user_id == user.id
    assert "Stand-up" in notifier.pushes[0].title


def test_aware_now_is_treated_as_utc(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    make_task(user, due_in_minutes=45)

    assert scan_due_soon(*_repos(db), notifier, now.replace(tzinfo=timezone.utc)) == 1


def test_user_listing_failure_is_not_raised(db, notifier, now):
    assert scan_due_soon(TaskRepository(db), BrokenUserRepository(db), notifier, now) == 0


# --- overdue scanner ---

def test_past_due_task_becomes_overdue_and_is_notified_once(db, make_user, make_task, notifier, now):
    user = make_user(name="Ada")
    task = make_task(user, title="File taxes", due_in_minutes=-10)

    assert scan_overdue(*_repos(db), notifier, now) == 1
    db.refresh(task)
    assert task.status == TaskStatus.OVERDUE
    assert len(notifier.emails) == 1
    sent = notifier.emails[0]
    assert sent.template_name == "task-overdue"
    assert sent.context["interval"] == 0
    assert sent.context["title"] == "File taxes"

    assert scan_overdue(*_repos(db), notifier, now) == 0
    assert len(notifier.emails) == 1


def test_completed_task_is_never_touched(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60, 1440])
    task = make_task(user, due_in_minutes=-24 * 60, completed=True)

    assert scan_overdue(*_repos(db), notifier, now) == 0
    assert scan_due_soon(*_repos(db), notifier, now) == 0
    db.refresh(task)

    assert task.status == TaskStatus.COMPLETED
    assert notifier.emails == []


def test_task_due_exactly_now_is_not_overdue(db, make_user, make_task, notifier, now):
    user = make_user()
    task = make_task(user, due_in_minutes=0)

    assert scan_overdue(*_repos(db), notifier, now) == 0
    db.refresh(task)
    assert task.status == TaskStatus.PENDING


def test_overdue_transition_ignores_notification_preference(db, make_user, make_task, notifier, now):
    user = make_user(notification_enabled=False)
    task = make_task(user, due_in_minutes=-5)

    assert scan_overdue(*_repos(db), notifier, now) == 1
    db.refresh(task)

    assert task.status == TaskStatus.OVERDUE
    assert notifier.emails == []


def test_missing_owner_skips_only_the_notification(db, make_user, make_task, notifier, now):
    user = make_user()
    task = make_task(user, due_in_minutes=-5)

    assert scan_overdue(TaskRepository(db), MissingUserRepository(db), notifier, now) == 1
    db.refresh(task)

    assert task.status == TaskStatus.OVERDUE
    assert notifier.emails == []


def test_failed_status_write_skips_task_and_continues(db, make_user, make_task, notifier, now):
    user = make_user()
    stuck = make_task(user, title="stuck", due_in_minutes=-30)
    other = make_task(user, title="other", due_in_minutes=-20)

    repo = FlakyTaskRepository(db, failing_ids=[stuck.id])
    assert scan_overdue(repo, UserRepository(db), notifier, now) == 1

    db.refresh(stuck)
    db.refresh(other)
    assert stuck.status == TaskStatus.PENDING
    assert other.status == TaskStatus.OVERDUE
    assert [e.context["title"] for e in notifier.emails] == ["other"]

    # Eligible again once the store recovers
    assert scan_overdue(*_repos(db), notifier, now) == 1
    db.refresh(stuck)
    assert stuck.status == TaskStatus.OVERDUE


def test_overdue_scan_covers_all_owners(db, make_user, make_task, notifier, now):
    alice = make_user(name="Alice")
    bob = make_user(name="Bob", notification_intervals=[])
    make_task(alice, due_in_minutes=-1)
    make_task(bob, due_in_minutes=-1)

    assert scan_overdue(*_repos(db), notifier, now) == 2
    assert sorted(e.to for e in notifier.emails) == sorted([alice.email, bob.email])


def test_overdue_task_is_excluded_from_due_soon(db, make_user, make_task, notifier, now):
    user = make_user(notification_intervals=[60])
    task = make_task(user, due_in_minutes=-10)

    scan_overdue(*_repos(db), notifier, now)
    notifier.emails.clear()

    # Even if the clock were wound back, an overdue task gets no reminder
    scan_due_soon(*_repos(db), notifier, task.due_date - timedelta(minutes=30))
    assert notifier.emails == []


class DeletingTaskRepository(TaskRepository):
    """Deletes a task from another session right after the first status write."""

    def __init__(self, db, session_factory, doomed_id):
        super().__init__(db)
        self.session_factory = session_factory
        self.doomed_id = doomed_id

    def set_task_status(self, task_id, status):
        updated = super().set_task_status(task_id, status)
        if self.doomed_id is not None:
            other = self.session_factory()
            try:
                other.delete(other.get(Task, self.doomed_id))
                other.commit()
            finally:
                other.close()
            self.doomed_id = None
        return updated


def test_task_deleted_during_overdue_scan_is_skipped(db, session_factory, make_user, make_task, notifier, now):
    user = make_user()
    first = make_task(user, title="first", due_in_minutes=-30)
    doomed = make_task(user, title="doomed", due_in_minutes=-20)
    last = make_task(user, title="last", due_in_minutes=-10)
    first_id, doomed_id, last_id = first.id, doomed.id, last.id

    repo = DeletingTaskRepository(db, session_factory, doomed_id)
    assert scan_overdue(repo, UserRepository(db), notifier, now) == 2

    db.expire_all()
    assert db.get(Task, doomed_id) is None
    assert db.get(Task, first_id).status == TaskStatus.OVERDUE
    assert db.get(Task, last_id).status == TaskStatus.OVERDUE
    assert [e.context["title"] for e in notifier.emails] == ["first", "last"]


def test_missing_task_on_status_write_is_skipped(db, make_user, make_task, notifier, now):
    user = make_user()
    task = make_task(user, due_in_minutes=-5)

    class VanishingTaskRepository(TaskRepository):
        def set_task_status(self, task_id, status):
            return None

    assert scan_overdue(VanishingTaskRepository(db), UserRepository(db), notifier, now) == 0
    db.refresh(task)
    assert task.status == TaskStatus.PENDING
    assert notifier.emails == []
