# taskmanager/tests/test_notifications.py

from datetime import datetime

import pytest

from taskmanager.db.models import NotificationType
from taskmanager.services.mail_transport import ConsoleTransport, GmailTransport, build_transport
from taskmanager.services.notification_service import NotificationService, format_due_date
from taskmanager.utils.notifications import build_reminder, send_task_reminder

from .fakes import RecordingTransport


def test_send_email_renders_named_template():
    transport = RecordingTransport()
    service = NotificationService(transport=transport)

    service.send_email(
        "ada@example.com",
        "Task Reminder: Ship it",
        "task-reminder",
        {"name": "Ada", "title": "Ship it", "interval": 60, "due_date": datetime(2025, 6, 1, 13, 0)},
    )

    assert len(transport.sent) == 1
    to, subject, body = transport.sent[0]
    assert to == "ada@example.com"
    assert subject == "Task Reminder: Ship it"
    assert "Ship it" in body
    assert "60 minutes" in body
    assert "June 01, 2025 at 01:00 PM UTC" in body


def test_template_context_is_escaped():
    transport = RecordingTransport()
    NotificationService(transport=transport).send_email(
        "a@example.com", "hi", "welcome", {"name": "<script>alert(1)</script>"}
    )

    body = transport.sent[0][2]
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_transport_failure_is_swallowed():
    transport = RecordingTransport(fail=True)
    service = NotificationService(transport=transport)

    # Must not raise
    service.send_email("a@example.com", "subject", "welcome", {"name": "A"})

    assert transport.sent == []


def test_unknown_template_is_swallowed():
    transport = RecordingTransport()

    NotificationService(transport=transport).send_email("a@example.com", "s", "no-such-template", {})

    assert transport.sent == []


def test_send_push_does_not_raise():
    NotificationService(transport=RecordingTransport()).send_push(1, "Task Reminder: x", "soon")


def test_format_due_date_handles_missing_date():
    assert format_due_date(None) == "no due date"


def test_build_transport_defaults_to_console():
    assert isinstance(build_transport("console"), ConsoleTransport)
    assert isinstance(build_transport("carrier-pigeon"), ConsoleTransport)


def test_gmail_transport_requires_refresh_token():
    with pytest.raises(ValueError, match="GMAIL_REFRESH_TOKEN"):
        GmailTransport(refresh_token=None)


def test_build_reminder_picks_template_by_interval(make_user, make_task):
    user = make_user(name="Ada")
    task = make_task(user, title="Pay rent", due_in_minutes=30)

    subject, template_name, context = build_reminder(user, task, 60)
    assert subject == "Task Reminder: Pay rent"
    assert template_name == "task-reminder"
    assert context["interval"] == 60

    subject, template_name, context = build_reminder(user, task, 0)
    assert subject == "Task Overdue: Pay rent"
    assert template_name == "task-overdue"
    assert context["interval"] == 0


def test_send_task_reminder_routes_by_notification_type(make_user, make_task, notifier):
    email_user = make_user(notification_type=NotificationType.EMAIL)
    push_user = make_user(notification_type=NotificationType.PUSH)

    send_task_reminder(notifier, email_user, make_task(email_user, due_in_minutes=5), 30)
    send_task_reminder(notifier, push_user, make_task(push_user, title="Call mom", due_in_minutes=-5), 0)

    assert [e.to for e in notifier.emails] == [email_user.email]
    assert len(notifier.pushes) == 1
    assert notifier.pushes[0].user_id == push_user.id
    assert notifier.pushes[0].body == "'Call mom' is overdue"
