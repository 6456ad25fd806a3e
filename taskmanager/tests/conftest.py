# taskmanager/tests/conftest.py

import os

# Keep tests off the real database, scheduler and mail transport
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["MAIL_TRANSPORT"] = "console"

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskmanager.db.base import Base
from taskmanager.db.models import User, Task, TaskStatus, NotificationType

from .fakes import FakeNotifier

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(
        name="Alice",
        email=None,
        notification_enabled=True,
        notification_intervals=None,
        notification_type=NotificationType.EMAIL,
        roles=None,
        hashed_password="not-a-real-hash",
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            hashed_password=hashed_password,
            roles=roles or ["user"],
            notification_enabled=notification_enabled,
            notification_intervals=[1440] if notification_intervals is None else notification_intervals,
            notification_type=notification_type,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_task(db, now):
    def _make_task(
        user: User,
        title="Write report",
        due_in_minutes=None,
        completed=False,
        status=None,
        tags=None,
        priority="medium",
    ) -> Task:
        if status is None:
            status = TaskStatus.COMPLETED if completed else TaskStatus.PENDING
        task = Task(
            user_id=user.id,
            title=title,
            due_date=None if due_in_minutes is None else now + timedelta(minutes=due_in_minutes),
            completed=completed,
            status=status,
            tags=tags or [],
            priority=priority,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make_task
