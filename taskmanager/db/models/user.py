from ..base import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from ...utils.time import utcnow

DEFAULT_NOTIFICATION_INTERVALS = [60 * 24]


class NotificationType:
    EMAIL = "email"
    PUSH = "push"

    ALL = (EMAIL, PUSH)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    roles = Column(JSON, default=lambda: ["user"], nullable=False)

    password_reset_token = Column(String, nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)

    notification_enabled = Column(Boolean, default=True, nullable=False)
    notification_intervals = Column(
        JSON, default=lambda: list(DEFAULT_NOTIFICATION_INTERVALS), nullable=False
    )
    notification_type = Column(String, default=NotificationType.EMAIL, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
