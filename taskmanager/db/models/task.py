from ..base import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from ...utils.time import utcnow


class TaskStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    ALL = (PENDING, COMPLETED, OVERDUE)


class TaskPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    ALL = (LOW, MEDIUM, HIGH)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    due_date = Column(DateTime, nullable=True, index=True)
    priority = Column(String, default=TaskPriority.MEDIUM, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    # Maintained by the overdue scanner and by completion updates, never set by clients
    status = Column(String, default=TaskStatus.PENDING, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="tasks")

    def __repr__(self):
        return f"<Task(id={self.id}, user_id={self.user_id}, status={self.status})>"
