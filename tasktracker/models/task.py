"""Task model definitions."""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from tasktracker.database import Base, UTCDateTime
from tasktracker.models.user import utcnow


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(Base):
    """Represents a work item owned by exactly one user."""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    priority = Column(
        Enum(
            TaskPriority,
            name="priority",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    due_date = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    owner = relationship("User", back_populates="tasks")


Index("idx_tasks_owner_completed", Task.user_id, Task.completed)
Index("idx_tasks_owner_priority", Task.user_id, Task.priority)
