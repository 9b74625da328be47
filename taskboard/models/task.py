"""Task (card) model"""

import enum
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Table, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from taskboard.core.database import Base


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


task_labels = Table(
    "task_labels",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("app_tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("label_id", Integer, ForeignKey("board_labels.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base):
    __tablename__ = "app_tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    column_id = Column(Integer, ForeignKey("board_columns.id", ondelete="CASCADE"), nullable=True, index=True)
    assigned_to_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)

    # single source of truth for completion, see is_completed
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.NOT_STARTED, nullable=False)
    # status to go back to when a completed card is toggled off
    reopen_status = Column(SQLEnum(TaskStatus), nullable=True)

    order = Column(Integer, default=0, nullable=False)  # dense among active cards of the column

    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime, nullable=True)

    start_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    end_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="tasks")
    column = relationship("BoardColumn", back_populates="tasks")
    assignee = relationship("User", back_populates="assigned_tasks")
    labels = relationship("BoardLabel", secondary=task_labels, back_populates="tasks", order_by="BoardLabel.name")
    images = relationship(
        "TaskImage", back_populates="task", cascade="all, delete-orphan",
        order_by="[TaskImage.uploaded_at, TaskImage.id]"
    )
    comments = relationship(
        "Comment", back_populates="task", cascade="all, delete-orphan",
        order_by="[Comment.posted_at, Comment.id]"
    )

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
