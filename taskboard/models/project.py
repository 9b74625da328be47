"""Project and membership models"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from taskboard.core.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # immutable after creation
    organizer_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    # cached insights text
    ai_summary = Column(Text, nullable=True)
    ai_summary_date = Column(DateTime, nullable=True)

    organizer = relationship("User", back_populates="owned_projects")
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    columns = relationship(
        "BoardColumn", back_populates="project", cascade="all, delete-orphan",
        order_by="[BoardColumn.order, BoardColumn.id]"
    )
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    labels = relationship("BoardLabel", back_populates="project", cascade="all, delete-orphan")

    def member_ids(self) -> set:
        return {m.user_id for m in self.members}


class ProjectMember(Base):
    __tablename__ = "project_members"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    joined_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="members")
    user = relationship("User", back_populates="memberships")
