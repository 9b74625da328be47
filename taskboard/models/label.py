from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from taskboard.core.database import Base
from taskboard.models.task import task_labels


class BoardLabel(Base):
    __tablename__ = "board_labels"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    color = Column(String(7), nullable=False)  # hex, set once on creation

    project = relationship("Project", back_populates="labels")
    tasks = relationship("Task", secondary=task_labels, back_populates="labels")

    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_board_label_project_name"),
    )
