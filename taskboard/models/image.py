from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from taskboard.core.database import Base


class TaskImage(Base):
    __tablename__ = "task_images"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("app_tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    file_path = Column(String, nullable=False)  # relative, e.g. "uploads/<hex>.png"
    original_file_name = Column(String, nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow)

    task = relationship("Task", back_populates="images")
