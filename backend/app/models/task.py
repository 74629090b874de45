from app.db import Base
from app.models.user import User, utcnow
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship


class Task(Base):
    __tablename__ = "task"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="to_do", server_default="to_do")
    priority = Column(String(10), nullable=False, default="medium", server_default="medium")
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    project_id = Column(Integer, ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    assignee_id = Column(Integer, ForeignKey("user.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    project = relationship("Project", back_populates="tasks")
    assignee = relationship(User, foreign_keys=[assignee_id], backref="assigned_tasks")
    creator = relationship(User, foreign_keys=[created_by_id], backref="created_tasks")

    __table_args__ = (
        Index("ix_task_project_id", "project_id"),
        Index("ix_task_assignee_id", "assignee_id"),
    )
