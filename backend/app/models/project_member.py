from app.db import Base
from app.models.project import Project
from app.models.user import User, utcnow
from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import relationship


class ProjectMember(Base):
    __tablename__ = "project_member"

    project_id = Column(
        Integer, ForeignKey("project.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(Integer, ForeignKey("user.id"), primary_key=True, index=True)
    added_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    project = relationship(Project, back_populates="member_links")
    user = relationship(User, backref="project_memberships")
