from app.db import Base
from app.models.user import User, utcnow
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship


class Project(Base):
    __tablename__ = "project"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="not_started", server_default="not_started")
    priority = Column(String(10), nullable=False, default="medium", server_default="medium")
    owner_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
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

    owner = relationship(User, backref="owned_projects")
    member_links = relationship(
        "ProjectMember",
        back_populates="project",
        cascade="all, delete-orphan",
    )
    # Read side of the membership relation; writes go through ProjectMember rows
    members = relationship(
        User,
        secondary="project_member",
        viewonly=True,
        order_by=User.id,
    )
    tasks = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Task.id",
    )

    @property
    def member_ids(self) -> set[int]:
        return {link.user_id for link in self.member_links}
