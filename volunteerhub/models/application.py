from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
import enum

from volunteerhub.models.base import Base, enum_column_type


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Application(Base):
    """A volunteer's request to join a project's volunteer pool"""
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("volunteer_id", "project_id", name="uq_application_volunteer_project"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    volunteer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        enum_column_type(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project = relationship("Project", back_populates="applications")

    def __repr__(self):
        return f"<Application(id={self.id}, project_id={self.project_id}, volunteer_id={self.volunteer_id}, status='{self.status.value}')>"
