from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
import enum

from volunteerhub.models.base import Base, enum_column_type


class ProjectStatus(str, enum.Enum):
    """Funding progress / workflow stage"""
    FUNDING = "funding"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ModerationStatus(str, enum.Enum):
    """Public visibility gate"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


moderation_status_type = enum_column_type(ModerationStatus, "moderation_status")


class Project(Base):
    """Fundraising / volunteering project"""
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("collected_amount >= 0", name="ck_projects_collected_non_negative"),
        CheckConstraint("target_amount > 0", name="ck_projects_target_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    image_url = Column(String(512), nullable=True)
    target_amount = Column(Float, nullable=False)
    collected_amount = Column(Float, nullable=False, default=0.0)
    bank_details = Column(Text, nullable=True)
    status = Column(
        enum_column_type(ProjectStatus, "project_status"),
        nullable=False,
        default=ProjectStatus.FUNDING,
    )
    moderation_status = Column(
        moderation_status_type,
        nullable=False,
        default=ModerationStatus.PENDING,
        index=True,
    )
    coordinator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="project", cascade="all, delete-orphan")
    donations = relationship("Donation", back_populates="project", cascade="all, delete-orphan")
    moderations = relationship(
        "ProjectModeration",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectModeration.id",
    )

    def __repr__(self):
        return (
            f"<Project(id={self.id}, name='{self.name}', status='{self.status.value}', "
            f"moderation_status='{self.moderation_status.value}')>"
        )


class ProjectModeration(Base):
    """Audit record of a moderation decision; the latest one is authoritative"""
    __tablename__ = "project_moderations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(moderation_status_type, nullable=False)
    comment = Column(Text, nullable=True)
    moderator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project = relationship("Project", back_populates="moderations")

    def __repr__(self):
        return f"<ProjectModeration(id={self.id}, project_id={self.project_id}, status='{self.status.value}')>"
