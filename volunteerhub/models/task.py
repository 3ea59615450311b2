from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Boolean, ForeignKey, func
from sqlalchemy.orm import relationship
import enum

from volunteerhub.models.base import Base, enum_column_type


class TaskType(str, enum.Enum):
    COLLECTION = "collection"
    ON_SITE = "on_site"
    EVENT_ORGANIZATION = "event_organization"
    ONLINE_SUPPORT = "online_support"
    OTHER = "other"


class TaskStatus(str, enum.Enum):
    """Task workflow: pending -> in_progress (assigned) -> completed (reported)"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Task(Base):
    """Unit of work under a project, held by at most one volunteer"""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(enum_column_type(TaskType, "task_type"), nullable=False, default=TaskType.OTHER)
    status = Column(enum_column_type(TaskStatus, "task_status"), nullable=False, default=TaskStatus.PENDING)
    volunteer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    volunteers_needed = Column(Integer, nullable=False, default=1)
    deadline = Column(DateTime(timezone=True), nullable=True)
    requires_expenses = Column(Boolean, nullable=False, default=False)
    estimated_amount = Column(Float, nullable=True)
    expense_purpose = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    project = relationship("Project", back_populates="tasks")
    reports = relationship("Report", back_populates="task", cascade="all, delete-orphan")
    assignments = relationship(
        "TaskAssignment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAssignment.id",
    )

    def __repr__(self):
        return f"<Task(id={self.id}, project_id={self.project_id}, status='{self.status.value}', volunteer_id={self.volunteer_id})>"


class TaskAssignment(Base):
    """History of volunteer assignments; tasks.volunteer_id holds the current one"""
    __tablename__ = "task_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    volunteer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task = relationship("Task", back_populates="assignments")


class Report(Base):
    """Volunteer's completion submission for a task"""
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    volunteer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=False)
    image_url = Column(String(512), nullable=True)  # Stored as given; uploads happen upstream
    expense_amount = Column(Float, nullable=True)
    expense_purpose = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task = relationship("Task", back_populates="reports")

    def __repr__(self):
        return f"<Report(id={self.id}, task_id={self.task_id}, volunteer_id={self.volunteer_id})>"
