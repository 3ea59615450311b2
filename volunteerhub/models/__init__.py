from .base import Base
from .user import User, Role
from .project import Project, ProjectModeration, ProjectStatus, ModerationStatus
from .task import Task, TaskAssignment, TaskStatus, TaskType, Report
from .application import Application, ApplicationStatus
from .donation import Donation

__all__ = [
    "Base",
    "User",
    "Role",
    "Project",
    "ProjectModeration",
    "ProjectStatus",
    "ModerationStatus",
    "Task",
    "TaskAssignment",
    "TaskStatus",
    "TaskType",
    "Report",
    "Application",
    "ApplicationStatus",
    "Donation",
]
