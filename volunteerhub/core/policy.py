"""
Visibility and authorization policy.

All role-based decisions live here; services call the require_* helpers and
listings use the *_clause helpers so filtering happens in SQL.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import or_, true

from volunteerhub.core.errors import Forbidden
from volunteerhub.models.user import Role
from volunteerhub.models.project import Project, ModerationStatus
from volunteerhub.models.task import Task


class Actor(BaseModel):
    """The acting user of an operation, as resolved by the boundary layer"""
    user_id: int
    role: Role

    model_config = ConfigDict(frozen=True)


OVERSEER_ROLES = frozenset({Role.ADMIN, Role.MODERATOR})


def is_admin(actor: Optional[Actor]) -> bool:
    return actor is not None and actor.role == Role.ADMIN


def is_overseer(actor: Optional[Actor]) -> bool:
    return actor is not None and actor.role in OVERSEER_ROLES


def owns_project(project: Project, actor: Optional[Actor]) -> bool:
    return (
        actor is not None
        and actor.role == Role.COORDINATOR
        and project.coordinator_id == actor.user_id
    )


# ============================================================================
# PROJECTS
# ============================================================================

def can_view_project(project: Project, actor: Optional[Actor]) -> bool:
    if project.moderation_status == ModerationStatus.APPROVED:
        return True
    return is_overseer(actor) or owns_project(project, actor)


def can_mutate_project(project: Project, actor: Optional[Actor]) -> bool:
    """Edit, delete, manual status change, task management"""
    return is_admin(actor) or owns_project(project, actor)


def can_view_private_records(project: Project, actor: Optional[Actor]) -> bool:
    """Applications and donations of a project in aggregate form"""
    return is_admin(actor) or owns_project(project, actor)


def can_moderate(actor: Optional[Actor]) -> bool:
    return is_overseer(actor)


def visible_projects_clause(actor: Optional[Actor]):
    """SQL counterpart of can_view_project for listings"""
    if is_overseer(actor):
        return true()
    approved = Project.moderation_status == ModerationStatus.APPROVED
    if actor is not None and actor.role == Role.COORDINATOR:
        return or_(approved, Project.coordinator_id == actor.user_id)
    return approved


# ============================================================================
# TASKS
# ============================================================================

def can_view_task(task: Optional[Task], project: Project, actor: Optional[Actor], approved_volunteer: bool = False) -> bool:
    """
    Task visibility. Pass task=None to check project-level task listing.

    approved_volunteer tells whether the actor holds an approved application
    for the project; the caller looks it up since it needs the store.
    """
    if actor is None:
        return False
    if is_overseer(actor) or owns_project(project, actor):
        return True
    if actor.role != Role.VOLUNTEER:
        return False
    if task is not None and task.volunteer_id == actor.user_id:
        return True
    return approved_volunteer


def is_assigned_volunteer(task: Task, actor: Optional[Actor]) -> bool:
    return (
        actor is not None
        and actor.role == Role.VOLUNTEER
        and task.volunteer_id == actor.user_id
    )


# ============================================================================
# GUARDS
# ============================================================================

def require_view_project(project: Project, actor: Optional[Actor]) -> None:
    if not can_view_project(project, actor):
        raise Forbidden("Project is awaiting moderation and is not visible to you")


def require_mutate_project(project: Project, actor: Optional[Actor]) -> None:
    if not can_mutate_project(project, actor):
        raise Forbidden("Only the project's coordinator or an admin may change this project")


def require_private_records(project: Project, actor: Optional[Actor]) -> None:
    if not can_view_private_records(project, actor):
        raise Forbidden("Only the project's coordinator or an admin may see these records")


def require_moderator(actor: Optional[Actor]) -> None:
    if not can_moderate(actor):
        raise Forbidden("Moderator or admin role required")


def require_admin(actor: Optional[Actor]) -> None:
    if not is_admin(actor):
        raise Forbidden("Admin role required")


def require_role(actor: Optional[Actor], *roles: Role) -> Actor:
    if actor is None or actor.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise Forbidden(f"This action requires one of the roles: {allowed}")
    return actor


def require_self_or_admin(actor: Optional[Actor], user_id: int) -> None:
    if actor is None or (actor.role != Role.ADMIN and actor.user_id != user_id):
        raise Forbidden("You may only access your own records")
