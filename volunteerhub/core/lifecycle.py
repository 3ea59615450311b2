"""
Transition tables for the project, moderation, task and application state machines.

Every status change in the services goes through ensure_transition() before the
conditional UPDATE that applies it.
"""
from enum import Enum
from typing import Dict, FrozenSet

from volunteerhub.core.errors import InvalidTransition
from volunteerhub.models.project import ProjectStatus, ModerationStatus
from volunteerhub.models.task import TaskStatus
from volunteerhub.models.application import ApplicationStatus


PROJECT_STATUS_TRANSITIONS: Dict[ProjectStatus, FrozenSet[ProjectStatus]] = {
    ProjectStatus.FUNDING: frozenset({ProjectStatus.IN_PROGRESS}),
    ProjectStatus.IN_PROGRESS: frozenset({ProjectStatus.COMPLETED}),
    ProjectStatus.COMPLETED: frozenset(),
}

MODERATION_TRANSITIONS: Dict[ModerationStatus, FrozenSet[ModerationStatus]] = {
    ModerationStatus.PENDING: frozenset({ModerationStatus.APPROVED, ModerationStatus.REJECTED}),
    ModerationStatus.APPROVED: frozenset(),
    ModerationStatus.REJECTED: frozenset(),
}

# Only reachable when resubmission is switched on in settings
RESUBMISSION_TRANSITIONS: Dict[ModerationStatus, FrozenSet[ModerationStatus]] = {
    ModerationStatus.REJECTED: frozenset({ModerationStatus.PENDING}),
}

TASK_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED}),
    TaskStatus.COMPLETED: frozenset(),
}

APPLICATION_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


def can_transition(table: Dict[Enum, FrozenSet[Enum]], current: Enum, target: Enum) -> bool:
    return target in table.get(current, frozenset())


def ensure_transition(table: Dict[Enum, FrozenSet[Enum]], current: Enum, target: Enum, entity: str) -> None:
    """Raise InvalidTransition unless current -> target is an edge of the table"""
    if not can_transition(table, current, target):
        raise InvalidTransition(
            f"{entity} cannot move from '{current.value}' to '{target.value}'"
        )
