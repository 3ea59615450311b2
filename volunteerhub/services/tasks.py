from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import structlog

from volunteerhub.core.errors import DomainError, Forbidden, InvalidTransition, NotFound, VolunteerNotEligible
from volunteerhub.core.lifecycle import TASK_TRANSITIONS, ensure_transition
from volunteerhub.core.policy import (
    Actor,
    can_mutate_project,
    can_view_task,
    is_assigned_volunteer,
    require_mutate_project,
    require_role,
    require_self_or_admin,
)
from volunteerhub.middleware.metrics import record_transition
from volunteerhub.models.project import Project
from volunteerhub.models.task import Task, TaskAssignment, TaskStatus, Report
from volunteerhub.models.user import User, Role
from volunteerhub.schemas.task import CreateTaskRequest
from volunteerhub.services.applications import ApplicationService
from volunteerhub.services.projects import ProjectService

logger = structlog.get_logger(__name__)


class TaskService:
    """Tasks under a project and their assignment workflow"""

    @staticmethod
    def get_task_or_404(db: Session, task_id: int) -> Tuple[Task, Project]:
        task = db.get(Task, task_id)
        if not task:
            raise NotFound(f"Task {task_id} not found")
        return task, task.project

    @staticmethod
    def _is_approved_volunteer(db: Session, project: Project, actor: Optional[Actor]) -> bool:
        if actor is None or actor.role != Role.VOLUNTEER:
            return False
        return ApplicationService.has_approved_application(db, project.id, actor.user_id)

    @staticmethod
    def require_view_task(db: Session, task: Optional[Task], project: Project, actor: Optional[Actor]) -> None:
        approved = TaskService._is_approved_volunteer(db, project, actor)
        if not can_view_task(task, project, actor, approved_volunteer=approved):
            raise Forbidden("You may not see the tasks of this project")

    @staticmethod
    def create_task(db: Session, actor: Optional[Actor], project_id: int, task_data: CreateTaskRequest) -> Task:
        project = ProjectService.get_project_or_404(db, project_id)
        require_mutate_project(project, actor)

        task = Task(
            project_id=project_id,
            title=task_data.title,
            description=task_data.description,
            type=task_data.type,
            status=TaskStatus.PENDING,
            volunteers_needed=task_data.volunteers_needed,
            deadline=task_data.deadline,
            requires_expenses=task_data.requires_expenses,
            estimated_amount=task_data.estimated_amount,
            expense_purpose=task_data.expense_purpose,
        )
        try:
            db.add(task)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to create task", error=str(e), project_id=project_id)
            raise
        db.refresh(task)

        logger.info("Task created", task_id=task.id, project_id=project_id)
        return task

    @staticmethod
    def get_task(db: Session, actor: Optional[Actor], task_id: int) -> Task:
        task, project = TaskService.get_task_or_404(db, task_id)
        TaskService.require_view_task(db, task, project, actor)
        return task

    @staticmethod
    def list_project_tasks(
        db: Session,
        actor: Optional[Actor],
        project_id: int,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Task]:
        project = ProjectService.get_project_or_404(db, project_id)
        TaskService.require_view_task(db, None, project, actor)
        query = select(Task).where(Task.project_id == project_id)
        if status is not None:
            query = query.where(Task.status == status)
        query = query.order_by(Task.id).offset(skip).limit(limit)
        return list(db.scalars(query))

    @staticmethod
    def assign_task(db: Session, actor: Optional[Actor], task_id: int, volunteer_id: int) -> Task:
        """
        Hand the task to a volunteer with an approved application.

        The task row is updated conditionally on the assignee and status that
        were read, so two coordinators assigning at once cannot both win.
        """
        task, project = TaskService.get_task_or_404(db, task_id)
        require_mutate_project(project, actor)

        current_status = task.status
        current_volunteer = task.volunteer_id
        if current_status == TaskStatus.COMPLETED:
            raise InvalidTransition(f"Task {task_id} is already completed")
        if current_volunteer == volunteer_id:
            return task

        volunteer = db.get(User, volunteer_id)
        if (
            not volunteer
            or volunteer.role != Role.VOLUNTEER
            or volunteer.is_blocked
            or not ApplicationService.has_approved_application(db, project.id, volunteer_id)
        ):
            raise VolunteerNotEligible(f"User {volunteer_id} has no approved application for project {project.id}")

        if current_volunteer is None:
            same_assignee = Task.volunteer_id.is_(None)
        else:
            same_assignee = Task.volunteer_id == current_volunteer

        try:
            result = db.execute(
                update(Task)
                .where(Task.id == task_id, Task.status == current_status, same_assignee)
                .values(volunteer_id=volunteer_id, status=TaskStatus.IN_PROGRESS)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Task {task_id} changed concurrently, reload and try again")
            db.add(TaskAssignment(task_id=task_id, volunteer_id=volunteer_id, assigned_by=actor.user_id))
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to assign task", error=str(e), task_id=task_id, volunteer_id=volunteer_id)
            raise
        db.refresh(task)

        if current_status != TaskStatus.IN_PROGRESS:
            record_transition("task", current_status, TaskStatus.IN_PROGRESS)
        logger.info(
            "Task assigned",
            task_id=task_id,
            volunteer_id=volunteer_id,
            previous_volunteer_id=current_volunteer,
        )
        return task

    @staticmethod
    def update_status(db: Session, actor: Optional[Actor], task_id: int, target: TaskStatus) -> Task:
        """Manual forward move by the owner, an admin or the assignee"""
        task, project = TaskService.get_task_or_404(db, task_id)
        if not (can_mutate_project(project, actor) or is_assigned_volunteer(task, actor)):
            raise Forbidden("Only the project's coordinator, an admin or the assignee may change this task")

        current = task.status
        ensure_transition(TASK_TRANSITIONS, current, target, "Task")
        if target == TaskStatus.IN_PROGRESS and task.volunteer_id is None:
            raise InvalidTransition("A task needs an assigned volunteer before it can start")
        if target == TaskStatus.COMPLETED:
            reports = db.scalar(select(func.count(Report.id)).where(Report.task_id == task_id))
            if not reports:
                raise InvalidTransition("A task needs at least one report before it can be completed")

        try:
            result = db.execute(
                update(Task)
                .where(Task.id == task_id, Task.status == current)
                .values(status=target)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Task status changed concurrently, it is no longer '{current.value}'")
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to update task status", error=str(e), task_id=task_id)
            raise
        db.refresh(task)

        record_transition("task", current, target)
        logger.info("Task status changed", task_id=task_id, from_status=current.value, to_status=target.value)
        return task

    @staticmethod
    def delete_task(db: Session, actor: Optional[Actor], task_id: int) -> None:
        task, project = TaskService.get_task_or_404(db, task_id)
        require_mutate_project(project, actor)
        try:
            db.delete(task)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to delete task", error=str(e), task_id=task_id)
            raise
        logger.info("Task deleted", task_id=task_id, project_id=project.id)

    @staticmethod
    def assignment_history(db: Session, actor: Optional[Actor], task_id: int) -> List[TaskAssignment]:
        task, project = TaskService.get_task_or_404(db, task_id)
        TaskService.require_view_task(db, task, project, actor)
        return list(task.assignments)

    @staticmethod
    def my_tasks(db: Session, actor: Optional[Actor], status: Optional[TaskStatus] = None, skip: int = 0, limit: int = 100) -> List[Task]:
        actor = require_role(actor, Role.VOLUNTEER)
        query = select(Task).where(Task.volunteer_id == actor.user_id)
        if status is not None:
            query = query.where(Task.status == status)
        query = query.order_by(Task.id.desc()).offset(skip).limit(limit)
        return list(db.scalars(query))

    @staticmethod
    def coordinator_tasks(
        db: Session,
        actor: Optional[Actor],
        coordinator_id: int,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Task]:
        """Tasks across every project the coordinator owns"""
        require_self_or_admin(actor, coordinator_id)
        query = (
            select(Task)
            .join(Project, Project.id == Task.project_id)
            .where(Project.coordinator_id == coordinator_id)
        )
        if status is not None:
            query = query.where(Task.status == status)
        query = query.order_by(Task.id.desc()).offset(skip).limit(limit)
        return list(db.scalars(query))
