from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import structlog

from volunteerhub.core.errors import DomainError, Forbidden, InvalidTransition, ValidationError
from volunteerhub.core.policy import (
    Actor,
    can_mutate_project,
    is_assigned_volunteer,
    is_overseer,
    require_view_project,
)
from volunteerhub.middleware.metrics import record_transition
from volunteerhub.models.task import Task, TaskStatus, Report
from volunteerhub.schemas.report import CreateReportRequest
from volunteerhub.services.projects import ProjectService
from volunteerhub.services.tasks import TaskService

logger = structlog.get_logger(__name__)


class ReportService:
    """Completion reports; submitting one completes the task"""

    @staticmethod
    def submit_report(db: Session, actor: Optional[Actor], task_id: int, report_data: CreateReportRequest) -> Report:
        task, project = TaskService.get_task_or_404(db, task_id)
        if not is_assigned_volunteer(task, actor):
            raise Forbidden("Only the volunteer assigned to this task may report on it")
        if task.status != TaskStatus.IN_PROGRESS:
            raise InvalidTransition(f"Task {task_id} is '{task.status.value}', reports need an in-progress task")

        if task.requires_expenses:
            if report_data.expense_amount is None or not (report_data.expense_purpose or "").strip():
                raise ValidationError("This task requires an expense amount and an expense purpose")
            if report_data.expense_amount < 0:
                raise ValidationError("Expense amount cannot be negative")

        report = Report(
            task_id=task_id,
            volunteer_id=actor.user_id,
            description=report_data.description,
            image_url=report_data.image_url,
            expense_amount=report_data.expense_amount,
            expense_purpose=report_data.expense_purpose,
        )
        try:
            # Completing the task is conditional on it still being ours and in progress
            result = db.execute(
                update(Task)
                .where(
                    Task.id == task_id,
                    Task.status == TaskStatus.IN_PROGRESS,
                    Task.volunteer_id == actor.user_id,
                )
                .values(status=TaskStatus.COMPLETED)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Task {task_id} was reassigned or completed concurrently")
            db.add(report)
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to submit report", error=str(e), task_id=task_id)
            raise
        db.refresh(report)
        db.refresh(task)

        record_transition("task", TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)
        logger.info("Report submitted", report_id=report.id, task_id=task_id, project_id=project.id)
        return report

    @staticmethod
    def task_reports(db: Session, actor: Optional[Actor], task_id: int) -> List[Report]:
        task, project = TaskService.get_task_or_404(db, task_id)
        if not (can_mutate_project(project, actor) or is_overseer(actor) or is_assigned_volunteer(task, actor)):
            raise Forbidden("You may not see the reports of this task")
        query = select(Report).where(Report.task_id == task_id).order_by(Report.id)
        return list(db.scalars(query))

    @staticmethod
    def project_reports(db: Session, actor: Optional[Actor], project_id: int, skip: int = 0, limit: int = 100) -> List[Report]:
        """Reports across a project's tasks, readable by anyone who can see the project"""
        project = ProjectService.get_project_or_404(db, project_id)
        require_view_project(project, actor)
        query = (
            select(Report)
            .join(Task, Task.id == Report.task_id)
            .where(Task.project_id == project_id)
            .order_by(Report.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))
