from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import structlog

from volunteerhub.core.errors import DomainError, DuplicateApplication, InvalidTransition, NotFound
from volunteerhub.core.lifecycle import APPLICATION_TRANSITIONS, ensure_transition
from volunteerhub.core.policy import (
    Actor,
    require_mutate_project,
    require_private_records,
    require_role,
    require_self_or_admin,
    require_view_project,
)
from volunteerhub.middleware.metrics import record_transition
from volunteerhub.models.application import Application, ApplicationStatus
from volunteerhub.models.project import Project, ProjectStatus
from volunteerhub.models.user import User, Role
from volunteerhub.services.projects import ProjectService

logger = structlog.get_logger(__name__)

OPEN_PROJECT_STATUSES = frozenset({ProjectStatus.FUNDING, ProjectStatus.IN_PROGRESS})


class ApplicationService:
    """Volunteer applications to projects"""

    @staticmethod
    def has_approved_application(db: Session, project_id: int, volunteer_id: int) -> bool:
        query = select(Application.id).where(
            Application.project_id == project_id,
            Application.volunteer_id == volunteer_id,
            Application.status == ApplicationStatus.APPROVED,
        )
        return db.execute(query).first() is not None

    @staticmethod
    def apply(db: Session, actor: Optional[Actor], project_id: int, message: Optional[str] = None) -> Application:
        """Submit the volunteer's single application to a project"""
        actor = require_role(actor, Role.VOLUNTEER)
        project = ProjectService.get_project_or_404(db, project_id)
        require_view_project(project, actor)
        if project.status not in OPEN_PROJECT_STATUSES:
            raise InvalidTransition(f"Project {project_id} is not accepting volunteers")

        existing = db.execute(
            select(Application.id).where(
                Application.project_id == project_id,
                Application.volunteer_id == actor.user_id,
            )
        ).first()
        if existing:
            raise DuplicateApplication("You have already applied to this project")

        application = Application(
            project_id=project_id,
            volunteer_id=actor.user_id,
            status=ApplicationStatus.PENDING,
            message=message,
        )
        try:
            db.add(application)
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent application from the same volunteer
            db.rollback()
            raise DuplicateApplication("You have already applied to this project")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to create application", error=str(e), project_id=project_id)
            raise
        db.refresh(application)

        logger.info("Application submitted", application_id=application.id, project_id=project_id, volunteer_id=actor.user_id)
        return application

    @staticmethod
    def decide(db: Session, actor: Optional[Actor], application_id: int, decision: ApplicationStatus) -> Application:
        """Approve or reject a pending application"""
        application = db.get(Application, application_id)
        if not application:
            raise NotFound(f"Application {application_id} not found")
        project = ProjectService.get_project_or_404(db, application.project_id)
        require_mutate_project(project, actor)

        current = application.status
        ensure_transition(APPLICATION_TRANSITIONS, current, decision, "Application")
        try:
            result = db.execute(
                update(Application)
                .where(Application.id == application_id, Application.status == current)
                .values(status=decision)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Application status changed concurrently, it is no longer '{current.value}'")
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to update application", error=str(e), application_id=application_id)
            raise
        db.refresh(application)

        record_transition("application", current, decision)
        logger.info("Application decided", application_id=application_id, decision=decision.value)
        return application

    @staticmethod
    def project_applications(db: Session, actor: Optional[Actor], project_id: int, skip: int = 0, limit: int = 100) -> List[Application]:
        project = ProjectService.get_project_or_404(db, project_id)
        require_private_records(project, actor)
        query = (
            select(Application)
            .where(Application.project_id == project_id)
            .order_by(Application.id)
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))

    @staticmethod
    def my_applications(db: Session, actor: Optional[Actor], skip: int = 0, limit: int = 100) -> List[Application]:
        actor = require_role(actor, Role.VOLUNTEER)
        query = (
            select(Application)
            .where(Application.volunteer_id == actor.user_id)
            .order_by(Application.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))

    @staticmethod
    def coordinator_applications(
        db: Session,
        actor: Optional[Actor],
        coordinator_id: int,
        status: Optional[ApplicationStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Application]:
        """Applications across every project the coordinator owns"""
        require_self_or_admin(actor, coordinator_id)
        query = (
            select(Application)
            .join(Project, Project.id == Application.project_id)
            .where(Project.coordinator_id == coordinator_id)
        )
        if status is not None:
            query = query.where(Application.status == status)
        query = query.order_by(Application.id.desc()).offset(skip).limit(limit)
        return list(db.scalars(query))

    @staticmethod
    def project_volunteers(db: Session, actor: Optional[Actor], project_id: int) -> List[User]:
        """Volunteers with an approved application for the project"""
        project = ProjectService.get_project_or_404(db, project_id)
        require_private_records(project, actor)
        query = (
            select(User)
            .join(Application, Application.volunteer_id == User.id)
            .where(
                Application.project_id == project_id,
                Application.status == ApplicationStatus.APPROVED,
            )
            .order_by(User.id)
        )
        return list(db.scalars(query))
