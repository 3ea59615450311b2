from sqlalchemy import and_, case, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import structlog

from volunteerhub.core.config import get_settings
from volunteerhub.core.errors import DomainError, Forbidden, InvalidTransition, NotFound, ValidationError
from volunteerhub.core.lifecycle import (
    MODERATION_TRANSITIONS,
    PROJECT_STATUS_TRANSITIONS,
    RESUBMISSION_TRANSITIONS,
    ensure_transition,
)
from volunteerhub.core.policy import (
    Actor,
    can_moderate,
    can_mutate_project,
    is_admin,
    owns_project,
    require_moderator,
    require_mutate_project,
    require_role,
    require_self_or_admin,
    require_view_project,
    visible_projects_clause,
)
from volunteerhub.middleware.metrics import record_transition
from volunteerhub.models.application import Application, ApplicationStatus
from volunteerhub.models.project import Project, ProjectModeration, ProjectStatus, ModerationStatus
from volunteerhub.models.user import User, Role
from volunteerhub.schemas.project import CreateProjectRequest, UpdateProjectRequest

logger = structlog.get_logger(__name__)

# Optional columns that may be cleared by sending null
CLEARABLE_FIELDS = frozenset({"image_url", "bank_details"})


def funded_status_expr(target_amount):
    """
    SQL expression advancing a funding project once collected reaches target.

    Evaluated inside the UPDATE so the comparison sees the row as it is being
    written, never a value read earlier by the application.
    """
    return case(
        (
            and_(Project.status == ProjectStatus.FUNDING, Project.collected_amount >= target_amount),
            literal(ProjectStatus.IN_PROGRESS, Project.__table__.c.status.type),
        ),
        else_=Project.status,
    )


class ProjectService:
    """Project lifecycle, moderation and listings"""

    @staticmethod
    def get_project_or_404(db: Session, project_id: int) -> Project:
        project = db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project {project_id} not found")
        return project

    @staticmethod
    def _require_coordinator_user(db: Session, user_id: int) -> None:
        user = db.get(User, user_id)
        if not user or user.role != Role.COORDINATOR:
            raise ValidationError(f"User {user_id} is not a coordinator")

    @staticmethod
    def create_project(db: Session, actor: Optional[Actor], project_data: CreateProjectRequest) -> Project:
        """Create a project in funding/pending state owned by a coordinator"""
        actor = require_role(actor, Role.COORDINATOR, Role.ADMIN)

        if actor.role == Role.ADMIN:
            if project_data.coordinator_id is None:
                raise ValidationError("coordinator_id is required when an admin creates a project")
            ProjectService._require_coordinator_user(db, project_data.coordinator_id)
            coordinator_id = project_data.coordinator_id
        else:
            if project_data.coordinator_id not in (None, actor.user_id):
                raise Forbidden("Coordinators can only create projects for themselves")
            coordinator_id = actor.user_id

        project = Project(
            name=project_data.name,
            description=project_data.description,
            target_amount=project_data.target_amount,
            collected_amount=0.0,
            image_url=project_data.image_url,
            bank_details=project_data.bank_details,
            status=ProjectStatus.FUNDING,
            moderation_status=ModerationStatus.PENDING,
            coordinator_id=coordinator_id,
        )
        try:
            db.add(project)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to create project", error=str(e), coordinator_id=coordinator_id)
            raise
        db.refresh(project)

        logger.info("Project created", project_id=project.id, coordinator_id=coordinator_id)
        return project

    @staticmethod
    def get_project(db: Session, actor: Optional[Actor], project_id: int) -> Project:
        project = ProjectService.get_project_or_404(db, project_id)
        require_view_project(project, actor)
        return project

    @staticmethod
    def list_projects(
        db: Session,
        actor: Optional[Actor],
        status: Optional[ProjectStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Project]:
        """Projects the actor may see, newest first"""
        query = select(Project).where(visible_projects_clause(actor))
        if status is not None:
            query = query.where(Project.status == status)
        if search:
            query = query.where(Project.name.icontains(search, autoescape=True))
        query = query.order_by(Project.id.desc()).offset(skip).limit(limit)
        return list(db.scalars(query))

    @staticmethod
    def update_project(db: Session, actor: Optional[Actor], project_id: int, project_data: UpdateProjectRequest) -> Project:
        project = ProjectService.get_project_or_404(db, project_id)
        require_mutate_project(project, actor)

        values = {
            key: value
            for key, value in project_data.model_dump(exclude_unset=True).items()
            if value is not None or key in CLEARABLE_FIELDS
        }
        if "coordinator_id" in values:
            if not is_admin(actor):
                raise Forbidden("Only an admin may reassign a project's coordinator")
            ProjectService._require_coordinator_user(db, values["coordinator_id"])
        if not values:
            return project

        if "target_amount" in values:
            values["status"] = funded_status_expr(values["target_amount"])

        previous_status = project.status
        try:
            db.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to update project", error=str(e), project_id=project_id)
            raise
        db.refresh(project)

        if project.status != previous_status:
            record_transition("project", previous_status, project.status)
            logger.info("Project reached its target after update", project_id=project_id)
        logger.info("Project updated", project_id=project_id, fields=sorted(values))
        return project

    @staticmethod
    def delete_project(db: Session, actor: Optional[Actor], project_id: int) -> None:
        """Delete a project together with its tasks, reports, applications, donations and moderation log"""
        project = ProjectService.get_project_or_404(db, project_id)
        require_mutate_project(project, actor)
        try:
            db.delete(project)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to delete project", error=str(e), project_id=project_id)
            raise
        logger.info("Project deleted", project_id=project_id)

    @staticmethod
    def change_status(db: Session, actor: Optional[Actor], project_id: int, target: ProjectStatus) -> Project:
        """Manual forward single-step status change by the owner or an admin"""
        project = ProjectService.get_project_or_404(db, project_id)
        require_mutate_project(project, actor)

        current = project.status
        ensure_transition(PROJECT_STATUS_TRANSITIONS, current, target, "Project")
        try:
            result = db.execute(
                update(Project)
                .where(Project.id == project_id, Project.status == current)
                .values(status=target)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Project status changed concurrently, it is no longer '{current.value}'")
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to change project status", error=str(e), project_id=project_id)
            raise
        db.refresh(project)

        record_transition("project", current, target)
        logger.info("Project status changed", project_id=project_id, from_status=current.value, to_status=target.value)
        return project

    # ========================================================================
    # MODERATION
    # ========================================================================

    @staticmethod
    def _apply_moderation(
        db: Session,
        project: Project,
        current: ModerationStatus,
        target: ModerationStatus,
        comment: Optional[str],
        moderator_id: Optional[int],
    ) -> ProjectModeration:
        """Move moderation_status conditionally and append the audit record in one transaction"""
        record = ProjectModeration(
            project_id=project.id,
            status=target,
            comment=comment,
            moderator_id=moderator_id,
        )
        try:
            result = db.execute(
                update(Project)
                .where(Project.id == project.id, Project.moderation_status == current)
                .values(moderation_status=target)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InvalidTransition(f"Project moderation changed concurrently, it is no longer '{current.value}'")
            db.add(record)
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to record moderation", error=str(e), project_id=project.id)
            raise
        db.refresh(project)
        db.refresh(record)

        record_transition("moderation", current, target)
        return record

    @staticmethod
    def moderate_project(
        db: Session,
        actor: Optional[Actor],
        project_id: int,
        decision: ModerationStatus,
        comment: Optional[str] = None,
    ) -> Project:
        """Approve or reject a pending project; project status is left alone"""
        require_moderator(actor)
        project = ProjectService.get_project_or_404(db, project_id)

        current = project.moderation_status
        ensure_transition(MODERATION_TRANSITIONS, current, decision, "Project moderation")
        ProjectService._apply_moderation(db, project, current, decision, comment, actor.user_id)

        logger.info(
            "Project moderated",
            project_id=project_id,
            decision=decision.value,
            moderator_id=actor.user_id,
        )
        return project

    @staticmethod
    def resubmit_project(db: Session, actor: Optional[Actor], project_id: int, comment: Optional[str] = None) -> Project:
        """Send a rejected project back to the moderation queue"""
        project = ProjectService.get_project_or_404(db, project_id)
        if not owns_project(project, actor):
            raise Forbidden("Only the project's coordinator may resubmit it")

        current = project.moderation_status
        if not get_settings().allow_moderation_resubmission:
            raise InvalidTransition(f"Project moderation cannot move from '{current.value}' to 'pending'")
        ensure_transition(RESUBMISSION_TRANSITIONS, current, ModerationStatus.PENDING, "Project moderation")
        ProjectService._apply_moderation(db, project, current, ModerationStatus.PENDING, comment, actor.user_id)

        logger.info("Project resubmitted for moderation", project_id=project_id)
        return project

    @staticmethod
    def list_moderations(db: Session, actor: Optional[Actor], project_id: int) -> List[ProjectModeration]:
        project = ProjectService.get_project_or_404(db, project_id)
        if not (can_moderate(actor) or can_mutate_project(project, actor)):
            raise Forbidden("Only moderators and the project's coordinator may see its moderation history")
        return list(project.moderations)

    @staticmethod
    def moderation_queue(
        db: Session,
        actor: Optional[Actor],
        moderation_status: ModerationStatus = ModerationStatus.PENDING,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Project]:
        """Projects waiting for (or filtered by) a moderation decision, oldest first"""
        require_moderator(actor)
        query = (
            select(Project)
            .where(Project.moderation_status == moderation_status)
            .order_by(Project.id)
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))

    # ========================================================================
    # PER-USER LISTINGS
    # ========================================================================

    @staticmethod
    def coordinator_projects(db: Session, actor: Optional[Actor], coordinator_id: int, skip: int = 0, limit: int = 100) -> List[Project]:
        require_self_or_admin(actor, coordinator_id)
        query = (
            select(Project)
            .where(Project.coordinator_id == coordinator_id)
            .order_by(Project.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))

    @staticmethod
    def volunteer_projects(db: Session, actor: Optional[Actor], skip: int = 0, limit: int = 100) -> List[Project]:
        """Projects where the volunteer holds an approved application"""
        actor = require_role(actor, Role.VOLUNTEER)
        query = (
            select(Project)
            .join(Application, Application.project_id == Project.id)
            .where(
                Application.volunteer_id == actor.user_id,
                Application.status == ApplicationStatus.APPROVED,
                visible_projects_clause(actor),
            )
            .order_by(Project.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))
