from sqlalchemy import case, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import math
import structlog

from volunteerhub.core.errors import DomainError, ProjectNotAcceptingFunds, ValidationError
from volunteerhub.core.policy import Actor, require_private_records, require_role, require_view_project
from volunteerhub.middleware.metrics import donations_total, donation_amount_total, record_transition
from volunteerhub.models.donation import Donation
from volunteerhub.models.project import Project, ProjectStatus
from volunteerhub.models.user import Role
from volunteerhub.services.projects import ProjectService

logger = structlog.get_logger(__name__)


class DonationService:
    """Donations and the atomic funding transition they drive"""

    @staticmethod
    def apply_donation(
        db: Session,
        actor: Optional[Actor],
        project_id: int,
        amount: float,
        comment: Optional[str] = None,
        anonymous: bool = False,
    ) -> Donation:
        """
        Record a donation and add it to the project's collected amount.

        The increment and the funding -> in_progress transition happen in a
        single conditional UPDATE, so two concurrent donations can neither lose
        an increment nor both miss the target. The donation row is inserted in
        the same transaction.
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Donation amount must be a positive finite number")

        project = ProjectService.get_project_or_404(db, project_id)
        require_view_project(project, actor)
        if project.status != ProjectStatus.FUNDING:
            raise ProjectNotAcceptingFunds(f"Project {project_id} is no longer accepting donations")

        donor_id = None if actor is None or anonymous else actor.user_id
        new_total = Project.collected_amount + amount
        donation = Donation(project_id=project_id, donor_id=donor_id, amount=amount, comment=comment)

        try:
            result = db.execute(
                update(Project)
                .where(Project.id == project_id, Project.status == ProjectStatus.FUNDING)
                .values(
                    collected_amount=new_total,
                    status=case(
                        (
                            new_total >= Project.target_amount,
                            literal(ProjectStatus.IN_PROGRESS, Project.__table__.c.status.type),
                        ),
                        else_=Project.status,
                    ),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ProjectNotAcceptingFunds(f"Project {project_id} is no longer accepting donations")
            db.add(donation)
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to apply donation", error=str(e), project_id=project_id, amount=amount)
            raise
        db.refresh(donation)
        db.refresh(project)

        donations_total.labels(anonymous=str(donor_id is None).lower()).inc()
        donation_amount_total.inc(amount)
        if project.status == ProjectStatus.IN_PROGRESS:
            record_transition("project", ProjectStatus.FUNDING, ProjectStatus.IN_PROGRESS)
            logger.info("Project reached its funding target", project_id=project_id, collected_amount=project.collected_amount)

        logger.info(
            "Donation applied",
            donation_id=donation.id,
            project_id=project_id,
            amount=amount,
            anonymous=donor_id is None,
        )
        return donation

    @staticmethod
    def project_donations(db: Session, actor: Optional[Actor], project_id: int, skip: int = 0, limit: int = 100) -> List[Donation]:
        project = ProjectService.get_project_or_404(db, project_id)
        require_private_records(project, actor)
        query = (
            select(Donation)
            .where(Donation.project_id == project_id)
            .order_by(Donation.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))

    @staticmethod
    def my_donations(db: Session, actor: Optional[Actor], skip: int = 0, limit: int = 100) -> List[Donation]:
        actor = require_role(actor, *Role)
        query = (
            select(Donation)
            .where(Donation.donor_id == actor.user_id)
            .order_by(Donation.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(query))
