from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor, get_optional_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.schemas.donation import CreateDonationRequest, DonationResponse, DonationListResponse
from volunteerhub.services.donations import DonationService

router = APIRouter(tags=["donations"])
settings = get_settings()


@router.post("/projects/{project_id}/donations", response_model=DonationResponse, status_code=201)
def create_donation(
    project_id: int,
    donation_data: CreateDonationRequest,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: Session = Depends(get_db),
):
    """
    Donate to a project.

    Anonymous callers and donations flagged anonymous are recorded without a
    donor. The project moves to in_progress once the target is reached.
    """
    donation = DonationService.apply_donation(
        db,
        actor,
        project_id,
        donation_data.amount,
        comment=donation_data.comment,
        anonymous=donation_data.anonymous,
    )
    return DonationResponse.model_validate(donation)


@router.get("/projects/{project_id}/donations", response_model=DonationListResponse)
def project_donations(
    project_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    donations = DonationService.project_donations(db, actor, project_id, skip=skip, limit=limit)
    return DonationListResponse(
        donations=[DonationResponse.model_validate(d) for d in donations],
        total=len(donations),
    )


@router.get("/donations/mine", response_model=DonationListResponse)
def my_donations(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Donations made by the caller"""
    donations = DonationService.my_donations(db, actor, skip=skip, limit=limit)
    return DonationListResponse(
        donations=[DonationResponse.model_validate(d) for d in donations],
        total=len(donations),
    )
