from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.models.application import ApplicationStatus
from volunteerhub.schemas.application import (
    CreateApplicationRequest,
    ApplicationStatusUpdateRequest,
    ApplicationResponse,
    ApplicationListResponse,
)
from volunteerhub.schemas.user import UserResponse, UserListResponse
from volunteerhub.services.applications import ApplicationService

router = APIRouter(tags=["applications"])
settings = get_settings()


def _application_list(applications) -> ApplicationListResponse:
    return ApplicationListResponse(
        applications=[ApplicationResponse.model_validate(a) for a in applications],
        total=len(applications),
    )


@router.post("/projects/{project_id}/applications", response_model=ApplicationResponse, status_code=201)
def apply_to_project(
    project_id: int,
    application_data: CreateApplicationRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Apply to volunteer on a project"""
    application = ApplicationService.apply(db, actor, project_id, application_data.message)
    return ApplicationResponse.model_validate(application)


@router.get("/projects/{project_id}/applications", response_model=ApplicationListResponse)
def project_applications(
    project_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Applications to a project; coordinator and admins only"""
    return _application_list(ApplicationService.project_applications(db, actor, project_id, skip=skip, limit=limit))


@router.get("/projects/{project_id}/volunteers", response_model=UserListResponse)
def project_volunteers(
    project_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    volunteers = ApplicationService.project_volunteers(db, actor, project_id)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in volunteers], total=len(volunteers))


@router.get("/applications/mine", response_model=ApplicationListResponse)
def my_applications(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return _application_list(ApplicationService.my_applications(db, actor, skip=skip, limit=limit))


@router.get("/applications/coordinator/{coordinator_id}", response_model=ApplicationListResponse)
def coordinator_applications(
    coordinator_id: int,
    status: Optional[ApplicationStatus] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Applications across all of a coordinator's projects"""
    applications = ApplicationService.coordinator_applications(
        db, actor, coordinator_id, status=status, skip=skip, limit=limit
    )
    return _application_list(applications)


@router.patch("/applications/{application_id}/status", response_model=ApplicationResponse)
def decide_application(
    application_id: int,
    status_data: ApplicationStatusUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending application"""
    application = ApplicationService.decide(db, actor, application_id, status_data.status)
    return ApplicationResponse.model_validate(application)
