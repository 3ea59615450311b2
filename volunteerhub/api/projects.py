from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor, get_optional_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.models.project import ProjectStatus, ModerationStatus
from volunteerhub.schemas.project import (
    CreateProjectRequest,
    UpdateProjectRequest,
    ProjectStatusUpdateRequest,
    ModerateProjectRequest,
    ResubmitProjectRequest,
    ProjectResponse,
    ProjectListResponse,
    ModerationResponse,
    ModerationListResponse,
)
from volunteerhub.services.projects import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])
settings = get_settings()


def _project_list(projects) -> ProjectListResponse:
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(p) for p in projects],
        total=len(projects),
    )


@router.get("", response_model=ProjectListResponse)
def list_projects(
    status: Optional[ProjectStatus] = Query(None, description="Filter by project status"),
    search: Optional[str] = Query(None, max_length=255, description="Case-insensitive name search"),
    skip: int = Query(0, ge=0, description="Number of projects to skip"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Number of projects to return"),
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: Session = Depends(get_db),
):
    """List the projects visible to the caller"""
    projects = ProjectService.list_projects(db, actor, status=status, search=search, skip=skip, limit=limit)
    return _project_list(projects)


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    project_data: CreateProjectRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Create a project; it starts in funding and waits for moderation"""
    project = ProjectService.create_project(db, actor, project_data)
    return ProjectResponse.model_validate(project)


@router.get("/moderation", response_model=ProjectListResponse)
def moderation_queue(
    moderation_status: ModerationStatus = Query(ModerationStatus.PENDING),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Projects by moderation status, pending by default"""
    projects = ProjectService.moderation_queue(db, actor, moderation_status=moderation_status, skip=skip, limit=limit)
    return _project_list(projects)


@router.get("/mine/volunteering", response_model=ProjectListResponse)
def volunteer_projects(
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Projects where the caller's application was approved"""
    projects = ProjectService.volunteer_projects(db, actor, skip=skip, limit=limit)
    return _project_list(projects)


@router.get("/coordinator/{coordinator_id}", response_model=ProjectListResponse)
def coordinator_projects(
    coordinator_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    projects = ProjectService.coordinator_projects(db, actor, coordinator_id, skip=skip, limit=limit)
    return _project_list(projects)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: Session = Depends(get_db),
):
    """Get a project by ID"""
    return ProjectResponse.model_validate(ProjectService.get_project(db, actor, project_id))


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_data: UpdateProjectRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Update an existing project"""
    project = ProjectService.update_project(db, actor, project_id, project_data)
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Delete a project and everything attached to it"""
    ProjectService.delete_project(db, actor, project_id)
    return Response(status_code=204)


@router.patch("/{project_id}/status", response_model=ProjectResponse)
def change_project_status(
    project_id: int,
    status_data: ProjectStatusUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    project = ProjectService.change_status(db, actor, project_id, status_data.status)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/moderate", response_model=ProjectResponse)
def moderate_project(
    project_id: int,
    decision: ModerateProjectRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending project"""
    project = ProjectService.moderate_project(db, actor, project_id, decision.status, decision.comment)
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/resubmit", response_model=ProjectResponse)
def resubmit_project(
    project_id: int,
    resubmission: ResubmitProjectRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    project = ProjectService.resubmit_project(db, actor, project_id, resubmission.comment)
    return ProjectResponse.model_validate(project)


@router.get("/{project_id}/moderations", response_model=ModerationListResponse)
def list_moderations(
    project_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Moderation history of a project, oldest first"""
    moderations = ProjectService.list_moderations(db, actor, project_id)
    return ModerationListResponse(
        moderations=[ModerationResponse.model_validate(m) for m in moderations],
        total=len(moderations),
    )
