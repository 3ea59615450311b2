from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from volunteerhub.models.project import ProjectStatus, ModerationStatus


class CreateProjectRequest(BaseModel):
    """Request schema for creating a project"""
    name: str = Field(..., min_length=1, max_length=255, description="Project name is required")
    description: str = Field(..., min_length=1, description="Project description is required")
    target_amount: float = Field(..., gt=0, allow_inf_nan=False, description="Fundraising target must be greater than 0")
    image_url: Optional[str] = Field(None, max_length=512, description="URL of an already uploaded image")
    bank_details: Optional[str] = Field(None, description="Where offline transfers go")
    coordinator_id: Optional[int] = Field(None, gt=0, description="Owning coordinator; admins only")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Generators for the district hospital",
                "description": "Two diesel generators to keep surgery running during outages",
                "target_amount": 1000.0,
                "image_url": "/uploads/projects/generators.jpg",
                "bank_details": "UA00 0000 0000 0000 0000 0000 000"
            }
        }
    )


class UpdateProjectRequest(BaseModel):
    """Request schema for updating a project; status and collected amount are not editable"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    image_url: Optional[str] = Field(None, max_length=512)
    bank_details: Optional[str] = None
    coordinator_id: Optional[int] = Field(None, gt=0, description="Reassign the owner; admins only")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "description": "Three generators after the second ward joined",
                "target_amount": 1500.0
            }
        }
    )


class ProjectStatusUpdateRequest(BaseModel):
    status: ProjectStatus = Field(..., description="Next status; only forward single steps are allowed")


class ModerateProjectRequest(BaseModel):
    """Moderator decision on a pending project"""
    status: ModerationStatus = Field(..., description="approved or rejected")
    comment: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "approved",
                "comment": "Bank details verified"
            }
        }
    )


class ResubmitProjectRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=2000)


class ProjectResponse(BaseModel):
    """Response schema for project data"""
    id: int
    name: str
    description: str
    image_url: Optional[str]
    target_amount: float
    collected_amount: float
    bank_details: Optional[str]
    status: ProjectStatus
    moderation_status: ModerationStatus
    coordinator_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,  # Allows conversion from SQLAlchemy models
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Generators for the district hospital",
                "description": "Two diesel generators to keep surgery running during outages",
                "image_url": "/uploads/projects/generators.jpg",
                "target_amount": 1000.0,
                "collected_amount": 600.0,
                "bank_details": None,
                "status": "funding",
                "moderation_status": "approved",
                "coordinator_id": 5,
                "created_at": "2025-05-01T10:00:00Z",
                "updated_at": "2025-05-01T10:00:00Z"
            }
        }
    )


class ProjectListResponse(BaseModel):
    """Response schema for list of projects"""
    projects: list[ProjectResponse]
    total: int


class ModerationResponse(BaseModel):
    id: int
    project_id: int
    status: ModerationStatus
    comment: Optional[str]
    moderator_id: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ModerationListResponse(BaseModel):
    moderations: list[ModerationResponse]
    total: int
