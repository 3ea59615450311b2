from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from volunteerhub.models.application import ApplicationStatus


class CreateApplicationRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=2000, description="Optional note to the coordinator")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "I have a driving licence and a van"
            }
        }
    )


class ApplicationStatusUpdateRequest(BaseModel):
    status: ApplicationStatus = Field(..., description="approved or rejected")


class ApplicationResponse(BaseModel):
    id: int
    project_id: int
    volunteer_id: int
    status: ApplicationStatus
    message: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationResponse]
    total: int
