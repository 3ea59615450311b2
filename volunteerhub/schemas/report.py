from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class CreateReportRequest(BaseModel):
    """Volunteer's completion report for a task"""
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(None, max_length=512, description="URL of an already uploaded photo")
    expense_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    expense_purpose: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Fuel bought and delivered to the hospital",
                "expense_amount": 240.0,
                "expense_purpose": "Diesel fuel"
            }
        }
    )


class ReportResponse(BaseModel):
    id: int
    task_id: int
    volunteer_id: Optional[int]
    description: str
    image_url: Optional[str]
    expense_amount: Optional[float]
    expense_purpose: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
    total: int
