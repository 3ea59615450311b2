from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class CreateDonationRequest(BaseModel):
    """Schema for donating to a project"""
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Donation amount")
    comment: Optional[str] = Field(None, max_length=1000, description="Optional message from donor")
    anonymous: bool = Field(default=False, description="Do not record the donor")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "amount": 100.00,
                "comment": "Hope this helps!",
                "anonymous": False
            }
        }
    )


class DonationResponse(BaseModel):
    """Schema for donation responses"""
    id: int
    project_id: int
    donor_id: Optional[int]
    amount: float
    comment: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DonationListResponse(BaseModel):
    """Schema for donation list response"""
    donations: list[DonationResponse]
    total: int
