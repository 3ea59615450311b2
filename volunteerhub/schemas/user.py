from pydantic import BaseModel, Field, ConfigDict, EmailStr
from datetime import datetime
from typing import Optional

from volunteerhub.models.user import Role


class CreateUserRequest(BaseModel):
    """Request schema for registering a user"""
    username: str = Field(..., min_length=3, max_length=64, description="Unique login name")
    email: EmailStr = Field(..., description="Unique email address")
    role: Role = Field(..., description="volunteer, coordinator or donor")
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "olena",
                "email": "olena@example.org",
                "role": "volunteer",
                "first_name": "Olena",
                "last_name": "Shevchenko"
            }
        }
    )


class UserResponse(BaseModel):
    """Response schema for user data"""
    id: int
    username: str
    email: str
    role: Role
    first_name: Optional[str]
    last_name: Optional[str]
    is_verified: bool
    is_blocked: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int
