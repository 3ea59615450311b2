from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime
from typing import Optional

from volunteerhub.models.task import TaskStatus, TaskType


class CreateTaskRequest(BaseModel):
    """Request schema for creating a task under a project"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type: TaskType = Field(TaskType.OTHER, description="Kind of work")
    volunteers_needed: int = Field(1, ge=1, le=100)
    deadline: Optional[datetime] = None
    requires_expenses: bool = Field(False, description="Report must carry an expense amount and purpose")
    estimated_amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    expense_purpose: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Buy fuel",
                "description": "Buy 200 litres of diesel for the generators",
                "type": "collection",
                "volunteers_needed": 1,
                "requires_expenses": True,
                "estimated_amount": 250.0,
                "expense_purpose": "Diesel fuel"
            }
        }
    )

    @model_validator(mode="after")
    def expense_fields_need_flag(self):
        if not self.requires_expenses and (self.estimated_amount is not None or self.expense_purpose):
            raise ValueError("estimated_amount and expense_purpose need requires_expenses=true")
        return self


class AssignTaskRequest(BaseModel):
    volunteer_id: int = Field(..., gt=0)


class TaskStatusUpdateRequest(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    """Response schema for task data"""
    id: int
    project_id: int
    title: str
    description: str
    type: TaskType
    status: TaskStatus
    volunteer_id: Optional[int]
    volunteers_needed: int
    deadline: Optional[datetime]
    requires_expenses: bool
    estimated_amount: Optional[float]
    expense_purpose: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int


class TaskAssignmentResponse(BaseModel):
    id: int
    task_id: int
    volunteer_id: int
    assigned_by: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskAssignmentListResponse(BaseModel):
    assignments: list[TaskAssignmentResponse]
    total: int
