from .user import CreateUserRequest, UserResponse, UserListResponse
from .project import (
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
from .task import (
    CreateTaskRequest,
    AssignTaskRequest,
    TaskStatusUpdateRequest,
    TaskResponse,
    TaskListResponse,
    TaskAssignmentResponse,
    TaskAssignmentListResponse,
)
from .application import (
    CreateApplicationRequest,
    ApplicationStatusUpdateRequest,
    ApplicationResponse,
    ApplicationListResponse,
)
from .donation import CreateDonationRequest, DonationResponse, DonationListResponse
from .report import CreateReportRequest, ReportResponse, ReportListResponse

__all__ = [
    "CreateUserRequest",
    "UserResponse",
    "UserListResponse",
    "CreateProjectRequest",
    "UpdateProjectRequest",
    "ProjectStatusUpdateRequest",
    "ModerateProjectRequest",
    "ResubmitProjectRequest",
    "ProjectResponse",
    "ProjectListResponse",
    "ModerationResponse",
    "ModerationListResponse",
    "CreateTaskRequest",
    "AssignTaskRequest",
    "TaskStatusUpdateRequest",
    "TaskResponse",
    "TaskListResponse",
    "TaskAssignmentResponse",
    "TaskAssignmentListResponse",
    "CreateApplicationRequest",
    "ApplicationStatusUpdateRequest",
    "ApplicationResponse",
    "ApplicationListResponse",
    "CreateDonationRequest",
    "DonationResponse",
    "DonationListResponse",
    "CreateReportRequest",
    "ReportResponse",
    "ReportListResponse",
]
