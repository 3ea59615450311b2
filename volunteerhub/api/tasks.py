from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.models.task import TaskStatus
from volunteerhub.schemas.task import (
    CreateTaskRequest,
    AssignTaskRequest,
    TaskStatusUpdateRequest,
    TaskResponse,
    TaskListResponse,
    TaskAssignmentResponse,
    TaskAssignmentListResponse,
)
from volunteerhub.services.tasks import TaskService

router = APIRouter(tags=["tasks"])
settings = get_settings()


def _task_list(tasks) -> TaskListResponse:
    return TaskListResponse(tasks=[TaskResponse.model_validate(t) for t in tasks], total=len(tasks))


@router.post("/projects/{project_id}/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    project_id: int,
    task_data: CreateTaskRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Create a task under a project"""
    return TaskResponse.model_validate(TaskService.create_task(db, actor, project_id, task_data))


@router.get("/projects/{project_id}/tasks", response_model=TaskListResponse)
def list_project_tasks(
    project_id: int,
    status: Optional[TaskStatus] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    tasks = TaskService.list_project_tasks(db, actor, project_id, status=status, skip=skip, limit=limit)
    return _task_list(tasks)


@router.get("/tasks/mine", response_model=TaskListResponse)
def my_tasks(
    status: Optional[TaskStatus] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Tasks assigned to the calling volunteer"""
    return _task_list(TaskService.my_tasks(db, actor, status=status, skip=skip, limit=limit))


@router.get("/tasks/coordinator/{coordinator_id}", response_model=TaskListResponse)
def coordinator_tasks(
    coordinator_id: int,
    status: Optional[TaskStatus] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    tasks = TaskService.coordinator_tasks(db, actor, coordinator_id, status=status, skip=skip, limit=limit)
    return _task_list(tasks)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return TaskResponse.model_validate(TaskService.get_task(db, actor, task_id))


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    TaskService.delete_task(db, actor, task_id)
    return Response(status_code=204)


@router.patch("/tasks/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    status_data: TaskStatusUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Move a task one step forward"""
    return TaskResponse.model_validate(TaskService.update_status(db, actor, task_id, status_data.status))


@router.post("/tasks/{task_id}/assign", response_model=TaskResponse)
def assign_task(
    task_id: int,
    assignment: AssignTaskRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Assign a task to a volunteer with an approved application"""
    return TaskResponse.model_validate(TaskService.assign_task(db, actor, task_id, assignment.volunteer_id))


@router.get("/tasks/{task_id}/assignments", response_model=TaskAssignmentListResponse)
def assignment_history(
    task_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    assignments = TaskService.assignment_history(db, actor, task_id)
    return TaskAssignmentListResponse(
        assignments=[TaskAssignmentResponse.model_validate(a) for a in assignments],
        total=len(assignments),
    )
