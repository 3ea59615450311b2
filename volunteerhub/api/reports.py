from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor, get_optional_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.schemas.report import CreateReportRequest, ReportResponse, ReportListResponse
from volunteerhub.services.reports import ReportService

router = APIRouter(tags=["reports"])
settings = get_settings()


def _report_list(reports) -> ReportListResponse:
    return ReportListResponse(reports=[ReportResponse.model_validate(r) for r in reports], total=len(reports))


@router.post("/tasks/{task_id}/reports", response_model=ReportResponse, status_code=201)
def submit_report(
    task_id: int,
    report_data: CreateReportRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Submit a completion report; the task is completed with it"""
    return ReportResponse.model_validate(ReportService.submit_report(db, actor, task_id, report_data))


@router.get("/tasks/{task_id}/reports", response_model=ReportListResponse)
def task_reports(
    task_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return _report_list(ReportService.task_reports(db, actor, task_id))


@router.get("/projects/{project_id}/reports", response_model=ReportListResponse)
def project_reports(
    project_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: Session = Depends(get_db),
):
    return _report_list(ReportService.project_reports(db, actor, project_id, skip=skip, limit=limit))
