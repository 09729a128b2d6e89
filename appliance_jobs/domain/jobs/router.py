"""Job router - FastAPI endpoints for job operations"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..scheduling import JobStatus
from .schemas import (
    ChecklistResponse,
    ChecklistToggleRequest,
    DriveTimeRefreshResponse,
    JobCreate,
    JobResponse,
    JobUpdate,
)
from .service import JobService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

STATUS_FILTERS = {status.slug: status for status in JobStatus}


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[JobResponse])
async def get_jobs(
    status: Optional[str] = Query(None, description="upcoming, in_progress or completed"),
    service: JobService = Depends(get_job_service),
):
    """Get all jobs ordered by appointment time, optionally filtered by status"""
    status_filter = None
    if status:
        status_filter = STATUS_FILTERS.get(status.lower())
        if status_filter is None:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Use one of: {', '.join(STATUS_FILTERS)}",
            )

    now = datetime.utcnow()
    jobs = service.list_jobs(status_filter, now)
    return [JobResponse.from_job(job, now) for job in jobs]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(data: JobCreate, service: JobService = Depends(get_job_service)):
    job = await service.create_job(data)
    return JobResponse.from_job(job)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, service: JobService = Depends(get_job_service)):
    return JobResponse.from_job(service.get_job(job_id))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    data: JobUpdate,
    service: JobService = Depends(get_job_service),
):
    """Update a job; times, calendar event and reminders follow the new values"""
    job = await service.update_job(job_id, data)
    return JobResponse.from_job(job)


@router.delete("/{job_id}")
async def delete_job(job_id: str, service: JobService = Depends(get_job_service)):
    return await service.delete_job(job_id)


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/{job_id}/complete", response_model=JobResponse)
async def complete_job(job_id: str, service: JobService = Depends(get_job_service)):
    now = datetime.utcnow()
    job = service.complete_job(job_id, now)
    return JobResponse.from_job(job, now)


@router.post("/{job_id}/drive-time/refresh", response_model=DriveTimeRefreshResponse)
async def refresh_drive_time(job_id: str, service: JobService = Depends(get_job_service)):
    """Recalculate drive time from the home address to the job address"""
    job = await service.refresh_drive_time(job_id)
    return DriveTimeRefreshResponse(
        driveTimeMinutes=job.drive_time_minutes,
        formattedDriveTime=job.formatted_drive_time,
        job=JobResponse.from_job(job),
    )


# ============================================================================
# CHECKLIST
# ============================================================================


@router.get("/{job_id}/checklist", response_model=ChecklistResponse)
async def get_checklist(job_id: str, service: JobService = Depends(get_job_service)):
    return ChecklistResponse.from_job(service.get_job(job_id))


@router.post("/{job_id}/checklist/toggle", response_model=ChecklistResponse)
async def toggle_checklist_item(
    job_id: str,
    data: ChecklistToggleRequest,
    service: JobService = Depends(get_job_service),
):
    job = service.toggle_checklist_item(job_id, data.item)
    return ChecklistResponse.from_job(job)
