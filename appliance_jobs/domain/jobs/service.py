"""Job service - Business logic for job operations"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Job
from ...services import google_calendar_service, notification_service
from ...services.drive_time_service import (
    JOB_NAMESPACE,
    InvalidAddressError,
    RouteResolutionError,
    fetch_drive_time_from_home,
    lookup_drive_time,
)
from ...services.settings_service import SettingsService
from ..scheduling import JobStatus, clamp_drive_time, normalize_job_type
from .repository import JobRepository
from .schemas import JobCreate, JobUpdate

logger = logging.getLogger(__name__)


class JobService:
    """Service layer for job business logic"""

    def __init__(self, db: Session, http_client: Optional[httpx.AsyncClient] = None):
        self.db = db
        self.repo = JobRepository()
        self.http_client = http_client

    def list_jobs(
        self, status: Optional[JobStatus] = None, now: Optional[datetime] = None
    ) -> list[Job]:
        """All jobs by appointment time, optionally only those in one status"""
        jobs = self.repo.get_jobs(self.db)
        if status is None:
            return jobs
        now = now or datetime.utcnow()
        return [job for job in jobs if job.get_status(now) == status]

    def get_job(self, job_id: str) -> Job:
        job = self.repo.get_job_by_id(self.db, job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    async def create_job(self, data: JobCreate, now: Optional[datetime] = None) -> Job:
        logger.info(f"📥 Creating {data.jobType.value} job: {data.title}")

        job = self.repo.create_job(
            self.db,
            job_type=data.jobType.value,
            title=data.title,
            address=data.address,
            scheduled_date=data.scheduledDate,
            drive_time_minutes=data.driveTimeMinutes,
            number_of_people=data.numberOfPeople,
            includes_installation=data.includesInstallation,
            is_post_tinkering=data.isPostTinkering,
        )

        await self._sync_integrations(job, now)
        return job

    async def update_job(self, job_id: str, data: JobUpdate, now: Optional[datetime] = None) -> Job:
        job = self.get_job(job_id)

        # Editing turns a legacy Installation job into Delivery + installation
        job_type, includes_installation = normalize_job_type(
            data.jobType if data.jobType is not None else job.type,
            (
                data.includesInstallation
                if data.includesInstallation is not None
                else job.includes_installation
            ),
        )

        updates = {
            "job_type": job_type.value,
            "includes_installation": includes_installation,
            "title": data.title,
            "address": data.address,
            "scheduled_date": data.scheduledDate,
            "drive_time_minutes": data.driveTimeMinutes,
            "number_of_people": data.numberOfPeople,
            "is_post_tinkering": data.isPostTinkering,
        }

        job = self.repo.update_job(self.db, job, **updates)
        logger.info(f"✏️ Job {job.id} updated")

        await self._sync_integrations(job, now)
        return job

    async def delete_job(self, job_id: str) -> dict:
        """Delete a job along with its calendar event and pending reminders"""
        job = self.get_job(job_id)

        await google_calendar_service.delete_job_event(
            job.calendar_event_identifier, self.db, self.http_client
        )
        notification_service.remove_job_reminders(self.db, job.id)

        self.repo.delete_job(self.db, job)
        logger.info(f"🗑️ Job {job_id} deleted")
        return {"message": "Job deleted"}

    def complete_job(self, job_id: str, now: Optional[datetime] = None) -> Job:
        """Mark finished now; starts the warranty clock for deliveries"""
        job = self.get_job(job_id)
        job.mark_completed(now)
        job = self.repo.save(self.db, job)

        notification_service.remove_job_reminders(self.db, job.id)
        logger.info(f"✅ Job {job.id} marked completed at {job.completed_date}")
        return job

    def toggle_checklist_item(self, job_id: str, item: str) -> Job:
        job = self.get_job(job_id)
        job.toggle_item(item)
        return self.repo.save(self.db, job)

    async def refresh_drive_time(self, job_id: str) -> Job:
        """
        Look up drive time from the home address to the job and apply it.
        On any failure the stored drive time is left as it was.
        """
        job = self.get_job(job_id)
        home_address = SettingsService(self.db).get_home_address()

        if not job.address:
            raise HTTPException(status_code=400, detail="Job has no address yet")

        try:
            minutes = await lookup_drive_time(
                JOB_NAMESPACE,
                job.id,
                home_address,
                job.address,
                debounce_seconds=0,
                resolver=fetch_drive_time_from_home,
            )
        except InvalidAddressError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RouteResolutionError as e:
            logger.warning(f"⚠️ Drive time lookup failed for job {job.id}: {e}")
            raise HTTPException(status_code=502, detail=str(e))

        if minutes is None:
            raise HTTPException(status_code=409, detail="Superseded by a newer drive time request")

        job = self.repo.update_job(self.db, job, drive_time_minutes=clamp_drive_time(minutes))
        logger.info(f"🚗 Job {job.id} drive time set to {job.drive_time_minutes} min")

        await self._sync_integrations(job)
        return job

    async def _sync_integrations(self, job: Job, now: Optional[datetime] = None) -> None:
        """Push the recomputed times to the calendar and the reminder schedule"""
        event_id = await google_calendar_service.upsert_job_event(job, self.db, self.http_client)
        if event_id and event_id != job.calendar_event_identifier:
            job.calendar_event_identifier = event_id
            self.repo.save(self.db, job)

        if job.completed:
            notification_service.remove_job_reminders(self.db, job.id)
        else:
            notification_service.schedule_job_reminders(self.db, job, now)
