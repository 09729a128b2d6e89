"""Job repository - Database operations for jobs"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ...models import Job


class JobRepository:
    """Repository for job database operations"""

    @staticmethod
    def get_jobs(db: Session) -> list[Job]:
        """Get all jobs, soonest appointment first"""
        return db.query(Job).order_by(Job.scheduled_date.asc()).all()

    @staticmethod
    def get_job_by_id(db: Session, job_id: str) -> Optional[Job]:
        return db.query(Job).filter(Job.id == job_id).first()

    @staticmethod
    def create_job(db: Session, **job_data) -> Job:
        job = Job(**job_data)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def update_job(db: Session, job: Job, **updates) -> Job:
        """Update a job with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(job, key):
                setattr(job, key, value)

        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def save(db: Session, job: Job) -> Job:
        """Persist in-place changes (checklist, completion, calendar id)"""
        db.commit()
        db.refresh(job)
        return job

    @staticmethod
    def delete_job(db: Session, job: Job) -> None:
        db.delete(job)
        db.commit()

    @staticmethod
    def backfill_completion_flags(db: Session) -> int:
        """
        Rows written before is_completed existed hold NULL; they were never
        completed manually, so they become False.
        """
        result = db.execute(text("UPDATE jobs SET is_completed = :flag WHERE is_completed IS NULL"), {"flag": False})
        db.commit()
        return result.rowcount or 0
