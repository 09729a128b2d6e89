"""
Job Reminder Service
Schedules prep, departure and post-tinkering reminders for jobs.

Reminders are rows in job_reminders keyed by a deterministic identifier
(prep-<job id>, depart-<job id>, posttinker-<job id>), so rescheduling
replaces rather than duplicates. The worker delivers them when due.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..config import REMINDER_DISPATCH_BATCH
from ..models import Job, JobReminder

logger = logging.getLogger(__name__)

KIND_PREP = "prep"
KIND_DEPART = "depart"
KIND_POST_TINKER = "posttinker"

CATEGORIES = {
    KIND_PREP: "JOB_PREP",
    KIND_DEPART: "JOB_DEPART",
    KIND_POST_TINKER: "JOB_POSTTINKER",
}


def reminder_identifier(kind: str, job_id: str) -> str:
    return f"{kind}-{job_id}"


def reminder_identifiers(job_id: str) -> List[str]:
    return [reminder_identifier(kind, job_id) for kind in CATEGORIES]


def _location_description(job: Job) -> str:
    address = (job.address or "").strip()
    return address or "Address TBD"


def _build_reminder(job: Job, kind: str, trigger_at: datetime) -> JobReminder:
    if kind == KIND_PREP:
        title = f"Time to Prep! {job.type.value}"
        body = (
            f"{job.title} — {_location_description(job)}. Start getting ready. "
            f"You have {job.prep_time_minutes} min before departure."
        )
    elif kind == KIND_DEPART:
        title = "Time to leave — head out now!"
        body = f"{job.title} — {_location_description(job)}. Drive time: {job.formatted_drive_time}."
    else:
        title = "Post-Tinkering Reminder"
        body = "ALWAYS Test after you fix/change something!"

    return JobReminder(
        identifier=reminder_identifier(kind, job.id),
        job_id=job.id,
        kind=kind,
        category=CATEGORIES[kind],
        title=title,
        body=body,
        trigger_at=trigger_at,
    )


def remove_job_reminders(db: Session, job_id: str, commit: bool = True) -> int:
    """Remove every reminder scheduled for a job"""
    removed = (
        db.query(JobReminder)
        .filter(JobReminder.identifier.in_(reminder_identifiers(job_id)))
        .delete(synchronize_session=False)
    )
    if commit:
        db.commit()
    if removed:
        logger.info(f"🔕 Removed {removed} reminder(s) for job {job_id}")
    return removed


def schedule_job_reminders(
    db: Session, job: Job, now: Optional[datetime] = None
) -> List[JobReminder]:
    """
    Replace the reminders for a job.

    Nothing is scheduled when prep should already have started. Otherwise each
    reminder is added only if its own trigger time is still in the future.
    """
    now = now or datetime.utcnow()
    remove_job_reminders(db, job.id, commit=False)
    # Old rows must be gone before reusing their identifiers
    db.flush()

    timeline = job.timeline
    if timeline.prep_start <= now:
        db.commit()
        logger.info(f"ℹ️ Job {job.id} prep time already passed, no reminders scheduled")
        return []

    triggers = [(KIND_PREP, timeline.prep_start), (KIND_DEPART, timeline.departure)]
    if job.is_post_tinkering:
        triggers.append((KIND_POST_TINKER, timeline.estimated_return))

    reminders = []
    for kind, trigger_at in triggers:
        if trigger_at <= now:
            continue
        reminder = _build_reminder(job, kind, trigger_at)
        db.add(reminder)
        reminders.append(reminder)

    db.commit()
    logger.info(f"🔔 Scheduled {len(reminders)} reminder(s) for job {job.id}")
    return reminders


def get_due_reminders(
    db: Session, now: Optional[datetime] = None, limit: int = REMINDER_DISPATCH_BATCH
) -> List[JobReminder]:
    now = now or datetime.utcnow()
    return (
        db.query(JobReminder)
        .filter(JobReminder.delivered_at.is_(None), JobReminder.trigger_at <= now)
        .order_by(JobReminder.trigger_at.asc())
        .limit(limit)
        .all()
    )


def dispatch_due_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """Deliver every reminder whose trigger time has arrived"""
    now = now or datetime.utcnow()
    due = get_due_reminders(db, now)

    for reminder in due:
        logger.info(f"📣 [{reminder.category}] {reminder.title} | {reminder.body}")
        reminder.delivered_at = now

    db.commit()
    return {"delivered": len(due)}
