import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .domain.scheduling import checklists, status, time_calculator
from .domain.scheduling.checklists import ChecklistTemplate
from .domain.scheduling.status import JobStatus
from .domain.scheduling.time_calculator import JobTimeline, JobType


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Job(Base):
    """One scheduled appliance delivery, installation or pickup"""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    job_type = Column(String(20), nullable=False, default=JobType.DELIVERY.value)
    title = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False, default="")  # "" = address not given yet

    # Arrival/appointment time; every other time is derived from it
    scheduled_date = Column(DateTime, nullable=False, index=True)
    drive_time_minutes = Column(Integer, nullable=False, default=30)
    number_of_people = Column(Integer, nullable=False, default=1)
    includes_installation = Column(Boolean, nullable=False, default=False)
    is_post_tinkering = Column(Boolean, nullable=False, default=False)

    checked_items = Column(JSON, nullable=False, default=list)

    # Manual completion. NULL on rows created before this column existed;
    # backfilled to False at startup and by migrations/001_backfill_job_completion.sql.
    is_completed = Column(Boolean, nullable=True, default=False)
    completed_date = Column(DateTime, nullable=True)

    calendar_event_identifier = Column(String(500), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reminders = relationship("JobReminder", back_populates="job", cascade="all, delete-orphan")

    def __init__(self, **kwargs):
        kwargs.setdefault("id", generate_public_id())
        kwargs.setdefault("address", "")
        kwargs.setdefault("number_of_people", 1)
        kwargs.setdefault("includes_installation", False)
        kwargs.setdefault("is_post_tinkering", False)
        kwargs.setdefault("checked_items", [])
        kwargs.setdefault("is_completed", False)
        super().__init__(**kwargs)

    @validates("number_of_people")
    def _clamp_people(self, _key, value):
        return time_calculator.clamp_people(int(value))

    @validates("address")
    def _normalize_address(self, _key, value):
        return (value or "").strip()

    @validates("job_type")
    def _coerce_job_type(self, _key, value):
        return JobType(value).value

    @property
    def type(self) -> JobType:
        try:
            return JobType(self.job_type)
        except ValueError:
            return JobType.DELIVERY

    @type.setter
    def type(self, value: JobType):
        self.job_type = JobType(value).value

    @property
    def completed(self) -> bool:
        return self.is_completed is True

    # Timing

    @property
    def timeline(self) -> JobTimeline:
        return time_calculator.compute_timeline(
            self.type,
            self.scheduled_date,
            self.drive_time_minutes,
            self.number_of_people,
            self.includes_installation,
        )

    @property
    def prep_time_minutes(self) -> int:
        return time_calculator.prep_time_minutes(self.type)

    @property
    def estimated_duration_minutes(self) -> int:
        return time_calculator.estimated_duration_minutes(
            self.type, self.drive_time_minutes, self.number_of_people, self.includes_installation
        )

    @property
    def formatted_duration(self) -> str:
        return time_calculator.format_duration(self.estimated_duration_minutes)

    @property
    def formatted_drive_time(self) -> str:
        return time_calculator.format_duration(self.drive_time_minutes)

    @property
    def departure_time(self) -> datetime:
        return self.timeline.departure

    @property
    def prep_start_time(self) -> datetime:
        return self.timeline.prep_start

    @property
    def estimated_return_time(self) -> datetime:
        return self.timeline.estimated_return

    # Status and warranty

    def get_status(self, now: Optional[datetime] = None) -> JobStatus:
        now = now or datetime.utcnow()
        timeline = self.timeline
        return status.job_status(now, self.completed, timeline.departure, timeline.estimated_return)

    def mark_completed(self, now: Optional[datetime] = None) -> None:
        self.is_completed = True
        self.completed_date = now or datetime.utcnow()

    def get_warranty_expiration_date(self, now: Optional[datetime] = None) -> Optional[datetime]:
        now = now or datetime.utcnow()
        return status.warranty_expiration_date(
            self.type, self.completed_date, self.estimated_return_time, now
        )

    def get_warranty_days_remaining(self, now: Optional[datetime] = None) -> Optional[int]:
        now = now or datetime.utcnow()
        return status.warranty_days_remaining(self.get_warranty_expiration_date(now), now)

    def is_warranty_expired(self, now: Optional[datetime] = None) -> bool:
        return status.is_warranty_expired(self.get_warranty_days_remaining(now))

    # Checklist

    @property
    def checklist_templates(self) -> List[ChecklistTemplate]:
        return checklists.templates_for(
            self.type, self.includes_installation, self.is_post_tinkering
        )

    @property
    def all_checklist_items(self) -> List[str]:
        return checklists.all_items(self.type, self.includes_installation, self.is_post_tinkering)

    def is_item_checked(self, item: str) -> bool:
        return item in (self.checked_items or [])

    def toggle_item(self, item: str) -> None:
        # Reassign so SQLAlchemy sees the JSON column change
        self.checked_items = checklists.toggled(self.checked_items or [], item)

    def checklist_progress(self, items: Optional[List[str]] = None) -> float:
        if items is None:
            items = self.all_checklist_items
        return checklists.checklist_progress(self.checked_items or [], items)


class JobReminder(Base):
    """A pending or delivered reminder for a job (prep, departure, post-tinkering)"""

    __tablename__ = "job_reminders"

    id = Column(Integer, primary_key=True, index=True)
    identifier = Column(String(100), unique=True, nullable=False, index=True)  # e.g. prep-<job id>
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # prep, depart, posttinker
    category = Column(String(50), nullable=False)  # JOB_PREP, JOB_DEPART, JOB_POSTTINKER
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    trigger_at = Column(DateTime, nullable=False, index=True)
    delivered_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    job = relationship("Job", back_populates="reminders")


class AppSetting(Base):
    """Process-wide key/value settings (e.g. the crew's home address)"""

    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
