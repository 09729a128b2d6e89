"""Job domain schemas - Pydantic models for validation"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import Job
from ..scheduling import CREATABLE_JOB_TYPES, JobStatus, JobType


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _clean_title(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("Title is required")
    return v


class JobCreate(BaseModel):
    """Schema for creating a new job"""

    jobType: JobType = JobType.DELIVERY
    title: str
    address: str = ""  # empty = address not given yet
    scheduledDate: datetime
    driveTimeMinutes: int = Field(30, ge=0)
    numberOfPeople: int = 1
    includesInstallation: bool = False
    isPostTinkering: bool = False

    @field_validator("jobType")
    @classmethod
    def validate_job_type(cls, v):
        if v not in CREATABLE_JOB_TYPES:
            raise ValueError("Installation is an add-on: create a Delivery with includesInstallation")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return (v or "").strip()

    @field_validator("scheduledDate")
    @classmethod
    def validate_scheduled_date(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def installation_only_on_delivery(self):
        if self.jobType != JobType.DELIVERY:
            self.includesInstallation = False
        return self


class JobUpdate(BaseModel):
    """Schema for updating an existing job"""

    jobType: Optional[JobType] = None
    title: Optional[str] = None
    address: Optional[str] = None
    scheduledDate: Optional[datetime] = None
    driveTimeMinutes: Optional[int] = Field(None, ge=0)
    numberOfPeople: Optional[int] = None
    includesInstallation: Optional[bool] = None
    isPostTinkering: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if v is None:
            return v
        return v.strip()

    @field_validator("scheduledDate")
    @classmethod
    def validate_scheduled_date(cls, v):
        return to_naive_utc(v)


class TimelineResponse(BaseModel):
    prepTimeMinutes: int
    durationMinutes: int
    formattedDuration: str
    prepStartTime: datetime
    departureTime: datetime
    arrivalTime: datetime
    estimatedReturnTime: datetime


class WarrantyResponse(BaseModel):
    expirationDate: datetime
    daysRemaining: int
    isExpired: bool


class JobResponse(BaseModel):
    """Schema for job response, including every derived time"""

    id: str
    jobType: JobType
    title: str
    address: str
    scheduledDate: datetime
    driveTimeMinutes: int
    formattedDriveTime: str
    numberOfPeople: int
    includesInstallation: bool
    isPostTinkering: bool
    isCompleted: bool
    completedDate: Optional[datetime] = None
    calendarEventIdentifier: Optional[str] = None
    checkedItems: List[str]
    checklistProgress: float
    status: JobStatus
    timeline: TimelineResponse
    warranty: Optional[WarrantyResponse] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job, now: Optional[datetime] = None) -> "JobResponse":
        now = now or datetime.utcnow()
        timeline = job.timeline

        warranty = None
        expiration = job.get_warranty_expiration_date(now)
        if expiration is not None:
            days = job.get_warranty_days_remaining(now)
            warranty = WarrantyResponse(
                expirationDate=expiration,
                daysRemaining=days,
                isExpired=job.is_warranty_expired(now),
            )

        return cls(
            id=job.id,
            jobType=job.type,
            title=job.title,
            address=job.address,
            scheduledDate=job.scheduled_date,
            driveTimeMinutes=job.drive_time_minutes,
            formattedDriveTime=job.formatted_drive_time,
            numberOfPeople=job.number_of_people,
            includesInstallation=job.includes_installation,
            isPostTinkering=job.is_post_tinkering,
            isCompleted=job.completed,
            completedDate=job.completed_date,
            calendarEventIdentifier=job.calendar_event_identifier,
            checkedItems=list(job.checked_items or []),
            checklistProgress=job.checklist_progress(),
            status=job.get_status(now),
            timeline=TimelineResponse(
                prepTimeMinutes=timeline.prep_time_minutes,
                durationMinutes=timeline.duration_minutes,
                formattedDuration=timeline.formatted_duration,
                prepStartTime=timeline.prep_start,
                departureTime=timeline.departure,
                arrivalTime=timeline.arrival,
                estimatedReturnTime=timeline.estimated_return,
            ),
            warranty=warranty,
            created_at=job.created_at,
        )


class ChecklistItemResponse(BaseModel):
    name: str
    checked: bool


class ChecklistTemplateResponse(BaseModel):
    name: str
    items: List[ChecklistItemResponse]


class ChecklistResponse(BaseModel):
    jobId: str
    templates: List[ChecklistTemplateResponse]
    checkedCount: int
    totalCount: int
    progress: float

    @classmethod
    def from_job(cls, job: Job) -> "ChecklistResponse":
        items = job.all_checklist_items
        return cls(
            jobId=job.id,
            templates=[
                ChecklistTemplateResponse(
                    name=template.name,
                    items=[
                        ChecklistItemResponse(name=item, checked=job.is_item_checked(item))
                        for item in template.items
                    ],
                )
                for template in job.checklist_templates
            ],
            checkedCount=sum(1 for item in items if job.is_item_checked(item)),
            totalCount=len(items),
            progress=job.checklist_progress(items),
        )


class ChecklistToggleRequest(BaseModel):
    """Schema for checking/unchecking one item"""

    item: str

    @field_validator("item")
    @classmethod
    def validate_item(cls, v):
        if not v or not v.strip():
            raise ValueError("Item name is required")
        return v


class DriveTimeRefreshResponse(BaseModel):
    driveTimeMinutes: int
    formattedDriveTime: str
    job: JobResponse
