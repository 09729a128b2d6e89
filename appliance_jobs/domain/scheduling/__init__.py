"""
Scheduling Domain

Pure timing math, lifecycle/warranty status and checklist resolution for
appliance jobs. No database or network access lives here; the jobs domain
and the integration services call into these functions.

Structure:
```
domain/scheduling/
├── __init__.py
├── time_calculator.py  # Prep/departure/return times and durations
├── status.py           # Upcoming / in progress / completed, warranty window
└── checklists.py       # Checklist templates and progress
```
"""

from .checklists import ChecklistTemplate, all_items, checklist_progress, templates_for, toggled
from .status import (
    WARRANTY_DAYS,
    JobStatus,
    is_warranty_expired,
    job_status,
    warranty_days_remaining,
    warranty_expiration_date,
)
from .time_calculator import (
    CREATABLE_JOB_TYPES,
    JobTimeline,
    JobType,
    clamp_drive_time,
    clamp_people,
    compute_timeline,
    estimated_duration_minutes,
    format_duration,
    normalize_job_type,
    prep_time_minutes,
)

__all__ = [
    "CREATABLE_JOB_TYPES",
    "ChecklistTemplate",
    "JobStatus",
    "JobTimeline",
    "JobType",
    "WARRANTY_DAYS",
    "all_items",
    "checklist_progress",
    "clamp_drive_time",
    "clamp_people",
    "compute_timeline",
    "estimated_duration_minutes",
    "format_duration",
    "is_warranty_expired",
    "job_status",
    "normalize_job_type",
    "prep_time_minutes",
    "templates_for",
    "toggled",
    "warranty_days_remaining",
    "warranty_expiration_date",
]
