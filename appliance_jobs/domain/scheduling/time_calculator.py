"""
Job timing calculations

Every time on a job is anchored to the scheduled (arrival) time:
prep start and departure walk backward from it, the return time walks
forward from departure. Nothing here is stored; callers recompute.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Tuple


class JobType(str, Enum):
    DELIVERY = "Delivery"
    INSTALLATION = "Installation"
    PICKUP = "Pickup"


# Only these can be picked when creating a job; Installation is a Delivery add-on
CREATABLE_JOB_TYPES = (JobType.DELIVERY, JobType.PICKUP)

PREP_TIME_MINUTES = {
    JobType.DELIVERY: 60,
    JobType.INSTALLATION: 30,
    JobType.PICKUP: 45,
}

# Fixed on-site overhead (loading/unloading), split across the crew
HANDLING_MINUTES = 30
INSTALLATION_MINUTES = 30

# Range offered for manual drive-time entry and applied to looked-up values
MIN_DRIVE_TIME_MINUTES = 5
MAX_DRIVE_TIME_MINUTES = 180


def clamp_people(number_of_people: int) -> int:
    return max(1, number_of_people)


def clamp_drive_time(minutes: int) -> int:
    return min(MAX_DRIVE_TIME_MINUTES, max(MIN_DRIVE_TIME_MINUTES, minutes))


def normalize_job_type(job_type: JobType, includes_installation: bool) -> Tuple[JobType, bool]:
    """
    Rewrite a job configuration into its editable form.

    Standalone Installation jobs only exist in legacy data. When such a job is
    edited it becomes a Delivery with the installation add-on. The add-on flag
    is dropped for anything that is not a Delivery.
    """
    job_type = JobType(job_type)
    if job_type == JobType.INSTALLATION:
        return JobType.DELIVERY, True
    if job_type != JobType.DELIVERY:
        return job_type, False
    return job_type, bool(includes_installation)


def prep_time_minutes(job_type: JobType) -> int:
    """Minutes of prep time before departure"""
    return PREP_TIME_MINUTES[JobType(job_type)]


def estimated_duration_minutes(
    job_type: JobType,
    drive_time_minutes: int,
    number_of_people: int,
    includes_installation: bool = False,
) -> int:
    """Total job duration in minutes, from leaving home to returning"""
    job_type = JobType(job_type)
    both_legs = 2 * drive_time_minutes

    if job_type == JobType.INSTALLATION:
        return both_legs + INSTALLATION_MINUTES

    base = both_legs + HANDLING_MINUTES // max(1, number_of_people)
    if job_type == JobType.DELIVERY and includes_installation:
        return base + INSTALLATION_MINUTES
    return base


def departure_time(scheduled_date: datetime, drive_time_minutes: int) -> datetime:
    """When to leave home: arrival time minus drive time"""
    return scheduled_date - timedelta(minutes=drive_time_minutes)


def prep_start_time(job_type: JobType, scheduled_date: datetime, drive_time_minutes: int) -> datetime:
    return departure_time(scheduled_date, drive_time_minutes) - timedelta(
        minutes=prep_time_minutes(job_type)
    )


def estimated_return_time(
    job_type: JobType,
    scheduled_date: datetime,
    drive_time_minutes: int,
    number_of_people: int,
    includes_installation: bool = False,
) -> datetime:
    duration = estimated_duration_minutes(
        job_type, drive_time_minutes, number_of_people, includes_installation
    )
    return departure_time(scheduled_date, drive_time_minutes) + timedelta(minutes=duration)


def format_duration(total_minutes: int) -> str:
    """Human-readable duration, e.g. "1h 30m", "2h" or "45m". Also used for drive time."""
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h"
    return f"{minutes}m"


@dataclass(frozen=True)
class JobTimeline:
    prep_time_minutes: int
    duration_minutes: int
    prep_start: datetime
    departure: datetime
    arrival: datetime
    estimated_return: datetime

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_minutes)


def compute_timeline(
    job_type: JobType,
    scheduled_date: datetime,
    drive_time_minutes: int,
    number_of_people: int,
    includes_installation: bool = False,
) -> JobTimeline:
    """All derived times for one job configuration"""
    prep = prep_time_minutes(job_type)
    duration = estimated_duration_minutes(
        job_type, drive_time_minutes, number_of_people, includes_installation
    )
    departure = departure_time(scheduled_date, drive_time_minutes)
    return JobTimeline(
        prep_time_minutes=prep,
        duration_minutes=duration,
        prep_start=departure - timedelta(minutes=prep),
        departure=departure,
        arrival=scheduled_date,
        estimated_return=departure + timedelta(minutes=duration),
    )
