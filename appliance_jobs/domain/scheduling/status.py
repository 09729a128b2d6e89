"""
Job lifecycle and warranty status

Status is a query over "now" and the job's derived times. The only fact that
is ever persisted is the manual completion (flag + date).
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from .time_calculator import JobType

WARRANTY_DAYS = 30


class JobStatus(str, Enum):
    UPCOMING = "Upcoming"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def slug(self) -> str:
        """Query-string form: upcoming, in_progress, completed"""
        return self.name.lower()


def job_status(
    now: datetime,
    is_completed: bool,
    departure: datetime,
    estimated_return: datetime,
) -> JobStatus:
    # Manual completion always wins
    if is_completed:
        return JobStatus.COMPLETED
    if departure <= now < estimated_return:
        return JobStatus.IN_PROGRESS
    if now >= estimated_return:
        # Past return time but never marked complete
        return JobStatus.COMPLETED
    return JobStatus.UPCOMING


def completion_instant(
    completed_date: Optional[datetime],
    estimated_return: datetime,
    now: datetime,
) -> Optional[datetime]:
    """Manual completion date if there is one, else the return time once it has passed"""
    if completed_date is not None:
        return completed_date
    if now >= estimated_return:
        return estimated_return
    return None


def warranty_expiration_date(
    job_type: JobType,
    completed_date: Optional[datetime],
    estimated_return: datetime,
    now: datetime,
) -> Optional[datetime]:
    """Delivery jobs carry a 30-day warranty from completion"""
    if JobType(job_type) != JobType.DELIVERY:
        return None
    completed = completion_instant(completed_date, estimated_return, now)
    if completed is None:
        return None
    return completed + timedelta(days=WARRANTY_DAYS)


def warranty_days_remaining(expiration: Optional[datetime], now: datetime) -> Optional[int]:
    if expiration is None:
        return None
    return max(0, (expiration - now).days)


def is_warranty_expired(days_remaining: Optional[int]) -> bool:
    if days_remaining is None:
        return False
    return days_remaining <= 0
