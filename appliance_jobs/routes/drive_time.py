"""
Drive time estimates for the job form.

Each form field gets its own debounced lookup keyed by fieldKey, held only
while a request for it is in flight. A request that is overtaken by a newer
one for the same field comes back with superseded=true and no minutes; the
client should ignore it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.scheduling import clamp_drive_time, format_duration
from ..services.drive_time_service import (
    FIELD_NAMESPACE,
    InvalidAddressError,
    RouteResolutionError,
    lookup_drive_time,
)
from ..services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drive-time", tags=["Drive Time"])


class DriveTimeEstimateRequest(BaseModel):
    fieldKey: str = "job-form"
    destination: str
    origin: Optional[str] = None  # defaults to the stored home address

    @field_validator("fieldKey")
    @classmethod
    def validate_field_key(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("fieldKey is required")
        return v


class DriveTimeEstimateResponse(BaseModel):
    superseded: bool = False
    driveTimeMinutes: Optional[int] = None
    formattedDriveTime: Optional[str] = None
    rawMinutes: Optional[int] = None


@router.post("/estimate", response_model=DriveTimeEstimateResponse)
async def estimate_drive_time(data: DriveTimeEstimateRequest, db: Session = Depends(get_db)):
    """
    Estimate drive time for a destination typed into the job form.

    The applied value is clamped to the range the form accepts; the
    unclamped route time is returned as rawMinutes.
    """
    origin = data.origin
    if origin is None:
        origin = SettingsService(db).get_home_address()
        if not origin:
            raise HTTPException(status_code=400, detail="Set your home address first")

    try:
        minutes = await lookup_drive_time(FIELD_NAMESPACE, data.fieldKey, origin, data.destination)
    except InvalidAddressError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RouteResolutionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if minutes is None:
        return DriveTimeEstimateResponse(superseded=True)

    applied = clamp_drive_time(minutes)
    return DriveTimeEstimateResponse(
        driveTimeMinutes=applied,
        formattedDriveTime=format_duration(applied),
        rawMinutes=minutes,
    )
