import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


class HomeAddress(BaseModel):
    address: str = ""


@router.get("/home-address", response_model=HomeAddress)
async def get_home_address(db: Session = Depends(get_db)):
    return HomeAddress(address=SettingsService(db).get_home_address())


@router.put("/home-address", response_model=HomeAddress)
async def update_home_address(data: HomeAddress, db: Session = Depends(get_db)):
    """Set the origin used for drive time lookups; an empty string clears it"""
    return HomeAddress(address=SettingsService(db).set_home_address(data.address))
