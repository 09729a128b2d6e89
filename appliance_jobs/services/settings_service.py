"""App-wide settings stored in the app_settings table"""

import logging

from sqlalchemy.orm import Session

from ..models import AppSetting

logger = logging.getLogger(__name__)

HOME_ADDRESS_KEY = "home_address"


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: str = "") -> str:
        setting = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        return setting.value if setting else default

    def set(self, key: str, value: str) -> str:
        setting = self.db.query(AppSetting).filter(AppSetting.key == key).first()
        if setting:
            setting.value = value
        else:
            self.db.add(AppSetting(key=key, value=value))
        self.db.commit()
        return value

    def get_home_address(self) -> str:
        """Origin for every drive time lookup; "" when not set"""
        return self.get(HOME_ADDRESS_KEY, "")

    def set_home_address(self, address: str) -> str:
        address = (address or "").strip()
        logger.info("🏠 Home address updated" if address else "🏠 Home address cleared")
        return self.set(HOME_ADDRESS_KEY, address)
