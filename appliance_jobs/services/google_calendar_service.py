"""
Google Calendar Service
Mirrors jobs as calendar events: create/update on save, delete on removal.

Events span departure → estimated return, with a popup alarm prep-time
minutes before departure. Failures are logged and reported as None/False;
they never block saving the job.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx
from cryptography.fernet import Fernet
from sqlalchemy.orm import Session

from ..config import (
    CALENDAR_ENCRYPTION_KEY,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    HTTP_TIMEOUT_SECONDS,
)
from ..models import Job
from ..models_google_calendar import GoogleCalendarIntegration

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"

ADDRESS_PLACEHOLDER = "Address TBD"


def get_cipher() -> Fernet:
    if not CALENDAR_ENCRYPTION_KEY:
        raise RuntimeError("CALENDAR_ENCRYPTION_KEY is not configured")
    return Fernet(CALENDAR_ENCRYPTION_KEY.encode())


def encrypt_token(token: str) -> str:
    return get_cipher().encrypt(token.encode()).decode()


def decrypt_token(token: str) -> str:
    return get_cipher().decrypt(token.encode()).decode()


def get_integration(db: Session) -> Optional[GoogleCalendarIntegration]:
    return db.query(GoogleCalendarIntegration).first()


@asynccontextmanager
async def _http_client(client: Optional[httpx.AsyncClient]):
    if client is not None:
        yield client
    else:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as owned_client:
            yield owned_client


async def get_valid_access_token(
    integration: GoogleCalendarIntegration,
    db: Session,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """
    Get a valid access token, refreshing if necessary
    Returns None if refresh fails
    """
    try:
        # Still valid for at least 5 more minutes
        if integration.token_expires_at > datetime.utcnow() + timedelta(minutes=5):
            return decrypt_token(integration.access_token)

        logger.info("🔄 Google Calendar token expired, refreshing...")
        refresh_token = decrypt_token(integration.refresh_token)

        async with _http_client(client) as http:
            response = await http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )

        if response.status_code != 200:
            logger.error(f"❌ Token refresh failed: {response.text}")
            return None

        tokens = response.json()
        new_access_token = tokens.get("access_token")
        expires_in = tokens.get("expires_in", 3600)

        if not new_access_token:
            logger.error("❌ No access token in refresh response")
            return None

        integration.access_token = encrypt_token(new_access_token)
        integration.token_expires_at = datetime.utcnow() + timedelta(seconds=expires_in)
        db.commit()

        logger.info("✅ Google Calendar token refreshed successfully")
        return new_access_token

    except Exception as e:
        logger.error(f"❌ Error getting valid access token: {str(e)}")
        return None


def build_event_payload(job: Job) -> Dict[str, Any]:
    """Calendar event body for a job"""
    timeline = job.timeline
    location = job.address.strip() if job.address else ""

    description = "\n".join(
        [
            f"Prep starts: {timeline.prep_start:%H:%M} UTC",
            f"Depart: {timeline.departure:%H:%M} UTC",
            f"Arrive: {timeline.arrival:%H:%M} UTC",
            f"Est. return: {timeline.estimated_return:%H:%M} UTC",
            f"Duration: {timeline.duration_minutes} min",
        ]
    )

    return {
        "summary": f"{job.type.value}: {job.title}",
        "location": location or ADDRESS_PLACEHOLDER,
        "description": description,
        "start": {"dateTime": timeline.departure.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": timeline.estimated_return.isoformat(), "timeZone": "UTC"},
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": timeline.prep_time_minutes}],
        },
        "extendedProperties": {"private": {"jobId": job.id}},
    }


async def upsert_job_event(
    job: Job,
    db: Session,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """
    Create or update the calendar event for a job
    Returns the event ID if successful, None otherwise
    """
    try:
        integration = get_integration(db)
        if not integration or not integration.auto_sync_enabled:
            logger.info("ℹ️ Google Calendar not connected or auto-sync disabled")
            return None

        access_token = await get_valid_access_token(integration, db, client)
        if not access_token:
            logger.error("❌ Failed to get valid access token")
            return None

        event_data = build_event_payload(job)
        calendar_id = integration.google_calendar_id or "primary"
        events_url = f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events"
        headers = {"Authorization": f"Bearer {access_token}"}

        async with _http_client(client) as http:
            existing_id = job.calendar_event_identifier
            if existing_id:
                response = await http.put(
                    f"{events_url}/{existing_id}", headers=headers, json=event_data
                )
                if response.status_code == 200:
                    logger.info(f"✅ Google Calendar event updated: {existing_id}")
                    return existing_id
                if response.status_code not in (404, 410):
                    logger.error(f"❌ Failed to update calendar event: {response.text}")
                    return None
                logger.warning(f"⚠️ Calendar event {existing_id} no longer exists, recreating")

            response = await http.post(events_url, headers=headers, json=event_data)
            if response.status_code not in (200, 201):
                logger.error(f"❌ Failed to create calendar event: {response.text}")
                return None

            event_id = response.json().get("id")
            logger.info(f"✅ Google Calendar event created: {event_id}")
            return event_id

    except Exception as e:
        logger.error(f"❌ Error syncing calendar event for job {job.id}: {str(e)}")
        return None


async def delete_job_event(
    event_id: Optional[str],
    db: Session,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """
    Delete a calendar event; no-op when the job never had one
    Returns True if successful, False otherwise
    """
    if not event_id:
        return False

    try:
        integration = get_integration(db)
        if not integration:
            logger.info("ℹ️ Google Calendar not connected")
            return False

        access_token = await get_valid_access_token(integration, db, client)
        if not access_token:
            logger.error("❌ Failed to get valid access token")
            return False

        calendar_id = integration.google_calendar_id or "primary"
        async with _http_client(client) as http:
            response = await http.delete(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events/{event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
            )

        # Already gone counts as removed
        if response.status_code not in (200, 204, 404, 410):
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            return False

        logger.info(f"✅ Google Calendar event deleted: {event_id}")
        return True

    except Exception as e:
        logger.error(f"❌ Error deleting calendar event: {str(e)}")
        return False
