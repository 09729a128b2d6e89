"""
Google Calendar Integration Routes
Handles OAuth connection for the account that job events are mirrored into
"""

import logging
from datetime import datetime, timedelta
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI, HTTP_TIMEOUT_SECONDS
from ..database import get_db
from ..models_google_calendar import GoogleCalendarIntegration
from ..services.google_calendar_service import (
    GOOGLE_CALENDAR_API,
    GOOGLE_TOKEN_URL,
    decrypt_token,
    encrypt_token,
    get_integration,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google-calendar", tags=["google-calendar"])

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]


class CalendarCallbackRequest(BaseModel):
    code: str


@router.get("/status")
async def get_google_calendar_status(db: Session = Depends(get_db)):
    """Get Google Calendar connection status"""
    integration = get_integration(db)

    if not integration:
        return {
            "connected": False,
            "user_email": None,
            "calendar_id": None,
            "auto_sync_enabled": None,
        }

    return {
        "connected": True,
        "user_email": integration.google_user_email,
        "calendar_id": integration.google_calendar_id,
        "auto_sync_enabled": integration.auto_sync_enabled,
    }


@router.get("/connect")
async def initiate_google_calendar_oauth():
    """Initiate Google Calendar OAuth flow"""
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(status_code=500, detail="Google Calendar not configured")

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
    }

    logger.info("Google Calendar OAuth initiated")
    return {"authorization_url": f"{GOOGLE_AUTH_URL}?{urlencode(params)}"}


@router.post("/callback")
async def handle_google_calendar_callback(data: CalendarCallbackRequest, db: Session = Depends(get_db)):
    """Exchange the authorization code and store the encrypted tokens"""
    if not data.code:
        raise HTTPException(status_code=400, detail="No authorization code provided")

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            token_response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": data.code,
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "redirect_uri": GOOGLE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
            )

            if token_response.status_code != 200:
                logger.error(f"Token exchange failed: {token_response.text}")
                raise HTTPException(status_code=400, detail="Failed to exchange authorization code")

            tokens = token_response.json()
            access_token = tokens.get("access_token")
            refresh_token = tokens.get("refresh_token")
            expires_in = tokens.get("expires_in", 3600)

            if not access_token or not refresh_token:
                raise HTTPException(status_code=400, detail="Invalid token response")

            auth_headers = {"Authorization": f"Bearer {access_token}"}

            user_info_response = await client.get(GOOGLE_USERINFO_URL, headers=auth_headers)
            google_email = None
            if user_info_response.status_code == 200:
                google_email = user_info_response.json().get("email")
            else:
                logger.warning(f"⚠️ Failed to get Google user info: {user_info_response.text}")

            calendar_response = await client.get(
                f"{GOOGLE_CALENDAR_API}/users/me/calendarList/primary", headers=auth_headers
            )
            calendar_id = "primary"
            if calendar_response.status_code == 200:
                calendar_id = calendar_response.json().get("id", "primary")

        token_expires_at = datetime.utcnow() + timedelta(seconds=expires_in)

        integration = get_integration(db)
        if integration:
            integration.access_token = encrypt_token(access_token)
            integration.refresh_token = encrypt_token(refresh_token)
            integration.token_expires_at = token_expires_at
            integration.google_user_email = google_email
            integration.google_calendar_id = calendar_id
        else:
            integration = GoogleCalendarIntegration(
                access_token=encrypt_token(access_token),
                refresh_token=encrypt_token(refresh_token),
                token_expires_at=token_expires_at,
                google_user_email=google_email,
                google_calendar_id=calendar_id,
                auto_sync_enabled=True,
            )
            db.add(integration)

        db.commit()
        logger.info(f"✅ Google Calendar connected: {google_email}")

        return {
            "success": True,
            "message": "Google Calendar connected successfully",
            "user_email": google_email,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Google Calendar callback error: {str(e)}")
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to connect Google Calendar: {str(e)}"
        ) from e


@router.delete("/disconnect")
async def disconnect_google_calendar(db: Session = Depends(get_db)):
    """Disconnect Google Calendar; existing job events stay in the calendar"""
    integration = get_integration(db)
    if not integration:
        raise HTTPException(status_code=404, detail="Google Calendar not connected")

    try:
        access_token = decrypt_token(integration.access_token)
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            await client.post(GOOGLE_REVOKE_URL, params={"token": access_token})
    except Exception as e:
        logger.warning(f"Failed to revoke Google tokens: {str(e)}")

    db.delete(integration)
    db.commit()

    logger.info("✅ Google Calendar disconnected")
    return {"success": True, "message": "Google Calendar disconnected"}
