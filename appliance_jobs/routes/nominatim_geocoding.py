"""
Nominatim (OpenStreetMap) address autocomplete for the job address field.

No API keys required, just a user agent string.
"""

import logging
from typing import List, Optional

import httpx
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..cache import build_autocomplete_key, cache
from ..config import (
    GEOCODE_CACHE_SECONDS,
    HTTP_TIMEOUT_SECONDS,
    NOMINATIM_BASE_URL,
    NOMINATIM_USER_AGENT,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocoding", tags=["Geocoding"])

MIN_SEARCH_LENGTH = 3


class NominatimAddressSuggestion(BaseModel):
    text: str
    title: str
    subtitle: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class NominatimAutocompleteResponse(BaseModel):
    suggestions: List[NominatimAddressSuggestion]


def parse_suggestion(item: dict) -> Optional[NominatimAddressSuggestion]:
    """Split a Nominatim result into a street title and a locality subtitle"""
    address = item.get("address", {})

    street_parts = [p for p in (address.get("house_number"), address.get("road")) if p]
    title = " ".join(street_parts)

    city = address.get("city") or address.get("town") or address.get("village") or address.get("hamlet")
    locality_parts = [p for p in (city, address.get("state"), address.get("postcode")) if p]
    subtitle = ", ".join(locality_parts) or None

    display_name = item.get("display_name", "")
    if not title:
        # POIs and areas without a street line
        title = display_name.split(",")[0].strip()
    if not title:
        return None

    # Selecting a suggestion fills the address with "title, subtitle"
    text = f"{title}, {subtitle}" if subtitle else title

    try:
        latitude = float(item["lat"])
        longitude = float(item["lon"])
    except (KeyError, TypeError, ValueError):
        latitude = longitude = None

    return NominatimAddressSuggestion(
        text=text,
        title=title,
        subtitle=subtitle,
        latitude=latitude,
        longitude=longitude,
    )


@router.get("/autocomplete", response_model=NominatimAutocompleteResponse)
async def nominatim_autocomplete(search: str, max_results: int = 6):
    """
    Address suggestions for a partial query.

    Args:
        search: Address search query (fewer than 3 characters returns nothing)
        max_results: Maximum number of results (1-10)
    """
    search = (search or "").strip()
    if len(search) < MIN_SEARCH_LENGTH:
        return NominatimAutocompleteResponse(suggestions=[])

    max_results = max(1, min(int(max_results), 10))

    cache_key = build_autocomplete_key(search, max_results)
    cached = cache.get(cache_key)
    if cached is not None:
        return NominatimAutocompleteResponse(
            suggestions=[NominatimAddressSuggestion(**x) for x in cached]
        )

    params = {
        "q": search,
        "format": "json",
        "addressdetails": "1",
        "limit": str(max_results),
    }
    headers = {"User-Agent": NOMINATIM_USER_AGENT}

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            resp = await client.get(f"{NOMINATIM_BASE_URL}/search", params=params, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"❌ Nominatim autocomplete request failed: {e}")
        raise HTTPException(status_code=502, detail="Address lookup service unavailable")

    if resp.status_code >= 400:
        logger.warning(f"Nominatim API error {resp.status_code}: {resp.text[:200]}")
        raise HTTPException(status_code=502, detail="Address lookup service temporarily unavailable")

    suggestions = []
    for item in resp.json():
        suggestion = parse_suggestion(item)
        if suggestion:
            suggestions.append(suggestion)

    cache.set(cache_key, [s.model_dump() for s in suggestions], GEOCODE_CACHE_SECONDS)
    return NominatimAutocompleteResponse(suggestions=suggestions)
