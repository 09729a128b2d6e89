"""
Drive Time Service
Estimates driving time between two addresses.

Addresses are geocoded with Nominatim (OpenStreetMap) and routed with OSRM.
Lookups triggered while the user is still typing go through DriveTimeLookup,
which debounces and discards results from superseded requests.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

import httpx

from ..cache import build_geocode_key, cache
from ..config import (
    DRIVE_TIME_DEBOUNCE_SECONDS,
    GEOCODE_CACHE_SECONDS,
    HTTP_TIMEOUT_SECONDS,
    NOMINATIM_BASE_URL,
    NOMINATIM_USER_AGENT,
    OSRM_BASE_URL,
)

logger = logging.getLogger(__name__)

Resolver = Callable[[str, str], Awaitable[int]]


class DriveTimeError(Exception):
    """Base error for drive time lookups"""

    pass


class InvalidAddressError(DriveTimeError):
    """Raised before any lookup when an address is missing"""

    pass


class RouteResolutionError(DriveTimeError):
    """Raised when geocoding or routing fails (no match, no route, service error)"""

    pass


async def geocode_address(client: httpx.AsyncClient, address: str) -> Tuple[float, float]:
    """Return (latitude, longitude) for the best Nominatim match"""
    cache_key = build_geocode_key(address)
    cached = cache.get(cache_key)
    if cached:
        return cached[0], cached[1]

    try:
        resp = await client.get(
            f"{NOMINATIM_BASE_URL}/search",
            params={"q": address, "format": "json", "limit": "1"},
            headers={"User-Agent": NOMINATIM_USER_AGENT},
        )
    except httpx.HTTPError as e:
        logger.error(f"❌ Nominatim request failed for {address!r}: {e}")
        raise RouteResolutionError("Address lookup service unavailable") from e

    if resp.status_code >= 400:
        logger.warning(f"Nominatim API error {resp.status_code}: {resp.text[:200]}")
        raise RouteResolutionError("Address lookup service temporarily unavailable")

    results = resp.json()
    if not results:
        raise RouteResolutionError("Could not find location for one or both addresses")

    lat, lon = float(results[0]["lat"]), float(results[0]["lon"])
    cache.set(cache_key, [lat, lon], GEOCODE_CACHE_SECONDS)
    return lat, lon


async def route_duration_seconds(
    client: httpx.AsyncClient, origin: Tuple[float, float], destination: Tuple[float, float]
) -> float:
    """Driving duration of the fastest OSRM route"""
    # OSRM takes lon,lat pairs
    coordinates = f"{origin[1]},{origin[0]};{destination[1]},{destination[0]}"

    try:
        resp = await client.get(
            f"{OSRM_BASE_URL}/route/v1/driving/{coordinates}",
            params={"overview": "false"},
        )
    except httpx.HTTPError as e:
        logger.error(f"❌ OSRM request failed: {e}")
        raise RouteResolutionError("Routing service unavailable") from e

    if resp.status_code >= 400:
        logger.warning(f"OSRM API error {resp.status_code}: {resp.text[:200]}")
        raise RouteResolutionError("No route found")

    data = resp.json()
    routes = data.get("routes") or []
    if data.get("code") != "Ok" or not routes:
        raise RouteResolutionError("No route found")

    return float(routes[0]["duration"])


async def fetch_drive_time_minutes(
    origin_address: str,
    destination_address: str,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    Estimated drive time in whole minutes from origin to destination.

    Raises InvalidAddressError if either address is empty and
    RouteResolutionError if either end cannot be geocoded or routed.
    The result is floored and never below 1.
    """
    origin = (origin_address or "").strip()
    destination = (destination_address or "").strip()
    if not origin or not destination:
        raise InvalidAddressError("Need both addresses")

    if client is None:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as owned_client:
            return await _resolve(owned_client, origin, destination)
    return await _resolve(client, origin, destination)


async def _resolve(client: httpx.AsyncClient, origin: str, destination: str) -> int:
    origin_point = await geocode_address(client, origin)
    destination_point = await geocode_address(client, destination)
    seconds = await route_duration_seconds(client, origin_point, destination_point)

    minutes = max(1, int(seconds // 60))
    logger.info(f"✅ Drive time resolved: {minutes} min")
    return minutes


async def fetch_drive_time_from_home(
    home_address: str,
    destination_address: str,
    resolver: Optional[Resolver] = None,
) -> int:
    """Drive time from the stored home address; fails if home is not set"""
    if not (home_address or "").strip():
        raise InvalidAddressError("Set your home address first")
    resolver = resolver or fetch_drive_time_minutes
    return await resolver(home_address, destination_address)


class DriveTimeLookup:
    """
    Debounced lookup for one input field.

    Every call to lookup() starts a new generation. A call whose generation is
    no longer the latest when the debounce ends or when the resolver returns
    gives back None and its result (or error) is dropped.
    """

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        debounce_seconds: float = DRIVE_TIME_DEBOUNCE_SECONDS,
    ):
        self.resolver = resolver
        self.debounce_seconds = debounce_seconds
        self.generation = 0
        self.pending = 0

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    @property
    def is_idle(self) -> bool:
        return self.pending == 0

    async def lookup(self, origin_address: str, destination_address: str) -> Optional[int]:
        self.generation += 1
        generation = self.generation
        self.pending += 1
        try:
            return await self._lookup(generation, origin_address, destination_address)
        finally:
            self.pending -= 1

    async def _lookup(self, generation: int, origin_address: str, destination_address: str) -> Optional[int]:
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
            if not self.is_current(generation):
                logger.debug(f"Drive time lookup {generation} superseded during debounce")
                return None

        resolver = self.resolver or fetch_drive_time_minutes
        try:
            minutes = await resolver(origin_address, destination_address)
        except DriveTimeError as e:
            if not self.is_current(generation):
                logger.debug(f"Dropping error from superseded lookup {generation}: {e}")
                return None
            raise

        if not self.is_current(generation):
            logger.debug(f"Dropping result from superseded lookup {generation}")
            return None
        return minutes


# Form fields typed into by the client, and job refreshes; kept apart so a
# client-chosen field key can never collide with a job's lookup
FIELD_NAMESPACE = "field"
JOB_NAMESPACE = "job"

# Only lookups with a call in flight are kept
_lookups: Dict[Tuple[str, str], DriveTimeLookup] = {}


def get_lookup(
    namespace: str,
    key: str,
    debounce_seconds: Optional[float] = None,
    resolver: Optional[Resolver] = None,
) -> DriveTimeLookup:
    lookup = _lookups.get((namespace, key))
    if lookup is None:
        if debounce_seconds is None:
            debounce_seconds = DRIVE_TIME_DEBOUNCE_SECONDS
        lookup = DriveTimeLookup(resolver=resolver, debounce_seconds=debounce_seconds)
        _lookups[(namespace, key)] = lookup
    return lookup


def active_lookup_count() -> int:
    return len(_lookups)


async def lookup_drive_time(
    namespace: str,
    key: str,
    origin_address: str,
    destination_address: str,
    debounce_seconds: Optional[float] = None,
    resolver: Optional[Resolver] = None,
) -> Optional[int]:
    """
    Run a lookup through the shared (namespace, key) slot.

    Returns None when a newer call on the same slot overtook this one. The
    slot is released once no call on it is in flight.
    """
    lookup = get_lookup(namespace, key, debounce_seconds, resolver)
    try:
        return await lookup.lookup(origin_address, destination_address)
    finally:
        if lookup.is_idle and _lookups.get((namespace, key)) is lookup:
            del _lookups[(namespace, key)]
