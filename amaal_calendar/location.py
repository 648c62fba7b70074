"""Location utilities shared across CLI and server components."""
from __future__ import annotations
import logging
from typing import List, NamedTuple, Optional

import requests

from .config import DEFAULT_USER_AGENT
from .errors import GeocodeQueryError, GeocodeUpstreamError

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
MAX_RESULTS = 5


class GeocodeResult(NamedTuple):
    display_name: str
    lat: float
    lon: float

    def to_dict(self):
        return {"displayName": self.display_name, "lat": self.lat, "lon": self.lon}


def geocode(query: Optional[str], *, user_agent: str = DEFAULT_USER_AGENT,
            session: Optional[requests.Session] = None, timeout: float = 8) -> List[GeocodeResult]:
    """Look a place name up on OpenStreetMap Nominatim, at most five candidates.

    Raises :class:`GeocodeQueryError` for a missing or one-character query and
    :class:`GeocodeUpstreamError` when Nominatim fails.
    """
    q = (query or "").strip()
    if len(q) < 2:
        raise GeocodeQueryError("Missing q")

    http = session or requests
    try:
        r = http.get(
            NOMINATIM_URL,
            params={"format": "json", "limit": MAX_RESULTS, "q": q},
            headers={"User-Agent": user_agent, "Accept-Language": "en"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning("geocode %r failed: %s", q, e)
        raise GeocodeUpstreamError("Geocode failed") from e
    if not r.ok:
        logger.warning("geocode %r: upstream status %s", q, r.status_code)
        raise GeocodeUpstreamError("Geocode failed")

    try:
        return [GeocodeResult(x["display_name"], float(x["lat"]), float(x["lon"]))
                for x in r.json()[:MAX_RESULTS]]
    except (ValueError, KeyError, TypeError) as e:
        raise GeocodeUpstreamError("Geocode failed") from e


def autolocate() -> tuple[float, float]:
    """Best-effort IP geolocation returning ``(latitude, longitude)``.

    ipinfo.io is tried first; if it fails for any reason ipapi.co is used and
    its errors are surfaced to the caller.
    """

    try:
        response = requests.get("https://ipinfo.io/json", timeout=4)
        if response.ok and response.json().get("loc"):
            lat_s, lon_s = response.json()["loc"].split(",")
            return float(lat_s), float(lon_s)
    except (requests.RequestException, ValueError) as e:
        logger.info("ipinfo.io lookup failed (%s), trying ipapi.co", e)

    fallback = requests.get("https://ipapi.co/json", timeout=4)
    fallback.raise_for_status()
    data = fallback.json()
    return float(data["latitude"]), float(data["longitude"])
