"""Settings shared by the CLI and the server, with ``AMAAL_*`` environment overrides."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from .daylight import iana_timezone_for
from .models import Coordinates

ROOT = Path(__file__).resolve().parent.parent
DEFAULT_RULES_PATH = ROOT / "data" / "ramadan_standard_amaal.json"
DEFAULT_USER_AGENT = "amaal-calendar/1.0 (+https://nominatim.org/release-docs/latest/api/Search/)"


@dataclass(frozen=True)
class LocationPreset:
    name: str
    timezone: str
    coords: Coordinates


LOCATIONS: Dict[str, LocationPreset] = {
    "qatar":   LocationPreset("Qatar", "Asia/Qatar", Coordinates(25.2854, 51.531)),
    "toronto": LocationPreset("Toronto, Canada", "America/Toronto", Coordinates(43.6532, -79.3832)),
}


def get_location(key: str) -> LocationPreset:
    try:
        return LOCATIONS[key.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown location {key!r}; choose from {', '.join(LOCATIONS)}")


@dataclass(frozen=True)
class Settings:
    rules_path: Path = DEFAULT_RULES_PATH
    location: str = "qatar"
    method: str = "tehran"
    color_policy: str = "rule_kind"
    section_shape: str = "flat"
    log_level: str = "INFO"
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            rules_path=Path(env.get("AMAAL_RULES_PATH") or DEFAULT_RULES_PATH),
            location=env.get("AMAAL_LOCATION", "qatar"),
            method=env.get("AMAAL_METHOD", "tehran"),
            color_policy=env.get("AMAAL_COLOR_POLICY", "rule_kind"),
            section_shape=env.get("AMAAL_SECTION_SHAPE", "flat"),
            log_level=env.get("AMAAL_LOG_LEVEL", "INFO").upper(),
            user_agent=env.get("AMAAL_USER_AGENT") or DEFAULT_USER_AGENT,
        )


def resolve_place(location: Optional[str] = None, lat: Optional[float] = None,
                  lon: Optional[float] = None, tz: Optional[str] = None) -> Tuple[str, Coordinates]:
    """``(timezone, coords)`` from explicit coordinates or a preset name.

    Explicit ``lat``/``lon`` win over the preset; without ``tz`` the timezone
    is looked up from the coordinates.
    """
    if lat is not None or lon is not None:
        if lat is None or lon is None:
            raise ValueError("both lat and lon are required")
        coords = Coordinates(float(lat), float(lon))
        return (tz or iana_timezone_for(coords.lat, coords.lon).zone), coords
    preset = get_location(location or "qatar")
    return (tz or preset.timezone), preset.coords
