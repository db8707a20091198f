from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from ambutrack.RouteBase import LatLon
from ambutrack.hospital_search import OVERPASS_URL
from ambutrack.osrm_client import OSRM_PUBLIC as OSRM_URL

# demo coordinates (Warangal): ambulance base, patient, hospital
DEFAULT_START: LatLon = (17.9749, 79.6036)
DEFAULT_PATIENT: LatLon = (17.9817, 79.5332)
DEFAULT_HOSPITAL: LatLon = (17.9522, 79.5955)


def _env_latlon(name: str, default: LatLon) -> LatLon:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        lat, lon = (float(v) for v in raw.split(","))
    except ValueError:
        raise ValueError(f"{name} must be 'lat,lon', got {raw!r}") from None
    return lat, lon


def _env_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class JourneyConfig:
    """
    Everything one tracking session needs, passed in explicitly.
    start -> patient is the pickup leg, patient -> hospital the dropoff leg.
    """
    start: LatLon = DEFAULT_START
    patient: LatLon = DEFAULT_PATIENT
    hospital: LatLon = DEFAULT_HOSPITAL
    hospital_name: Optional[str] = None

    tick_period_s: float = 0.2
    profile: str = "driving"
    geometries: str = "geojson"
    osrm_base_url: str = OSRM_URL
    overpass_url: str = OVERPASS_URL
    request_timeout_s: float = 10.0
    handoff_path: str = ".ambutrack/handoff.json"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> JourneyConfig:
        # Example in .env:
        # AMBUTRACK_OSRM_URL=http://localhost:5000
        # AMBUTRACK_PATIENT=17.9817,79.5332
        load_dotenv(env_file)
        return cls(
            start=_env_latlon("AMBUTRACK_START", DEFAULT_START),
            patient=_env_latlon("AMBUTRACK_PATIENT", DEFAULT_PATIENT),
            hospital=_env_latlon("AMBUTRACK_HOSPITAL", DEFAULT_HOSPITAL),
            tick_period_s=_env_number("AMBUTRACK_TICK_MS", "200", int) / 1000.0,
            profile=os.getenv("AMBUTRACK_PROFILE", "driving"),
            geometries=os.getenv("AMBUTRACK_GEOMETRIES", "geojson"),
            osrm_base_url=os.getenv("AMBUTRACK_OSRM_URL", OSRM_URL),
            overpass_url=os.getenv("AMBUTRACK_OVERPASS_URL", OVERPASS_URL),
            request_timeout_s=_env_number("AMBUTRACK_TIMEOUT_S", "10"),
            handoff_path=os.getenv("AMBUTRACK_HANDOFF_PATH", ".ambutrack/handoff.json"),
        )

    def with_hospital(self, hospital) -> JourneyConfig:
        return replace(self, hospital=(hospital.lat, hospital.lng), hospital_name=hospital.name)
