"""
Nearby hospital lookup through the Overpass API.

Search failures are never fatal: the caller gets an empty list and the
error is logged.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

import requests

from ambutrack.geo import haversine_m

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"
SEARCH_RADIUS_M = 50000


@dataclass(frozen=True)
class Hospital:
    id: int
    name: str
    lat: float
    lng: float
    distance_km: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Hospital:
        return cls(
            id=data["id"],
            name=data["name"],
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            distance_km=float(data.get("distance_km", 0.0)),
        )


def overpass_query(lat: float, lng: float, radius_m: int = SEARCH_RADIUS_M) -> str:
    return f"[out:json];node[amenity=hospital](around:{radius_m},{lat},{lng});out;"


def search_hospitals(lat: float,
                     lng: float,
                     radius_m: int = SEARCH_RADIUS_M,
                     overpass_url: str = OVERPASS_URL,
                     timeout: float = 30.0) -> List[Hospital]:
    """
    Hospitals within radius_m of (lat, lng), nearest first.

    Returns:
        List[Hospital]; empty when Overpass is unreachable or answers garbage.
    """
    try:
        r = requests.get(overpass_url, params={"data": overpass_query(lat, lng, radius_m)}, timeout=timeout)
        r.raise_for_status()
        elements = r.json()["elements"]
        hospitals = [
            Hospital(
                id=el["id"],
                name=(el.get("tags") or {}).get("name") or "Unnamed Hospital",
                lat=el["lat"],
                lng=el["lon"],
                distance_km=haversine_m((lat, lng), (el["lat"], el["lon"])) / 1000.0,
            )
            for el in elements
        ]
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.warning("hospital search around %s,%s failed: %s", lat, lng, e)
        return []

    hospitals.sort(key=lambda h: h.distance_km)
    return hospitals


def filter_hospitals(hospitals: List[Hospital], query: str) -> List[Hospital]:
    q = query.strip().lower()
    if not q:
        return list(hospitals)
    return [h for h in hospitals if q in h.name.lower()]
