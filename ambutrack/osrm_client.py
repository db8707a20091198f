import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
import polyline

from ambutrack.RouteBase import LatLon, Route

logger = logging.getLogger(__name__)

OSRM_PUBLIC = "https://router.project-osrm.org"
GEOMETRIES = ("geojson", "polyline")


class ProviderUnavailable(Exception):
    """Routing or search provider unreachable, or its answer had no usable route."""
    pass


# -------------------------
# OSRM response parsing
# -------------------------
def parse_route(data: Dict[str, Any],
                start: LatLon,
                dest: LatLon,
                profile: str = "driving",
                geometries: str = "geojson") -> Route:
    if not isinstance(data, dict):
        raise ProviderUnavailable(f"unexpected OSRM payload: {type(data).__name__}")
    if data.get("code") != "Ok":
        raise ProviderUnavailable(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")

    routes = data.get("routes") or []
    if not routes:
        raise ProviderUnavailable("OSRM returned no route")

    route = routes[0]
    try:
        if geometries == "polyline":
            geometry_latlon = [(float(lat), float(lon)) for lat, lon in polyline.decode(route["geometry"])]
        else:
            geometry_latlon = [(float(lat), float(lon)) for lon, lat in route["geometry"]["coordinates"]]
        dist = float(route["distance"])
        duration = float(route["duration"])
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderUnavailable(f"malformed OSRM route: {e!r}") from e

    return Route(
        start=start,
        dest=dest,
        dist=dist,
        duration=duration,
        geometry_latlon=geometry_latlon,
        profile=profile,
    )


class OSRMClient:
    """
    Talks to an OSRM /route endpoint and returns a normalized Route.
    Internal coordinates are (lat, lon); OSRM wants lon,lat.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 profile: str = "driving",
                 timeout: float = 10.0,
                 geometries: str = "geojson"):
        if geometries not in GEOMETRIES:
            raise ValueError(f"Unknown geometries: {geometries}")
        self.base_url = (base_url or OSRM_PUBLIC).rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.geometries = geometries

    def route_url(self, start: LatLon, dest: LatLon) -> str:
        a_lat, a_lon = start
        b_lat, b_lon = dest
        coords = f"{a_lon},{a_lat};{b_lon},{b_lat}"
        return f"{self.base_url}/route/v1/{self.profile}/{coords}"

    async def compute_route(self, start: LatLon, dest: LatLon) -> Route:
        url = self.route_url(start, dest)
        params = {"overview": "full", "geometries": self.geometries}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(url, params=params) as resp:
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderUnavailable(f"OSRM request failed: {e!r}") from e

        return parse_route(data, start, dest, self.profile, self.geometries)


class RouteFetcher:
    """
    Wraps a routing provider for one tracking session.

    fetch() never raises on provider failure; it yields an empty Route.
    Only the most recent call may deliver a result: a call that was
    overtaken by a newer one returns None.
    """

    def __init__(self, provider):
        self.provider = provider
        self._generation = 0

    async def fetch(self, start: LatLon, dest: LatLon) -> Optional[Route]:
        self._generation += 1
        generation = self._generation

        try:
            route = await self.provider.compute_route(start, dest)
        except ProviderUnavailable as e:
            logger.warning("route %s -> %s unavailable: %s", start, dest, e)
            route = Route.empty(start, dest, getattr(self.provider, "profile", "driving"))

        if generation != self._generation:
            logger.debug("discarding stale route %s -> %s", start, dest)
            return None
        return route
