from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class Route:
    """
    One leg's travel path as returned by the routing provider.
    geometry_latlon: polyline points, (lat, lon), start to dest
    dist: total distance in meters
    duration: total travel time in seconds
    """
    start: LatLon
    dest: LatLon
    dist: float = 0.0
    duration: float = 0.0
    geometry_latlon: List[LatLon] = field(default_factory=list)
    profile: str = "driving"

    @classmethod
    def empty(cls, start: LatLon, dest: LatLon, profile: str = "driving") -> Route:
        return cls(start=start, dest=dest, profile=profile)

    @property
    def is_empty(self) -> bool:
        return not self.geometry_latlon

    @property
    def last_index(self) -> int:
        if not self.geometry_latlon:
            raise ValueError("geometry_latlon is empty")
        return len(self.geometry_latlon) - 1

    def point_at(self, index: int) -> LatLon:
        if not self.geometry_latlon:
            raise ValueError("geometry_latlon is empty")
        index = min(max(index, 0), self.last_index)
        return self.geometry_latlon[index]

    def progress_at(self, index: int) -> float:
        last = self.last_index
        # a one-point route is already at its destination
        if last == 0:
            return 1.0
        index = min(max(index, 0), last)
        return index / last
