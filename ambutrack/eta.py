import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Projection:
    remaining_distance_m: float
    remaining_duration_s: int

    @property
    def remaining_km(self) -> float:
        return self.remaining_distance_m / 1000.0

    @property
    def eta_minutes(self) -> int:
        return math.ceil(self.remaining_duration_s / 60)


def project(progress: float, total_distance_m: float, total_duration_s: float) -> Projection:
    """Remaining distance and time of the active leg at a given progress fraction."""
    p = min(max(progress, 0.0), 1.0)
    left = 1.0 - p
    return Projection(
        remaining_distance_m=left * total_distance_m,
        remaining_duration_s=math.ceil(left * total_duration_s),
    )
