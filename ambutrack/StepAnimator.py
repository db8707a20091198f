from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Callable, Optional

from ambutrack.RouteBase import LatLon, Route
from ambutrack.TrackingSession import TrackingSession
from ambutrack.osrm_client import RouteFetcher
from ambutrack.periodic import PeriodicTask

logger = logging.getLogger(__name__)

TICK_PERIOD_S = 0.2


class AnimatorState(Enum):
    IDLE = auto()
    ANIMATING = auto()
    AT_DESTINATION = auto()


class StepAnimator:
    """
    Steps a marker one geometry point per clock tick along the active Route.

    IDLE -> ANIMATING on a non-empty route, ANIMATING -> AT_DESTINATION on the
    last index (clock stopped, on_destination_reached fired once), and any
    state -> IDLE on retarget() or stop().
    """

    def __init__(self,
                 fetcher: RouteFetcher,
                 session: TrackingSession,
                 on_progress: Optional[Callable[[float], None]] = None,
                 on_destination_reached: Optional[Callable[[], None]] = None,
                 tick_period_s: float = TICK_PERIOD_S,
                 clock_factory=PeriodicTask):
        self.fetcher = fetcher
        self.session = session
        self.on_progress = on_progress
        self.on_destination_reached = on_destination_reached
        self.tick_period_s = tick_period_s
        self.clock_factory = clock_factory

        self.state = AnimatorState.IDLE
        self.route: Optional[Route] = None
        self._clock = None
        self.fetch_task: Optional[asyncio.Task] = None

    @property
    def position(self) -> Optional[LatLon]:
        if self.route is None or self.route.is_empty:
            return None
        return self.route.point_at(self.session.position_index)

    def retarget(self, start: LatLon, dest: LatLon) -> asyncio.Task:
        self.stop()
        self.session.reset_leg()
        self.fetch_task = asyncio.get_running_loop().create_task(self._fetch_and_load(start, dest))
        return self.fetch_task

    async def _fetch_and_load(self, start: LatLon, dest: LatLon) -> None:
        route = await self.fetcher.fetch(start, dest)
        if route is None:
            return
        self.load(route)

    def load(self, route: Route) -> None:
        self._stop_clock()
        self.state = AnimatorState.IDLE
        self.route = None
        self.session.reset_leg()

        if route.is_empty:
            logger.warning("no route %s -> %s, staying idle", route.start, route.dest)
            return

        self.route = route
        self.session.total_distance_m = route.dist
        self.session.total_duration_s = route.duration
        self.state = AnimatorState.ANIMATING
        logger.info("animating %d points, %.0f m, %.0f s", len(route.geometry_latlon), route.dist, route.duration)

        self._emit_progress(0.0)
        self._clock = self.clock_factory(self.tick_period_s, self.tick)
        self._clock.start()

    def tick(self) -> None:
        if self.state is not AnimatorState.ANIMATING:
            return

        last = self.route.last_index
        if self.session.position_index < last:
            self.session.position_index += 1
            self._emit_progress(self.route.progress_at(self.session.position_index))

        if self.session.position_index >= last:
            self._arrive()

    def _arrive(self) -> None:
        self._stop_clock()
        self.state = AnimatorState.AT_DESTINATION
        # a one-point route never ticks forward; report it as complete
        if self.session.progress < 1.0:
            self._emit_progress(1.0)
        logger.info("destination reached %s", self.route.dest)
        if self.on_destination_reached is not None:
            self.on_destination_reached()

    def _emit_progress(self, progress: float) -> None:
        self.session.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    def _stop_clock(self) -> None:
        if self._clock is not None:
            self._clock.stop()
            self._clock = None

    def stop(self) -> None:
        """Tear down: drop any pending fetch result and stop the clock."""
        task, self.fetch_task = self.fetch_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._stop_clock()
        self.state = AnimatorState.IDLE
        self.route = None
