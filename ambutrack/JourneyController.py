from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Any, Callable, Dict, Optional

from ambutrack.JourneyConfig import JourneyConfig
from ambutrack.StepAnimator import StepAnimator
from ambutrack.TrackingSession import LEG_TO_HOSPITAL, TrackingSession
from ambutrack.eta import Projection, project
from ambutrack.osrm_client import RouteFetcher
from ambutrack.periodic import PeriodicTask
from ambutrack.tracking_feed import TrackingFeed

logger = logging.getLogger(__name__)


class Phase(Enum):
    EN_ROUTE_TO_PATIENT = auto()
    AWAITING_PICKUP = auto()
    EN_ROUTE_TO_HOSPITAL = auto()
    COMPLETE = auto()


class JourneyController:
    """
    Runs the pickup leg (start -> patient), waits for an explicit pickup
    confirmation, then runs the dropoff leg (patient -> hospital).

    A confirmation that arrives while the pickup leg is still moving is held
    and applied as soon as the ambulance reaches the patient.
    The controller never navigates; callers react to the callbacks or to the
    pending_confirmation / completed events.
    """

    def __init__(self,
                 config: JourneyConfig,
                 fetcher: RouteFetcher,
                 on_progress: Optional[Callable[[float], None]] = None,
                 on_pending_confirmation: Optional[Callable[[], None]] = None,
                 on_journey_complete: Optional[Callable[[], None]] = None,
                 feed: Optional[TrackingFeed] = None,
                 clock_factory=PeriodicTask):
        self.config = config
        self.on_progress = on_progress
        self.on_pending_confirmation = on_pending_confirmation
        self.on_journey_complete = on_journey_complete
        self.feed = feed

        self.session = TrackingSession()
        self.phase = Phase.EN_ROUTE_TO_PATIENT
        self.pending_confirmation = asyncio.Event()
        self.completed = asyncio.Event()
        self._confirmation_queued = False

        self.animator = StepAnimator(
            fetcher=fetcher,
            session=self.session,
            on_progress=self._handle_progress,
            on_destination_reached=self._handle_destination_reached,
            tick_period_s=config.tick_period_s,
            clock_factory=clock_factory,
        )

    def start(self) -> asyncio.Task:
        logger.info("pickup leg %s -> %s", self.config.start, self.config.patient)
        return self.animator.retarget(self.config.start, self.config.patient)

    def confirm_pickup(self) -> Optional[asyncio.Task]:
        if self.phase is Phase.AWAITING_PICKUP:
            return self._begin_hospital_leg()

        if self.phase is Phase.EN_ROUTE_TO_PATIENT:
            logger.info("pickup confirmed before arrival, holding until patient is reached")
            self._confirmation_queued = True
            return None

        logger.warning("ignoring pickup confirmation in phase %s", self.phase.name)
        return None

    def close(self) -> None:
        self.animator.stop()

    def _begin_hospital_leg(self) -> asyncio.Task:
        self._confirmation_queued = False
        self.pending_confirmation.clear()
        self.session.pickup_confirmed = True
        self.session.leg = LEG_TO_HOSPITAL
        self.phase = Phase.EN_ROUTE_TO_HOSPITAL
        logger.info("patient on board, dropoff leg %s -> %s", self.config.patient, self.config.hospital)
        task = self.animator.retarget(self.config.patient, self.config.hospital)
        self._publish()
        return task

    def _handle_progress(self, progress: float) -> None:
        if self.on_progress is not None:
            self.on_progress(progress)
        self._publish()

    def _handle_destination_reached(self) -> None:
        if not self.session.pickup_confirmed:
            if self._confirmation_queued:
                self._begin_hospital_leg()
                return
            self.phase = Phase.AWAITING_PICKUP
            self.pending_confirmation.set()
            logger.info("arrived at patient, awaiting pickup confirmation")
            self._publish()
            if self.on_pending_confirmation is not None:
                self.on_pending_confirmation()
            return

        if self.phase is Phase.COMPLETE:
            return
        self.phase = Phase.COMPLETE
        self.completed.set()
        logger.info("reached hospital, journey complete")
        self._publish()
        if self.on_journey_complete is not None:
            self.on_journey_complete()

    def projection(self) -> Projection:
        return project(self.session.progress, self.session.total_distance_m, self.session.total_duration_s)

    def snapshot(self) -> Dict[str, Any]:
        pos = self.animator.position
        proj = self.projection()
        return {
            "phase": self.phase.name,
            "leg": self.session.leg,
            "position": {"lat": pos[0], "lon": pos[1]} if pos is not None else None,
            "position_index": self.session.position_index,
            "progress": self.session.progress,
            "pickup_confirmed": self.session.pickup_confirmed,
            "remaining": {
                "distance_m": proj.remaining_distance_m,
                "duration_s": proj.remaining_duration_s,
            },
        }

    def _publish(self) -> None:
        if self.feed is not None:
            self.feed.publish(self.snapshot())
