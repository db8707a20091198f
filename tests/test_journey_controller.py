import asyncio

import pytest
from conftest import HOSPITAL, PATIENT, START, StubProvider, line

from ambutrack.JourneyConfig import JourneyConfig
from ambutrack.JourneyController import JourneyController, Phase
from ambutrack.StepAnimator import AnimatorState
from ambutrack.osrm_client import RouteFetcher
from ambutrack.tracking_feed import TrackingFeed


class Recorder:
    def __init__(self):
        self.progress = []
        self.pending = 0
        self.complete = 0

    def on_progress(self, p):
        self.progress.append(p)

    def on_pending(self):
        self.pending += 1

    def on_complete(self):
        self.complete += 1


def make_controller(config, provider, clock_factory, feed=None):
    rec = Recorder()
    controller = JourneyController(
        config,
        RouteFetcher(provider),
        on_progress=rec.on_progress,
        on_pending_confirmation=rec.on_pending,
        on_journey_complete=rec.on_complete,
        feed=feed,
        clock_factory=clock_factory,
    )
    return controller, rec


def test_arrival_at_patient_waits_for_confirmation(journey_config, provider, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, provider, clock_factory)
        await controller.start()
        clock_factory.clocks[0].fire(10)

        assert controller.phase is Phase.AWAITING_PICKUP
        assert controller.pending_confirmation.is_set()
        assert rec.pending == 1
        assert not controller.session.pickup_confirmed
        assert provider.calls == [(START, PATIENT)]
        assert clock_factory.active == []

        await asyncio.sleep(0)
        assert controller.phase is Phase.AWAITING_PICKUP
        assert provider.calls == [(START, PATIENT)]

    asyncio.run(scenario())


def test_confirm_pickup_starts_hospital_leg(journey_config, provider, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, provider, clock_factory)
        await controller.start()
        old = clock_factory.clocks[0]
        old.fire(4)

        await controller.confirm_pickup()
        assert controller.phase is Phase.EN_ROUTE_TO_HOSPITAL
        assert controller.session.pickup_confirmed
        assert controller.session.leg == 1
        assert controller.session.position_index == 0
        assert controller.session.progress == 0.0
        assert provider.calls[-1] == (PATIENT, HOSPITAL)
        assert not controller.pending_confirmation.is_set()

        seen = len(rec.progress)
        old.fire(5)
        assert len(rec.progress) == seen

        new = clock_factory.clocks[1]
        new.fire(2)
        assert controller.phase is Phase.COMPLETE
        assert controller.completed.is_set()
        assert rec.complete == 1

        new.fire(3)
        controller.animator.tick()
        assert rec.complete == 1
        assert controller.phase is Phase.COMPLETE

    asyncio.run(scenario())


def test_early_confirmation_is_held_until_arrival(journey_config, provider, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, provider, clock_factory)
        await controller.start()
        clock = clock_factory.clocks[0]
        clock.fire(2)

        assert controller.confirm_pickup() is None
        assert controller.phase is Phase.EN_ROUTE_TO_PATIENT
        assert not controller.session.pickup_confirmed
        assert provider.calls == [(START, PATIENT)]

        clock.fire(2)
        assert controller.phase is Phase.EN_ROUTE_TO_HOSPITAL
        assert rec.pending == 0
        await controller.animator.fetch_task
        assert provider.calls[-1] == (PATIENT, HOSPITAL)
        assert controller.animator.state is AnimatorState.ANIMATING

    asyncio.run(scenario())


def test_confirmation_outside_pickup_is_ignored(journey_config, provider, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, provider, clock_factory)
        await controller.start()
        clock_factory.clocks[0].fire(4)
        await controller.confirm_pickup()

        assert controller.confirm_pickup() is None
        assert provider.calls.count((PATIENT, HOSPITAL)) == 1

        clock_factory.clocks[1].fire(2)
        assert controller.confirm_pickup() is None
        assert controller.phase is Phase.COMPLETE
        assert len(provider.calls) == 2

    asyncio.run(scenario())


def test_no_route_leaves_journey_idle(journey_config, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, StubProvider(fail=True), clock_factory)
        await controller.start()
        assert controller.animator.state is AnimatorState.IDLE
        assert controller.phase is Phase.EN_ROUTE_TO_PATIENT
        assert controller.snapshot()["position"] is None
        assert clock_factory.clocks == []

    asyncio.run(scenario())


def test_close_stops_everything(journey_config, provider, clock_factory):
    async def scenario():
        controller, rec = make_controller(journey_config, provider, clock_factory)
        await controller.start()
        clock = clock_factory.clocks[0]
        clock.fire()
        controller.close()

        seen = len(rec.progress)
        clock.fire(5)
        assert len(rec.progress) == seen
        assert clock_factory.active == []

    asyncio.run(scenario())


def test_projection_and_feed_follow_progress(journey_config, provider, clock_factory):
    async def scenario():
        feed = TrackingFeed()
        controller, _ = make_controller(journey_config, provider, clock_factory, feed=feed)
        await controller.start()
        clock_factory.clocks[0].fire(2)

        proj = controller.projection()
        assert proj.remaining_distance_m == pytest.approx(500.0)
        assert proj.remaining_duration_s == 60

        frame = feed.latest()
        assert frame["phase"] == "EN_ROUTE_TO_PATIENT"
        assert frame["position_index"] == 2
        assert frame["progress"] == 0.5
        assert frame["position"]["lat"] == pytest.approx(line(START, PATIENT, 5)[2][0])
        assert frame["remaining"]["duration_s"] == 60

    asyncio.run(scenario())


def test_full_journey_on_real_clock(provider):
    config = JourneyConfig(start=START, patient=PATIENT, hospital=HOSPITAL, tick_period_s=0.005)

    async def scenario():
        done = []
        controller = JourneyController(
            config,
            RouteFetcher(provider),
            on_journey_complete=lambda: done.append(True),
        )
        controller.on_pending_confirmation = controller.confirm_pickup
        await controller.start()
        await asyncio.wait_for(controller.completed.wait(), timeout=5)

        assert done == [True]
        assert controller.session.pickup_confirmed
        assert controller.animator.position == pytest.approx(HOSPITAL)
        controller.close()

    asyncio.run(scenario())


def test_leg_switch_frame_starts_the_new_leg(journey_config, provider, clock_factory):
    async def scenario():
        feed = TrackingFeed(maxsize=4)
        controller, _ = make_controller(journey_config, provider, clock_factory, feed=feed)
        await controller.start()
        clock_factory.clocks[0].fire(4)
        feed.latest()

        task = controller.confirm_pickup()
        frame = feed.latest()
        assert frame["phase"] == "EN_ROUTE_TO_HOSPITAL"
        assert frame["leg"] == 1
        assert frame["position_index"] == 0
        assert frame["position"] is None
        assert frame["progress"] == 0.0
        assert frame["remaining"] == {"distance_m": 0.0, "duration_s": 0}

        await task
        frame = feed.latest()
        assert frame["position_index"] == 0
        assert frame["position"]["lat"] == pytest.approx(PATIENT[0])
        assert frame["remaining"] == {"distance_m": 1000.0, "duration_s": 120}

    asyncio.run(scenario())
