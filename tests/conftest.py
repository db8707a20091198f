import pytest

from ambutrack.JourneyConfig import JourneyConfig
from ambutrack.RouteBase import Route
from ambutrack.osrm_client import ProviderUnavailable

START = (17.9749, 79.6036)
PATIENT = (17.9817, 79.5332)
HOSPITAL = (17.9522, 79.5955)


class ManualClock:
    def __init__(self, period_s, callback):
        self.period_s = period_s
        self.callback = callback
        self.running = False
        self.started = 0

    def start(self):
        self.running = True
        self.started += 1

    def stop(self):
        self.running = False

    def fire(self, n=1):
        for _ in range(n):
            if not self.running:
                return
            self.callback()


class ManualClockFactory:
    def __init__(self):
        self.clocks = []

    def __call__(self, period_s, callback):
        clock = ManualClock(period_s, callback)
        self.clocks.append(clock)
        return clock

    @property
    def active(self):
        return [c for c in self.clocks if c.running]


class StubProvider:
    """Routing provider answering from a dict keyed by (start, dest)."""

    profile = "driving"

    def __init__(self, routes=None, fail=False):
        self.routes = routes or {}
        self.fail = fail
        self.calls = []
        self.gates = {}

    async def compute_route(self, start, dest):
        self.calls.append((start, dest))
        gate = self.gates.get((start, dest))
        if gate is not None:
            await gate.wait()
        if self.fail:
            raise ProviderUnavailable("stub down")
        geometry = self.routes.get((start, dest), [])
        return Route(start=start, dest=dest, dist=1000.0, duration=120.0, geometry_latlon=geometry)


def line(a, b, n):
    """n evenly spaced points from a to b."""
    if n == 1:
        return [a]
    return [
        (a[0] + (b[0] - a[0]) * i / (n - 1), a[1] + (b[1] - a[1]) * i / (n - 1))
        for i in range(n)
    ]


@pytest.fixture
def clock_factory():
    return ManualClockFactory()


@pytest.fixture
def provider():
    return StubProvider(routes={
        (START, PATIENT): line(START, PATIENT, 5),
        (PATIENT, HOSPITAL): line(PATIENT, HOSPITAL, 3),
    })


@pytest.fixture
def journey_config():
    return JourneyConfig(start=START, patient=PATIENT, hospital=HOSPITAL, tick_period_s=0.2)
