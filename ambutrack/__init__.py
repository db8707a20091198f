from .RouteBase import LatLon, Route
from .JourneyConfig import JourneyConfig
from .JourneyController import JourneyController, Phase
from .StepAnimator import AnimatorState, StepAnimator
from .osrm_client import OSRMClient, ProviderUnavailable, RouteFetcher
from .handoff_store import HandoffStore, MissingPrerequisite

__all__ = [
    "LatLon",
    "Route",
    "JourneyConfig",
    "JourneyController",
    "Phase",
    "AnimatorState",
    "StepAnimator",
    "OSRMClient",
    "ProviderUnavailable",
    "RouteFetcher",
    "HandoffStore",
    "MissingPrerequisite",
]
