from dataclasses import dataclass

LEG_TO_PATIENT = 0
LEG_TO_HOSPITAL = 1


@dataclass
class TrackingSession:
    """
    Mutable state of one tracking view. Only StepAnimator and
    JourneyController write to it, both on the event loop thread.
    """
    leg: int = LEG_TO_PATIENT
    position_index: int = 0
    pickup_confirmed: bool = False
    total_distance_m: float = 0.0
    total_duration_s: float = 0.0
    progress: float = 0.0

    def reset_leg(self) -> None:
        self.position_index = 0
        self.progress = 0.0
        self.total_distance_m = 0.0
        self.total_duration_s = 0.0
