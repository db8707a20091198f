from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from ambutrack.handoff_store import SELECTED_AMBULANCE, SELECTED_HOSPITAL, USER_DETAILS, HandoffStore
from ambutrack.hospital_search import Hospital

logger = logging.getLogger(__name__)

ASSIGN_WAIT_S = 30


@dataclass(frozen=True)
class AmbulanceType:
    id: int
    type: str
    price: str
    service: str


@dataclass(frozen=True)
class Driver:
    name: str
    phone: str
    service: str


AMBULANCE_TYPES: List[AmbulanceType] = [
    AmbulanceType(1, "BLS", "₹500 - ₹700", "City Ambulance"),
    AmbulanceType(4, "BLS - with EMT", "₹1500 - ₹1700", "City Ambulance"),
    AmbulanceType(2, "ALS - with EMT", "₹2000 - ₹2500", "LifeCare EMS"),
    AmbulanceType(3, "ALS - without EMT", "₹1000 - ₹1500", "MediFast"),
]

MOCK_DRIVER = Driver(name="John Doe", phone="+91 9876543210", service="LifeCare EMS")


def save_booking(store: HandoffStore, name: str, phone: str, hospital: Optional[Hospital]) -> None:
    if not name.strip() or not phone.strip():
        raise ValueError("Please enter your name and phone number first.")
    if hospital is None:
        raise ValueError("Please select a hospital first.")

    store.set(USER_DETAILS, {"name": name.strip(), "phone": phone.strip()})
    store.set(SELECTED_HOSPITAL, hospital.to_dict())
    logger.info("booking saved for %s -> %s", name.strip(), hospital.name)


def selected_hospital(store: HandoffStore) -> Hospital:
    return Hospital.from_dict(store.require(SELECTED_HOSPITAL, redirect_to="book"))


def available_ambulances(store: HandoffStore) -> List[AmbulanceType]:
    selected_hospital(store)
    return list(AMBULANCE_TYPES)


def ambulance_by_id(ambulance_id: int) -> AmbulanceType:
    for a in AMBULANCE_TYPES:
        if a.id == ambulance_id:
            return a
    raise ValueError(f"Unknown ambulance type: {ambulance_id}")


def select_ambulance(store: HandoffStore, ambulance_id: int) -> AmbulanceType:
    selected_hospital(store)
    ambulance = ambulance_by_id(ambulance_id)
    store.set(SELECTED_AMBULANCE, ambulance.id)
    logger.info("ambulance selected: %s (%s)", ambulance.type, ambulance.service)
    return ambulance


def selected_ambulance(store: HandoffStore) -> AmbulanceType:
    return ambulance_by_id(store.require(SELECTED_AMBULANCE, redirect_to="select"))


async def assign_driver(ambulance: Optional[AmbulanceType] = None,
                        wait_s: int = ASSIGN_WAIT_S,
                        tick_s: float = 1.0,
                        on_tick: Optional[Callable[[int], None]] = None) -> Driver:
    """Simulated dispatch: count down wait_s ticks, then hand back the on-call driver for the chosen service."""
    for remaining in range(wait_s, 0, -1):
        if on_tick is not None:
            on_tick(remaining)
        await asyncio.sleep(tick_s)
    if ambulance is None:
        return MOCK_DRIVER
    return replace(MOCK_DRIVER, service=ambulance.service)
