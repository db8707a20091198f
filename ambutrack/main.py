"""Command-line interface for ambutrack.

Run:
    python -m ambutrack search --lat 17.98 --lng 79.53
    python -m ambutrack book --name Asha --phone 9876543210 --lat 17.98 --lng 79.53
    python -m ambutrack select --ambulance-id 2
    python -m ambutrack track --auto-confirm --map tracking.html
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from ambutrack.JourneyConfig import JourneyConfig
from ambutrack.JourneyController import JourneyController
from ambutrack.StepAnimator import AnimatorState
from ambutrack.booking import (
    ASSIGN_WAIT_S,
    assign_driver,
    available_ambulances,
    save_booking,
    select_ambulance,
    selected_ambulance,
    selected_hospital,
)
from ambutrack.eta import Projection
from ambutrack.handoff_store import HandoffStore, MissingPrerequisite
from ambutrack.hospital_search import Hospital, filter_hospitals, search_hospitals
from ambutrack.map_view import draw_hospitals_map, draw_tracking_map
from ambutrack.osrm_client import OSRMClient, RouteFetcher
from ambutrack.tracking_feed import TrackingFeed


def _print_hospitals(hospitals) -> None:
    if not hospitals:
        print("No hospitals found")
        return
    for i, h in enumerate(hospitals):
        print(f"[{i}] {h.name} ({h.distance_km:.1f} km)  id={h.id}")


def _cmd_search(args: argparse.Namespace, config: JourneyConfig) -> int:
    hospitals = search_hospitals(args.lat, args.lng, args.radius, config.overpass_url, config.request_timeout_s)
    if args.query:
        hospitals = filter_hospitals(hospitals, args.query)
    _print_hospitals(hospitals)
    if args.map:
        print(f"map written to {draw_hospitals_map(hospitals, (args.lat, args.lng), args.map)}")
    return 0


def _pick_hospital(hospitals, hospital_id: Optional[int]) -> Optional[Hospital]:
    if not hospitals:
        return None
    if hospital_id is None:
        return hospitals[0]
    for h in hospitals:
        if h.id == hospital_id:
            return h
    return None


def _cmd_book(args: argparse.Namespace, config: JourneyConfig) -> int:
    store = HandoffStore(config.handoff_path)
    hospitals = search_hospitals(args.lat, args.lng, args.radius, config.overpass_url, config.request_timeout_s)
    if args.query:
        hospitals = filter_hospitals(hospitals, args.query)
    hospital = _pick_hospital(hospitals, args.hospital_id)
    try:
        save_booking(store, args.name, args.phone, hospital)
    except ValueError as e:
        print(e)
        return 1
    print(f"Booked for {args.name}: {hospital.name} ({hospital.distance_km:.1f} km)")
    return 0


def _redirect(e: MissingPrerequisite) -> int:
    print(f"Missing {e.key}. Run `ambutrack {e.redirect_to}` first.")
    return 2


def _cmd_ambulances(args: argparse.Namespace, config: JourneyConfig) -> int:
    store = HandoffStore(config.handoff_path)
    try:
        ambulances = available_ambulances(store)
    except MissingPrerequisite as e:
        return _redirect(e)
    for a in ambulances:
        print(f"[{a.id}] {a.type:<20} {a.service:<16} {a.price}")
    return 0


def _cmd_select(args: argparse.Namespace, config: JourneyConfig) -> int:
    store = HandoffStore(config.handoff_path)
    try:
        ambulance = select_ambulance(store, args.ambulance_id)
    except MissingPrerequisite as e:
        return _redirect(e)
    except ValueError as e:
        print(e)
        return 1
    print(f"Selected {ambulance.type} from {ambulance.service} ({ambulance.price})")
    return 0


async def _print_frames(feed: TrackingFeed) -> None:
    while True:
        frame = await feed.next_frame()
        proj = Projection(frame["remaining"]["distance_m"], frame["remaining"]["duration_s"])
        print(f"{frame['phase']:<22} {frame['progress'] * 100:5.1f}%  {proj.remaining_km:.1f} km  ETA {proj.eta_minutes} min")


async def run_tracking(config: JourneyConfig,
                       auto_confirm: bool = False,
                       assign_wait_s: int = ASSIGN_WAIT_S,
                       map_file: Optional[str] = None) -> int:
    store = HandoffStore(config.handoff_path)
    try:
        config = config.with_hospital(selected_hospital(store))
        ambulance = selected_ambulance(store)
    except MissingPrerequisite as e:
        return _redirect(e)

    driver = await assign_driver(
        ambulance,
        assign_wait_s,
        on_tick=lambda s: print(f"Assigning a driver... {s // 60}:{s % 60:02d}"),
    )
    print(f"Assigned driver: {driver.name} ({driver.phone}), {driver.service}")

    osrm = OSRMClient(config.osrm_base_url, config.profile, config.request_timeout_s, config.geometries)
    feed = TrackingFeed()
    controller = JourneyController(config, RouteFetcher(osrm), feed=feed)
    printer = asyncio.create_task(_print_frames(feed))
    loop = asyncio.get_running_loop()

    try:
        await controller.start()
        if controller.animator.state is AnimatorState.IDLE:
            print("No route to the patient is available right now.")
            return 1

        await controller.pending_confirmation.wait()
        print("Arrived at patient location.")
        if not auto_confirm:
            await loop.run_in_executor(None, input, "Press Enter once the patient is on board... ")

        await controller.confirm_pickup()
        if controller.animator.state is AnimatorState.IDLE:
            print("No route to the hospital is available right now.")
            return 1

        await controller.completed.wait()
        print(f"Reached {config.hospital_name or 'hospital'}!")
        if map_file:
            draw_tracking_map(
                controller.animator.route,
                controller.session.position_index,
                config.patient,
                config.hospital,
                controller.session.pickup_confirmed,
                map_file,
            )
            print(f"map written to {map_file}")
        return 0
    finally:
        controller.close()
        printer.cancel()


def _cmd_track(args: argparse.Namespace, config: JourneyConfig) -> int:
    return asyncio.run(run_tracking(config, args.auto_confirm, args.assign_wait, args.map))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ambutrack", description="Ambulance booking and live tracking prototype")
    p.add_argument("--env-file", default=None, help=".env file with AMBUTRACK_* settings")
    p.add_argument("--log-level", default="WARNING")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("search", help="list hospitals near a point")
    s.add_argument("--lat", type=float, required=True)
    s.add_argument("--lng", type=float, required=True)
    s.add_argument("--radius", type=int, default=50000, help="search radius in meters")
    s.add_argument("--query", default="", help="filter by hospital name")
    s.add_argument("--map", default=None, help="write an HTML map to this file")
    s.set_defaults(func=_cmd_search)

    b = sub.add_parser("book", help="save user details and the selected hospital")
    b.add_argument("--name", required=True)
    b.add_argument("--phone", required=True)
    b.add_argument("--lat", type=float, required=True)
    b.add_argument("--lng", type=float, required=True)
    b.add_argument("--radius", type=int, default=50000)
    b.add_argument("--query", default="")
    b.add_argument("--hospital-id", type=int, default=None, help="defaults to the nearest hospital")
    b.set_defaults(func=_cmd_book)

    a = sub.add_parser("ambulances", help="list ambulance types for the booked hospital")
    a.set_defaults(func=_cmd_ambulances)

    c = sub.add_parser("select", help="choose an ambulance type for the booked hospital")
    c.add_argument("--ambulance-id", type=int, required=True, help="id from `ambutrack ambulances`")
    c.set_defaults(func=_cmd_select)

    t = sub.add_parser("track", help="assign a driver and follow the ambulance")
    t.add_argument("--auto-confirm", action="store_true", help="confirm pickup without prompting")
    t.add_argument("--assign-wait", type=int, default=ASSIGN_WAIT_S, help="simulated dispatch wait in seconds")
    t.add_argument("--map", default=None, help="write the final tracking map to this file")
    t.set_defaults(func=_cmd_track)

    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = JourneyConfig.from_env(args.env_file)
    except ValueError as e:
        print(f"Bad configuration: {e}")
        return 2
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
