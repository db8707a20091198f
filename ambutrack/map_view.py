from typing import List, Optional

import folium

from ambutrack.RouteBase import LatLon, Route
from ambutrack.hospital_search import Hospital


def draw_tracking_map(route: Optional[Route],
                      position_index: int,
                      patient: LatLon,
                      hospital: LatLon,
                      picked_up: bool,
                      filename: str = "tracking.html") -> str:
    center = route.point_at(position_index) if route is not None and not route.is_empty else hospital
    m = folium.Map(location=center, zoom_start=13)

    if not picked_up:
        folium.Marker(patient, tooltip="Patient", icon=folium.Icon(color="blue")).add_to(m)
    folium.Marker(hospital, tooltip="Hospital", icon=folium.Icon(color="red", icon="plus")).add_to(m)

    if route is not None and not route.is_empty:
        pts = route.geometry_latlon
        completed = pts[:position_index + 1]
        pending = pts[position_index:]
        if len(completed) > 1:
            folium.PolyLine(completed, color="#22c55e", weight=4, tooltip="Completed").add_to(m)
        if len(pending) > 1:
            folium.PolyLine(pending, color="#ef4444", weight=4, tooltip="Pending").add_to(m)
        folium.Marker(center, tooltip="Ambulance", icon=folium.Icon(color="green", icon="ambulance", prefix="fa")).add_to(m)
        m.fit_bounds(pts)

    m.save(filename)
    return filename


def draw_hospitals_map(hospitals: List[Hospital],
                       user_location: Optional[LatLon],
                       filename: str = "hospitals.html") -> str:
    if user_location is not None:
        center = user_location
    elif hospitals:
        center = (hospitals[0].lat, hospitals[0].lng)
    else:
        center = (17.385, 78.486)
    m = folium.Map(location=center, zoom_start=13)

    if user_location is not None:
        folium.Marker(user_location, popup="Your Location", icon=folium.Icon(color="blue")).add_to(m)

    for h in hospitals:
        folium.Marker(
            (h.lat, h.lng),
            popup=f"{h.name} ({h.distance_km:.1f} km away)",
            icon=folium.Icon(color="red", icon="plus"),
        ).add_to(m)

    m.save(filename)
    return filename
