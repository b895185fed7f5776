"""
Map visualisation utilities for the route planner.

This module provides a helper function to build an interactive map
using the Folium library. It renders a marker for the start (with an
accuracy circle for a live fix), numbered markers for each stop in
the optimised order, and draws the route as a polyline. The map can
be embedded in the Streamlit app via ``streamlit_folium``.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import folium

from routeplanner.destinations import Destination, Origin

ROUTE_COLOR = "#4f8cff"
DEFAULT_ACCURACY_M = 20.0


def _number_icon(order: int, highlight: bool) -> folium.DivIcon:
    background = "#e8590c" if highlight else ROUTE_COLOR
    return folium.DivIcon(
        html=(
            f"<div style='font-size: 12px; color: white; background-color: {background}; "
            "border-radius: 50%; width: 24px; height: 24px; text-align: center; "
            f"line-height: 24px;'>{order}</div>"
        )
    )


def create_route_map(
    route: Sequence[Destination],
    origin: Optional[Origin] = None,
    nearest_id: Optional[int] = None,
    default_center: Tuple[float, float] = (28.6139, 77.2090),
    default_zoom: int = 11,
) -> folium.Map:
    """Create a Folium map showing the start, the stops and the route.

    Args:
        route: Destinations in visiting order.
        origin: The authoritative start, if any.
        nearest_id: Id of the destination nearest to the start; its
            marker is highlighted and its popup says "(nearest)".
        default_center: Map centre used when there is nothing to show.
        default_zoom: Zoom used when there is nothing to show.

    Returns:
        A Folium Map object ready for display.
    """
    points = [(d.lat, d.lon) for d in route]
    if origin is not None:
        points.append((origin.lat, origin.lon))
    if not points:
        return folium.Map(location=list(default_center), zoom_start=default_zoom, tiles="OpenStreetMap")

    avg_lat = sum(lat for lat, _ in points) / len(points)
    avg_lon = sum(lon for _, lon in points) / len(points)
    m = folium.Map(location=[avg_lat, avg_lon], zoom_start=default_zoom, tiles="OpenStreetMap")

    if origin is not None:
        folium.Marker(
            location=[origin.lat, origin.lon],
            popup=folium.Popup(origin.name, parse_html=True),
            tooltip=origin.name,
        ).add_to(m)
        if origin.is_live:
            folium.Circle(
                location=[origin.lat, origin.lon],
                radius=origin.accuracy_m or DEFAULT_ACCURACY_M,
                color=ROUTE_COLOR,
            ).add_to(m)

    for order, destination in enumerate(route, start=1):
        is_nearest = destination.id == nearest_id
        label = f"{order}. {destination.name}"
        if is_nearest:
            label += " (nearest)"
        folium.Marker(
            location=[destination.lat, destination.lon],
            popup=folium.Popup(label, parse_html=True),
            icon=_number_icon(order, is_nearest),
        ).add_to(m)

    if len(route) > 1:
        folium.PolyLine([[d.lat, d.lon] for d in route], color=ROUTE_COLOR, weight=4, opacity=0.9).add_to(m)

    if len(points) > 1:
        south = min(lat for lat, _ in points)
        north = max(lat for lat, _ in points)
        west = min(lon for _, lon in points)
        east = max(lon for _, lon in points)
        m.fit_bounds([[south, west], [north, east]], padding=(20, 20))
    return m
