"""
Route planner package initialization.

This package orders a short list of destinations into an approximately
shortest visiting sequence starting from the user's position or a
chosen start, and keeps that order current as destinations or the
start change.

Modules:
    routing       – GeoPoint, haversine distance and directions links.
    optimisation  – Nearest neighbour and 2‑opt route heuristics.
    destinations  – Destination set with capacity and origin state.
    geocode       – Place lookup, suggestions and reverse lookup via Nominatim.
    storage       – JSON persistence of destinations and manual start.
    planner       – Planning session recomputing the route on every change.
    visualisation – Folium based map creation utilities.
    config        – Settings with Streamlit secrets overrides.

Distances are straight‑line great‑circle distances, not road distances,
and the order found is a good heuristic answer rather than a proven
optimum.
"""

__all__ = [
    "config",
    "destinations",
    "geocode",
    "optimisation",
    "planner",
    "routing",
    "storage",
    "visualisation",
]
