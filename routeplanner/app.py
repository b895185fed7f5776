"""
Streamlit application for the route planner.

This script defines the user interface around ``RoutePlanner``: adding
destinations by name, from place suggestions or by clicking the map,
setting a manual start or a live position, reordering and deleting
stops, and showing the optimised visiting order on an interactive map
together with the nearest destination.

To run this app locally, install the package and execute:

    streamlit run routeplanner/app.py

Settings can be overridden in ``.streamlit/secrets.toml`` (see
``routeplanner.config``).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import streamlit as st
from pydantic import ValidationError
from streamlit_folium import st_folium

from routeplanner import geocode
from routeplanner.config import Settings
from routeplanner.destinations import DestinationLimitError
from routeplanner.geocode import GeocodingError, Place, suggest_places
from routeplanner.planner import RoutePlanner
from routeplanner.routing import GeoPoint
from routeplanner.storage import DestinationStore
from routeplanner.visualisation import create_route_map

logger = logging.getLogger(__name__)

PICK_NOTHING = "Nothing"
PICK_DESTINATION = "Add destination"
PICK_START = "Set start"


def load_settings() -> Settings:
    """Read overrides from Streamlit secrets, falling back to defaults."""
    try:
        values = dict(st.secrets)
    except Exception as exc:  # no secrets.toml configured
        logger.info("No Streamlit secrets available (%s); using defaults", exc)
        values = {}
    try:
        return Settings.from_mapping(values)
    except ValidationError as exc:
        logger.warning("Invalid settings in secrets: %s", exc)
        st.warning("Some settings in secrets.toml are invalid; using defaults.")
        return Settings()


def get_planner(settings: Settings) -> RoutePlanner:
    """Return this session's planner, restoring saved state on first use."""
    if "planner" not in st.session_state:
        geocode.configure(settings.geocoder_user_agent)
        planner = RoutePlanner(settings=settings, store=DestinationStore(settings.store_path))
        planner.restore()
        st.session_state["planner"] = planner
    return st.session_state["planner"]


@st.cache_data(ttl=600, show_spinner=False)
def cached_suggestions(
    query: str, limit: int, viewbox: Optional[Tuple[Tuple[float, float], Tuple[float, float]]]
) -> List[Tuple[str, float, float]]:
    box = None
    if viewbox is not None:
        box = (GeoPoint(*viewbox[0]), GeoPoint(*viewbox[1]))
    return [(p.name, p.point.lat, p.point.lon) for p in suggest_places(query, limit=limit, viewbox=box)]


def visible_viewbox() -> Optional[Tuple[Tuple[float, float], Tuple[float, float]]]:
    """Bounds of the last rendered map when zoomed in far enough to be useful."""
    view = st.session_state.get("map_view") or {}
    bounds = view.get("bounds") or {}
    zoom = view.get("zoom") or 0
    south_west = bounds.get("_southWest")
    north_east = bounds.get("_northEast")
    if zoom < 9 or not south_west or not north_east:
        return None
    return (north_east["lat"], south_west["lng"]), (south_west["lat"], north_east["lng"])


def run_action(action, *args) -> bool:
    """Run a planner mutation, reporting failures as messages."""
    try:
        action(*args)
    except DestinationLimitError as exc:
        st.warning(str(exc))
        return False
    except (GeocodingError, ValueError) as exc:
        st.error(str(exc) or "Lookup failed")
        return False
    return True


def live_fix_from_inputs(planner: RoutePlanner) -> Optional[Tuple[GeoPoint, float]]:
    """Coordinates typed for the live position, or ``None`` until both are filled.

    The inputs start from the manual start when one is set and are blank
    otherwise, so ticking the box never moves the origin on its own.
    """
    manual = planner.origins.manual
    lat = st.sidebar.number_input(
        "Latitude",
        min_value=-90.0,
        max_value=90.0,
        value=manual.lat if manual is not None else None,
        format="%.6f",
        key="live_lat",
    )
    lon = st.sidebar.number_input(
        "Longitude",
        min_value=-180.0,
        max_value=180.0,
        value=manual.lon if manual is not None else None,
        format="%.6f",
        key="live_lon",
    )
    accuracy = st.sidebar.number_input("Accuracy (m)", min_value=0.0, value=20.0, key="live_accuracy")
    if lat is None or lon is None:
        return None
    return GeoPoint(lat, lon), accuracy


def render_start_controls(planner: RoutePlanner) -> None:
    st.sidebar.subheader("Start")
    start_text = st.sidebar.text_input("Start location", key="start_text")
    col_set, col_clear = st.sidebar.columns(2)
    if col_set.button("Set start"):
        if run_action(planner.set_start_from_text, start_text):
            st.rerun()
    if col_clear.button("Clear start"):
        planner.clear_start()
        st.rerun()
    if planner.origins.manual is not None:
        st.sidebar.caption(f"Manual start: {planner.origins.manual.name}")

    st.sidebar.subheader("Live position")
    use_live = st.sidebar.checkbox("Use my current position", key="use_live")
    if use_live:
        fix = live_fix_from_inputs(planner)
        live = planner.origins.live
        if fix is None:
            if live is not None:
                planner.clear_live_position()
        elif live is None or live.point != fix[0] or live.accuracy_m != fix[1]:
            planner.update_live_position(*fix)
    elif planner.origins.live is not None:
        planner.clear_live_position()

    st.sidebar.subheader("Map click")
    st.sidebar.radio("Clicking the map will", [PICK_NOTHING, PICK_DESTINATION, PICK_START], key="pick_mode")


def render_add_controls(planner: RoutePlanner) -> None:
    st.subheader("Destinations")
    query = st.text_input("Place name", key="site_query")
    col_add, col_suggest = st.columns([1, 3])
    if col_add.button("Add", disabled=planner.destinations.is_full):
        if run_action(planner.add_place, query):
            st.rerun()
    if query.strip():
        try:
            suggestions = cached_suggestions(query.strip(), planner.settings.suggestion_limit, visible_viewbox())
        except GeocodingError:
            suggestions = []
        if suggestions:
            labels = [name for name, _, _ in suggestions]
            choice = col_suggest.selectbox("Suggestions", range(len(labels)), format_func=lambda i: labels[i])
            if col_suggest.button("Add suggestion", disabled=planner.destinations.is_full):
                name, lat, lon = suggestions[choice]
                if run_action(planner.add_suggestion, Place(name, GeoPoint(lat, lon))):
                    st.rerun()
    if planner.destinations.is_full:
        st.info(f"Maximum {planner.destinations.max_size} sites allowed.")


def render_destination_list(planner: RoutePlanner) -> None:
    for destination in planner.destinations.items():
        col_name, col_up, col_down, col_del = st.columns([6, 1, 1, 2])
        col_name.write(destination.name)
        if col_up.button("↑", key=f"up_{destination.id}"):
            planner.move(destination.id, -1)
            st.rerun()
        if col_down.button("↓", key=f"down_{destination.id}"):
            planner.move(destination.id, +1)
            st.rerun()
        if col_del.button("Delete", key=f"del_{destination.id}"):
            planner.remove(destination.id)
            st.rerun()


def render_summary(planner: RoutePlanner) -> None:
    name, distance = planner.nearest_text()
    col_nearest, col_distance = st.columns(2)
    col_nearest.metric("Nearest site", name)
    col_distance.metric("Distance", distance)
    st.markdown(f"**Route:** {planner.route_text()}")
    if planner.route:
        st.caption(f"Straight-line route length: {planner.route_length_km():.2f} km")
        st.link_button("Open in Google Maps", planner.directions_url())


def handle_map_click(planner: RoutePlanner, map_state: Optional[dict]) -> None:
    if not map_state:
        return
    st.session_state["map_view"] = {"bounds": map_state.get("bounds"), "zoom": map_state.get("zoom")}
    clicked = map_state.get("last_clicked")
    mode = st.session_state.get("pick_mode", PICK_NOTHING)
    if not clicked or mode == PICK_NOTHING or clicked == st.session_state.get("handled_click"):
        return
    st.session_state["handled_click"] = clicked
    point = GeoPoint(clicked["lat"], clicked["lng"])
    if mode == PICK_START:
        ok = run_action(planner.set_start_from_point, point)
    else:
        ok = run_action(planner.add_point, point)
    if ok:
        st.rerun()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="Route Planner", layout="wide")
    st.title("Route Planner")
    settings = load_settings()
    planner = get_planner(settings)

    render_start_controls(planner)
    col_list, col_map = st.columns([2, 3])
    with col_list:
        render_add_controls(planner)
        render_destination_list(planner)
        render_summary(planner)
    with col_map:
        nearest_id = planner.nearest.destination.id if planner.nearest else None
        fol_map = create_route_map(
            planner.route,
            planner.origin,
            nearest_id,
            default_center=settings.default_center,
            default_zoom=settings.default_zoom,
        )
        map_state = st_folium(fol_map, width=700, height=500, key="route_map")
    handle_map_click(planner, map_state)


if __name__ == "__main__":
    main()
