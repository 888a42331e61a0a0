"""
Parking map page.

Hosts a MapView in a Streamlit page: the sidebar collects the API key, the
parking locations, the optional user position and destination, and the
viewport width used to pick the desktop or mobile layout.
"""

import json
import os
from typing import Any, List, Optional
import logging

import pandas as pd
import streamlit as st

from .map_config import get_map_config
from .map_view import MapView
from .models import LatLng, coerce_locations

logger = logging.getLogger(__name__)

VIEW_STATE_KEY = "parking_map_view"

SAMPLE_LOCATIONS = [
    {"lat": 48.1374, "lng": 11.5755, "waitingTime": "3", "label": "Marienplatz garage"},
    {"lat": 48.1429, "lng": 11.5580, "waitingTime": "18", "label": "Hauptbahnhof P1"},
    {"lat": 48.1318, "lng": 11.5497, "waitingTime": "42", "label": "Theresienwiese"},
    {"lat": 48.1500, "lng": 11.5811, "waitingTime": None, "label": "Odeonsplatz"},
]


def parse_coordinate_text(text: Optional[str]) -> Optional[LatLng]:
    """Read "lat, lng" text from a form field; None when empty or malformed."""
    if not text or not text.strip():
        return None
    parts = [p.strip() for p in text.replace(';', ',').split(',')]
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return LatLng.parse((lat, lng))


def load_locations_file(name: str, content: bytes) -> List[Any]:
    """
    Parse an uploaded CSV or JSON file into location records.

    Raises ValueError when the file cannot be read or lacks lat/lng columns.
    """
    if name.lower().endswith('.json'):
        records = json.loads(content.decode('utf-8'))
        if not isinstance(records, list):
            raise ValueError("JSON file must contain a list of locations")
        return records

    from io import BytesIO
    df = pd.read_csv(BytesIO(content))
    df.columns = [c.strip() for c in df.columns]
    missing = {'lat', 'lng'} - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.to_dict(orient='records')


def _initial_viewport_width(default: int) -> int:
    value = st.query_params.get("vw")
    try:
        return int(value) if value else default
    except ValueError:
        return default


class ParkingMapPage:
    """Sidebar controls and session handling around a MapView."""

    def __init__(self):
        self.config = get_map_config()

    def render(self) -> None:
        st.title("🅿️ Parking Map")
        st.caption("Parking spots coloured by current waiting time. Click a marker for details.")

        inputs = self._render_sidebar()
        view = self._get_view(inputs['api_key'])

        view.update_inputs(
            inputs['locations'],
            center=inputs['center'],
            zoom=inputs['zoom'],
            user_location=inputs['user_location'],
            destination=inputs['destination']
        )
        view.layout_observer.update(inputs['viewport_width'])
        view.render()

    def _get_view(self, api_key: Optional[str]) -> MapView:
        """Reuse the session's MapView; replace it when the API key changes."""
        view = st.session_state.get(VIEW_STATE_KEY)
        if view is not None and view.api_key != api_key:
            view.teardown()
            view = None

        if view is None:
            view = MapView(api_key, config=self.config)
            st.session_state[VIEW_STATE_KEY] = view
            logger.info("Created parking map view")
        return view

    def reset_settings(self) -> None:
        """Write the default settings back to disk and rebuild the view with them."""
        self.config.reset_to_defaults()
        self.config.save_config()
        view = st.session_state.pop(VIEW_STATE_KEY, None)
        if view is not None:
            view.teardown()

    def _render_sidebar(self) -> dict:
        service = self.config.get_service_settings()
        layout = self.config.get_layout_settings()

        with st.sidebar:
            st.markdown("### Map Service")
            api_key = st.text_input(
                "Google Maps API key",
                value=os.environ.get(service.get('api_key_env', 'GOOGLE_MAPS_API_KEY'), ''),
                type="password"
            ).strip() or None

            st.markdown("### Parking Locations")
            uploaded = st.file_uploader("Upload locations (.csv or .json)", type=['csv', 'json'],
                                        key="parking_locations_uploader")
            locations = self._load_locations(uploaded)
            st.caption(f"{len(coerce_locations(locations))} location(s) loaded")

            st.markdown("### Route")
            user_location = parse_coordinate_text(st.text_input("Your location (lat, lng)", value=""))
            destination = parse_coordinate_text(st.text_input("Destination (lat, lng)", value=""))

            with st.expander("View options", expanded=False):
                center = parse_coordinate_text(st.text_input("Center override (lat, lng)", value=""))
                zoom = st.number_input("Zoom override (0 = automatic)", min_value=0, max_value=20, value=0)
                viewport_width = st.number_input(
                    "Viewport width (px)", min_value=200, max_value=4000,
                    value=_initial_viewport_width(layout.get('default_viewport_width', 1280)),
                    help=f"Widths up to {layout.get('mobile_breakpoint_px', 768)}px use the mobile layout"
                )

            with st.expander("Settings", expanded=False):
                st.caption(f"Settings file: {self.config.config_path}")
                if st.button("Write settings file", key="parking_save_settings"):
                    self.config.save_config()
                    st.success("✅ Settings written")
                if st.button("Reset settings", key="parking_reset_settings"):
                    self.reset_settings()
                    st.success("✅ Settings reset to defaults")

        return {
            'api_key': api_key,
            'locations': locations,
            'user_location': user_location,
            'destination': destination,
            'center': center,
            'zoom': zoom or None,
            'viewport_width': viewport_width
        }

    def _load_locations(self, uploaded) -> List[Any]:
        if uploaded is None:
            return SAMPLE_LOCATIONS
        try:
            return load_locations_file(uploaded.name, uploaded.getvalue())
        except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
            logger.warning(f"Could not load locations from {uploaded.name}: {e}")
            st.error(f"❌ Could not read {uploaded.name}: {e}")
            return []


def render_parking_map_page() -> None:
    """Main function to render the parking map page."""
    ParkingMapPage().render()
