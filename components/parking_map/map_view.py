"""
Parking map view.

MapView owns the transient UI state of the parking map: the active selection,
the current UiMode and the route machine for the selection. It builds the
Folium map from that state and mounts it, together with the detail surface,
in Streamlit.
"""

import math
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

import folium
import streamlit as st

from .details_panel import ParkingDetailsPanel
from .directions import DirectionsService, MapServiceError
from .layout import ResponsiveLayoutObserver, UiMode
from .map_config import ParkingMapConfig, get_map_config
from .map_renderer import (
    LegendGenerator,
    ParkingMapRenderer,
    build_marker_specs,
    marker_index_from_tooltip,
)
from .models import LatLng, Location, coerce_locations, resolve_center, resolve_zoom
from .routes import RouteCoordinator, RoutePhase, RouteSnapshot
from .symbology import WaitTimePolicy

logger = logging.getLogger(__name__)

# Clicks closer than this (degrees) to a marker are attributed to it
CLICK_TOLERANCE_DEG = 1e-6


class ServiceStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class MapView:
    """Embeddable parking map with selection, detail surfaces and routes."""

    def __init__(self, api_key: Optional[str], locations=None, center=None, zoom=None,
                 user_location=None, destination=None,
                 config: Optional[ParkingMapConfig] = None,
                 layout_observer: Optional[ResponsiveLayoutObserver] = None,
                 service_factory: Optional[Callable[..., Any]] = None,
                 route_executor=None):
        self.config = config or get_map_config()
        map_settings = self.config.get_map_settings()
        layout_settings = self.config.get_layout_settings()
        self.route_settings = self.config.get_route_settings()
        self.service_settings = self.config.get_service_settings()

        self.api_key = api_key
        self.fallback_center = tuple(map_settings.get('fallback_center', (48.13513, 11.58198)))
        self.default_zoom = map_settings.get('default_zoom', 12)
        self.height = map_settings.get('height', 720)

        symbology = self.config.get_symbology_config()
        self.policy = WaitTimePolicy.from_config(symbology)
        self.renderer = ParkingMapRenderer(
            map_settings,
            route_settings={k: v for k, v in self.route_settings.items() if k in ('drive', 'walk')},
            policy=self.policy,
            label_color=symbology.get('label_color', '#0f172a')
        )
        self.legend = LegendGenerator()
        self.details_panel = ParkingDetailsPanel()

        self.locations: List[Location] = []
        self.center_override = None
        self.zoom_override = None
        self.user_location: Optional[LatLng] = None
        self.destination: Optional[LatLng] = None
        self.update_inputs(locations, center, zoom, user_location, destination)

        self.active_index: Optional[int] = None
        self.active_location: Optional[Location] = None
        self.map_generation = 0
        self._last_click: Optional[Tuple[Dict, Optional[str]]] = None

        self.layout_observer = layout_observer or ResponsiveLayoutObserver(
            breakpoint_px=layout_settings.get('mobile_breakpoint_px', 768),
            initial_width=layout_settings.get('default_viewport_width')
        )
        self.ui_mode = UiMode.DESKTOP
        self._unsubscribe_layout = self.layout_observer.subscribe(self._on_layout_change)

        self.service_factory = service_factory or DirectionsService
        self._route_executor = route_executor
        self.status = ServiceStatus.LOADING
        self.error_message: Optional[str] = None
        self.service = None
        self.routes: Optional[RouteCoordinator] = None

    # Inputs and derived values

    def update_inputs(self, locations=None, center=None, zoom=None,
                      user_location=None, destination=None) -> None:
        """Apply host inputs. A selection whose location is gone is dropped."""
        self.locations = coerce_locations(locations)
        self.center_override = center
        self.zoom_override = zoom
        self.user_location = LatLng.parse(user_location)
        self.destination = LatLng.parse(destination)

        active = getattr(self, 'active_index', None)
        if active is not None:
            if active >= len(self.locations) or self.locations[active] != self.active_location:
                logger.info(f"Selected location {active} no longer present, clearing selection")
                self.close()
            else:
                self._request_routes()

    @property
    def center(self) -> LatLng:
        return resolve_center(self.center_override, self.locations, self.fallback_center)

    @property
    def zoom(self):
        return resolve_zoom(self.zoom_override, self.default_zoom)

    @property
    def map_key(self) -> str:
        # Remounts the widget when the viewport inputs change or after a close
        c = self.center
        return f"parking_map_{c.lat}_{c.lng}_{self.zoom}_{self.map_generation}"

    def _on_layout_change(self, mode: UiMode) -> None:
        self.ui_mode = mode

    # Service lifecycle

    def initialize_service(self) -> ServiceStatus:
        """Create the directions client once. Failures are final for this view."""
        if self.status is not ServiceStatus.LOADING:
            return self.status

        try:
            self.service = self.service_factory(
                self.api_key, timeout=self.service_settings.get('request_timeout_sec', 10)
            )
        except MapServiceError as e:
            self.status = ServiceStatus.ERROR
            self.error_message = str(e)
            return self.status

        self.routes = RouteCoordinator(
            self.service.route,
            executor=self._route_executor,
            timeout_sec=self.route_settings.get('timeout_sec', 15),
            max_workers=self.route_settings.get('max_workers', 8)
        )
        self.status = ServiceStatus.READY
        self._request_routes()
        return self.status

    def teardown(self) -> None:
        """Release the layout subscription and any outstanding route requests."""
        if self._unsubscribe_layout is not None:
            self._unsubscribe_layout()
            self._unsubscribe_layout = None
        if self.routes is not None:
            self.routes.shutdown()

    # Selection

    def select(self, index: int) -> bool:
        """Make the location at `index` the only active selection."""
        if index is None or not 0 <= index < len(self.locations):
            logger.debug(f"Ignored selection of unknown marker {index}")
            return False

        self.active_index = index
        self.active_location = self.locations[index]
        if self.routes is not None:
            self.routes.select(index, self.active_location)
            self._request_routes()
        logger.info(f"Selected parking location {index}")
        return True

    def close(self) -> None:
        """Clear the selection and every route result."""
        self.active_index = None
        self.active_location = None
        self.map_generation += 1
        self._last_click = None
        if self.routes is not None:
            self.routes.clear()

    def _request_routes(self) -> None:
        if self.routes is not None and self.active_location is not None:
            self.routes.ensure_requests(self.user_location, self.destination)

    def _is_at(self, index: int, lat: float, lng: float) -> bool:
        location = self.locations[index]
        return (abs(location.lat - lat) <= CLICK_TOLERANCE_DEG
                and abs(location.lng - lng) <= CLICK_TOLERANCE_DEG)

    def find_location_index(self, lat: float, lng: float,
                            tooltip: Optional[str] = None) -> Optional[int]:
        """
        Map a click back to a list position. The index carried in the marker
        tooltip wins, so locations sharing a coordinate stay distinguishable.
        """
        hinted = marker_index_from_tooltip(tooltip)
        if hinted is not None and 0 <= hinted < len(self.locations) and self._is_at(hinted, lat, lng):
            return hinted
        for index in range(len(self.locations)):
            if self._is_at(index, lat, lng):
                return index
        return None

    def handle_map_click(self, clicked: Optional[Dict], tooltip: Optional[str] = None) -> bool:
        """
        Apply a `last_object_clicked` payload (and its tooltip text) from st_folium.

        Returns True when the selection changed. A payload that was already
        applied, or one that does not hit a parking marker, is ignored.
        """
        if not clicked or (clicked, tooltip) == self._last_click:
            return False
        self._last_click = (clicked, tooltip)

        lat, lng = clicked.get('lat'), clicked.get('lng')
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return False
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False

        index = self.find_location_index(lat, lng, tooltip)
        if index is None or index == self.active_index:
            return False
        return self.select(index)

    # Rendering

    def route_snapshot(self, wait_sec: float = 0) -> Optional[RouteSnapshot]:
        if self.routes is None:
            return None
        return self.routes.poll(timeout=wait_sec)

    def build_map(self, routes: Optional[RouteSnapshot] = None) -> folium.Map:
        """Build the Folium map for the current state."""
        map_obj = self.renderer.create_base_map(self.center, self.zoom)

        if routes is not None:
            self.renderer.add_route_layers(map_obj, routes.drive, routes.walk)

        specs = build_marker_specs(self.locations, self.policy, self.active_index, self.ui_mode)
        self.renderer.add_parking_markers(map_obj, specs)
        self.renderer.add_endpoint_markers(map_obj, self.user_location, self.destination)

        legend_html = self.legend.create_legend("Waiting time", self.policy.legend_entries())
        self.legend.add_legend_to_map(map_obj, legend_html)
        return map_obj

    def render(self) -> None:
        """Render the view into the current Streamlit container."""
        placeholder = st.empty()

        if self.status is ServiceStatus.LOADING:
            placeholder.info("Loading map service...")
            self.initialize_service()

        if self.status is ServiceStatus.ERROR:
            placeholder.error(f"Map Load Error: {self.error_message}")
            return
        placeholder.empty()

        routes = self.route_snapshot()
        map_obj = self.build_map(routes)
        map_data = self.renderer.render_to_streamlit(map_obj, key=self.map_key, height=self.height)

        if map_data and self.handle_map_click(map_data.get('last_object_clicked'),
                                              map_data.get('last_object_clicked_tooltip')):
            st.rerun()

        if self.active_location is not None:
            if self.ui_mode is UiMode.MOBILE:
                self.details_panel.render_bottom_sheet(self.active_location, self.close, routes)
            else:
                self.details_panel.render_selection_footer(self.active_location, self.close, routes)

        self._refresh_pending_routes(routes)

    def _refresh_pending_routes(self, routes: Optional[RouteSnapshot]) -> None:
        """Rerun the script while legs are outstanding so each one is drawn once it resolves."""
        if routes is None or routes.phase is not RoutePhase.ROUTES_PENDING:
            return
        self.routes.poll(timeout=self.route_settings.get('poll_wait_sec', 3))
        logger.debug("Route legs pending, scheduling rerun")
        st.rerun()
