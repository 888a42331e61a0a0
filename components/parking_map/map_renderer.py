"""
Map rendering module for the parking map.

This module builds the Folium map with parking markers, the optional user and
destination markers, route polylines and the waiting-time legend, and mounts
it in Streamlit.
"""

import html
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

import folium

from .details_panel import create_info_content
from .directions import DirectionsResult
from .layout import UiMode
from .models import LatLng, Location
from .symbology import MarkerStyle, WaitTimePolicy, default_policy, marker_label

logger = logging.getLogger(__name__)

# Pin glyph is drawn in a 24x24 box; the tip sits at (12, 22)
PIN_BOX = 24

# Marker tooltips start with the 1-based list position, e.g. "2. Garage Nord · 20m"
TOOLTIP_INDEX_RE = re.compile(r"^\s*(\d+)\.\s")


@dataclass
class MarkerSpec:
    """Everything needed to draw one parking marker."""
    index: int
    location: Location
    style: MarkerStyle
    label: str
    popup_open: bool = False


def build_marker_specs(locations: List[Location], policy: Optional[WaitTimePolicy] = None,
                       active_index: Optional[int] = None,
                       ui_mode: UiMode = UiMode.DESKTOP) -> List[MarkerSpec]:
    """
    One spec per location. Only the active marker in DESKTOP mode carries an
    open popup; MOBILE mode shows details in the bottom sheet instead.
    """
    policy = policy or default_policy()
    specs = []
    for index, location in enumerate(locations):
        specs.append(MarkerSpec(
            index=index,
            location=location,
            style=policy.style_for(location.waiting_time),
            label=marker_label(location.waiting_time),
            popup_open=(ui_mode is UiMode.DESKTOP and index == active_index)
        ))
    return specs


def marker_tooltip(spec: MarkerSpec) -> str:
    return f"{spec.index + 1}. {html.escape(spec.location.display_label)} · {spec.label}"


def marker_index_from_tooltip(text: Optional[str]) -> Optional[int]:
    """Read the list position back out of a clicked marker's tooltip text."""
    if not isinstance(text, str):
        return None
    match = TOOLTIP_INDEX_RE.match(text)
    if match is None:
        return None
    return int(match.group(1)) - 1


def pin_icon_html(style: MarkerStyle, label: str, label_color: str = "#0f172a") -> str:
    """SVG pin with the waiting-time label drawn above it."""
    size = round(PIN_BOX * style.scale)
    return f"""
    <div style="position: relative; width: {size}px; height: {size}px;">
        <div style="position: absolute; bottom: {size + 2}px; left: 50%; transform: translateX(-50%);
                    color: {label_color}; font-weight: 700; font-size: 13px; white-space: nowrap;
                    text-shadow: 0 0 3px white;">{html.escape(label)}</div>
        <svg width="{size}" height="{size}" viewBox="0 0 {PIN_BOX} {PIN_BOX}">
            <path d="{style.shape}" fill="{style.fill_color}" fill-opacity="{style.fill_opacity}"
                  stroke="{style.border_color}" stroke-width="{style.border_weight}"/>
        </svg>
    </div>
    """


class ParkingMapRenderer:
    """Core map rendering using Folium."""

    def __init__(self, map_settings: Optional[Dict[str, Any]] = None,
                 route_settings: Optional[Dict[str, Any]] = None,
                 policy: Optional[WaitTimePolicy] = None,
                 label_color: str = "#0f172a"):
        map_settings = map_settings or {}
        self.tiles = map_settings.get('tiles', 'OpenStreetMap')
        self.zoom_control = map_settings.get('zoom_control', True)
        self.route_styles = route_settings or {
            'drive': {'color': '#2563eb', 'weight': 5, 'opacity': 0.9, 'dash_array': None},
            'walk': {'color': '#16a34a', 'weight': 4, 'opacity': 0.9, 'dash_array': '10, 10'}
        }
        self.policy = policy or default_policy()
        self.label_color = label_color

    def create_base_map(self, center: LatLng, zoom) -> folium.Map:
        """
        Create base map.

        Args:
            center: Map centre
            zoom: Initial zoom level

        Returns:
            Folium Map object
        """
        m = folium.Map(
            location=center.as_list(),
            zoom_start=zoom,
            tiles=self.tiles,
            zoom_control=self.zoom_control
        )
        logger.debug(f"Created base map centered at {center.as_tuple()} zoom {zoom}")
        return m

    def add_parking_markers(self, map_obj: folium.Map, specs: List[MarkerSpec]) -> List[folium.Marker]:
        """Add one marker per spec; the active desktop marker gets an open popup."""
        markers = []
        for spec in specs:
            size = round(PIN_BOX * spec.style.scale)
            icon = folium.DivIcon(
                html=pin_icon_html(spec.style, spec.label, self.label_color),
                icon_size=(size, size),
                icon_anchor=(size // 2, size)
            )
            popup = None
            if spec.popup_open:
                popup = folium.Popup(create_info_content(spec.location), max_width=300, show=True)

            marker = folium.Marker(
                location=spec.location.position.as_list(),
                icon=icon,
                popup=popup,
                tooltip=marker_tooltip(spec)
            )
            marker.add_to(map_obj)
            markers.append(marker)

        logger.info(f"Added {len(specs)} parking markers to map")
        return markers

    def add_endpoint_markers(self, map_obj: folium.Map, user_location: Optional[LatLng],
                             destination: Optional[LatLng]) -> None:
        """Add markers for the user position and the final destination."""
        if user_location is not None:
            folium.CircleMarker(
                location=user_location.as_list(),
                radius=6,
                color='white',
                weight=2,
                fill=True,
                fill_color='#2563eb',
                fill_opacity=1.0,
                tooltip='Your location'
            ).add_to(map_obj)

        if destination is not None:
            folium.RegularPolygonMarker(
                location=destination.as_list(),
                number_of_sides=3,
                radius=8,
                rotation=90,
                color='white',
                weight=2,
                fill=True,
                fill_color='#16a34a',
                fill_opacity=1.0,
                tooltip='Destination'
            ).add_to(map_obj)

    def route_style(self, leg_name: str) -> Dict[str, Any]:
        return self.route_styles.get(leg_name, {})

    def add_route_layers(self, map_obj: folium.Map, drive: Optional[DirectionsResult],
                         walk: Optional[DirectionsResult]) -> int:
        """Draw the drive leg solid and the walk leg dashed. Returns layers added."""
        added = 0
        for leg_name, result in (('drive', drive), ('walk', walk)):
            if result is None or not result.ok:
                continue
            style = self.route_style(leg_name)
            options = {
                'color': style.get('color', '#2563eb'),
                'weight': style.get('weight', 4),
                'opacity': style.get('opacity', 0.9)
            }
            if style.get('dash_array'):
                options['dash_array'] = style['dash_array']

            folium.PolyLine(result.path, tooltip=f"{leg_name.title()} route", **options).add_to(map_obj)
            added += 1

        if added:
            logger.debug(f"Added {added} route layer(s)")
        return added

    def render_to_streamlit(self, map_obj: folium.Map, key: str, height: int = 720) -> Optional[Dict]:
        """
        Render Folium map in Streamlit and return the interaction payload.

        Args:
            map_obj: Folium Map object
            key: Widget key; changing it remounts the map
            height: Map height in pixels
        """
        from streamlit_folium import st_folium

        return st_folium(map_obj, key=key, width=None, height=height,
                         returned_objects=["last_object_clicked", "last_object_clicked_tooltip"])


class LegendGenerator:
    """Generates the waiting-time legend overlay."""

    def __init__(self):
        self.legend_template = """
        <div style="position: fixed;
                    bottom: 30px; left: 30px; width: 170px; height: auto;
                    background-color: white; border: 1px solid #e5e7eb; z-index: 9999;
                    font-size: 12px; padding: 10px; border-radius: 8px;
                    box-shadow: 0 2px 4px rgba(0,0,0,0.2);">
        <h4 style="margin: 0 0 8px 0; font-size: 13px; color: #333;">{title}</h4>
        {content}
        </div>
        """

    def create_legend(self, title: str, entries: List[Tuple[str, str]]) -> str:
        """
        Create HTML legend from (label, colour) pairs.
        """
        content = ""
        for label, color in entries:
            content += f"""
            <div style="margin: 3px 0; display: flex; align-items: center;">
                <span style="background-color: {color}; width: 12px; height: 12px; border-radius: 50%;
                           display: inline-block; margin-right: 8px; border: 1px solid #0f172a;"></span>
                <span style="font-size: 11px;">{html.escape(label)}</span>
            </div>
            """
        return self.legend_template.format(title=html.escape(title), content=content)

    def add_legend_to_map(self, map_obj: folium.Map, legend_html: str) -> folium.Map:
        map_obj.get_root().html.add_child(folium.Element(legend_html))
        return map_obj
