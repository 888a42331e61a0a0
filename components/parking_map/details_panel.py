"""
Detail surfaces for the selected parking spot.

Desktop layouts show the details in a popup anchored to the marker (the HTML
comes from `create_info_content`). Narrow layouts show the same content in a
bottom sheet fixed to the viewport edge, rendered by `ParkingDetailsPanel`.
"""

import html
from typing import Callable, Optional
import logging

import streamlit as st

from .models import Location
from .routes import RoutePhase, RouteSnapshot

logger = logging.getLogger(__name__)

BOTTOM_SHEET_KEY = "parking_bottom_sheet"

FONT_STACK = 'system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif'


def create_info_content(location: Location) -> str:
    """HTML body shared by the popup and the bottom sheet."""
    label = html.escape(location.display_label)
    waiting = html.escape(location.display_waiting_time)

    return f"""
    <div style="padding: 10px 12px; border-radius: 12px; max-width: 260px;
                font-family: {html.escape(FONT_STACK, quote=False)};">
        <div style="display: flex; align-items: center; justify-content: space-between;
                    gap: 8px; margin-bottom: 4px;">
            <h3 style="margin: 0; font-size: 14px; font-weight: 600; color: #0f172a;">{label}</h3>
            <span style="padding: 2px 8px; border-radius: 999px; font-size: 11px; font-weight: 600;
                         background-color: #e5f0ff; color: #1d4ed8; white-space: nowrap;">{waiting}</span>
        </div>
        <p style="margin: 4px 0 0; font-size: 12px; color: #6b7280;">
            <span style="font-weight: 500;">Coordinates:</span> {location.lat:.4f}, {location.lng:.4f}
        </p>
    </div>
    """


def format_route_summary(snapshot: Optional[RouteSnapshot]) -> Optional[str]:
    """One line describing the route legs, or None when nothing is known."""
    if snapshot is None or snapshot.phase in (RoutePhase.NONE, RoutePhase.SELECTED):
        return None
    if snapshot.phase is RoutePhase.ROUTES_PENDING and not (snapshot.drive or snapshot.walk):
        return "Calculating routes..."
    if snapshot.phase is RoutePhase.ROUTES_UNAVAILABLE:
        return "No route available"

    parts = []
    for name, result in (("Drive", snapshot.drive), ("Walk", snapshot.walk)):
        if result is None:
            continue
        text = name
        if result.duration_sec is not None:
            text += f" {round(result.duration_sec / 60)} min"
        if result.distance_m is not None:
            text += f" ({result.distance_m / 1000:.1f} km)"
        parts.append(text)
    return " · ".join(parts) if parts else None


def bottom_sheet_css() -> str:
    """Pin the keyed Streamlit container to the bottom of the viewport."""
    return f"""
    <style>
    .st-key-{BOTTOM_SHEET_KEY} {{
        position: fixed;
        left: 0;
        right: 0;
        bottom: 0;
        z-index: 40;
        background-color: white;
        border-top-left-radius: 16px;
        border-top-right-radius: 16px;
        box-shadow: 0 -10px 30px rgba(15, 23, 42, 0.25);
        padding: 12px 16px 18px;
        max-height: 40vh;
        overflow-y: auto;
    }}
    </style>
    """


class ParkingDetailsPanel:
    """Renders the selection details outside the map."""

    def render_bottom_sheet(self, location: Location, on_close: Callable[[], None],
                            routes: Optional[RouteSnapshot] = None) -> None:
        st.markdown(bottom_sheet_css(), unsafe_allow_html=True)

        with st.container(key=BOTTOM_SHEET_KEY):
            st.markdown(
                '<div style="width: 40px; height: 4px; border-radius: 999px; '
                'background-color: #e5e7eb; margin: 0 auto 8px;"></div>',
                unsafe_allow_html=True
            )
            col_title, col_close = st.columns([5, 1])
            with col_title:
                st.markdown(
                    '<span style="font-size: 12px; text-transform: uppercase; letter-spacing: 0.08em; '
                    'color: #9ca3af; font-weight: 600;">Parking details</span>',
                    unsafe_allow_html=True
                )
            with col_close:
                st.button("×", key="close_bottom_sheet", help="Close", on_click=on_close)

            st.markdown(create_info_content(location), unsafe_allow_html=True)
            self._render_route_summary(routes)

    def render_selection_footer(self, location: Location, on_close: Callable[[], None],
                                routes: Optional[RouteSnapshot] = None) -> None:
        """Desktop companion to the popup: route status and a close control."""
        col_info, col_close = st.columns([4, 1])
        with col_info:
            st.caption(f"Selected: {location.display_label} ({location.display_waiting_time})")
            self._render_route_summary(routes)
        with col_close:
            st.button("Close details", key="close_popup_details", on_click=on_close)

    def _render_route_summary(self, routes: Optional[RouteSnapshot]) -> None:
        summary = format_route_summary(routes)
        if summary:
            st.caption(summary)
