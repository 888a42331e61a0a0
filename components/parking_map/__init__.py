"""
Parking Map Component - Interactive parking availability map.

This component renders parking spots on a Folium map, colours each marker by
its current waiting time and shows details and drive/walk routes for the
selected spot.
"""

from .map_page import render_parking_map_page
from .map_config import ParkingMapConfig
from .map_view import MapView
from .routes import RouteCoordinator
from .symbology import classify_waiting_time, WaitTimePolicy

__all__ = [
    'render_parking_map_page',
    'ParkingMapConfig',
    'MapView',
    'RouteCoordinator',
    'classify_waiting_time',
    'WaitTimePolicy'
]
