"""
Directions service client.

Thin wrapper over the Google Maps Directions API. Route computation happens
remotely; this module only issues the request and turns the answer into a
DirectionsResult whose geometry is decoded with `polyline`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import logging

import googlemaps
from googlemaps import exceptions as gmaps_exceptions
import polyline

from .models import LatLng

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"
STATUS_ERROR = "UNKNOWN_ERROR"


class MapServiceError(Exception):
    """The external map service could not be initialised."""


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"


@dataclass
class DirectionsResult:
    """Outcome of one directions request."""
    status: str
    mode: TravelMode
    path: List[Tuple[float, float]] = field(default_factory=list)
    distance_m: Optional[int] = None
    duration_sec: Optional[int] = None
    summary: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK and len(self.path) > 1


class DirectionsService:
    """Requests single routes between two coordinates for one travel mode."""

    def __init__(self, api_key: Optional[str], timeout: Optional[float] = 10):
        try:
            # Quota replies come back as ApiError instead of being retried
            self.client = googlemaps.Client(
                key=api_key,
                timeout=timeout,
                retry_timeout=timeout or 10,
                retry_over_query_limit=False
            )
        except ValueError as e:
            # googlemaps validates the key format on construction
            logger.error(f"Directions service initialisation failed: {e}")
            raise MapServiceError(str(e)) from e
        logger.info("Directions service initialised")

    def route(self, origin: LatLng, destination: LatLng, mode: TravelMode) -> DirectionsResult:
        """
        Request a route. Never raises: API errors become a non-OK result.
        """
        try:
            routes = self.client.directions(
                origin=origin.as_tuple(),
                destination=destination.as_tuple(),
                mode=mode.value
            )
        except gmaps_exceptions.ApiError as e:
            logger.debug(f"{mode.value} directions returned {e.status}")
            return DirectionsResult(status=e.status or STATUS_ERROR, mode=mode)
        except (gmaps_exceptions.TransportError, gmaps_exceptions.Timeout) as e:
            logger.debug(f"{mode.value} directions request failed: {e}")
            return DirectionsResult(status=STATUS_ERROR, mode=mode)

        if not routes:
            return DirectionsResult(status=STATUS_ZERO_RESULTS, mode=mode)

        return parse_route(routes[0], mode)


def parse_route(route: dict, mode: TravelMode) -> DirectionsResult:
    """Turn one entry of a Directions API response into a DirectionsResult."""
    encoded = route.get('overview_polyline', {}).get('points')
    if not encoded:
        return DirectionsResult(status=STATUS_ZERO_RESULTS, mode=mode)

    try:
        path = polyline.decode(encoded)
    except (ValueError, IndexError) as e:
        logger.debug(f"Could not decode {mode.value} route polyline: {e}")
        return DirectionsResult(status=STATUS_ERROR, mode=mode)

    legs = route.get('legs') or []
    distance = sum(leg.get('distance', {}).get('value', 0) for leg in legs) if legs else None
    duration = sum(leg.get('duration', {}).get('value', 0) for leg in legs) if legs else None

    return DirectionsResult(
        status=STATUS_OK,
        mode=mode,
        path=[(float(lat), float(lng)) for lat, lng in path],
        distance_m=distance,
        duration_sec=duration,
        summary=route.get('summary', '')
    )
