"""
Data model for the parking map: locations, coordinates and view inputs.
"""

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Union
import logging

import pandas as pd

logger = logging.getLogger(__name__)

FALLBACK_CENTER = (48.13513, 11.58198)
DEFAULT_ZOOM = 12


def _is_coordinate(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class LatLng:
    """A geographic point."""
    lat: float
    lng: float

    def as_list(self) -> List[float]:
        return [self.lat, self.lng]

    def as_tuple(self):
        return (self.lat, self.lng)

    @classmethod
    def parse(cls, value: Any) -> Optional['LatLng']:
        """Accept a LatLng, a {lat, lng} mapping or a (lat, lng) pair; None when invalid."""
        if value is None:
            return None
        if isinstance(value, LatLng):
            return value
        if isinstance(value, Mapping):
            lat, lng = value.get('lat'), value.get('lng', value.get('lon'))
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            lat, lng = value
        else:
            return None
        if not (_is_coordinate(lat) and _is_coordinate(lng)):
            return None
        return cls(float(lat), float(lng))


@dataclass(frozen=True)
class Location:
    """A parking spot shown as one marker. Identity is its position in the input list."""
    lat: float
    lng: float
    waiting_time: Union[str, int, float, None] = None
    label: Optional[str] = None

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.lng)

    @property
    def display_label(self) -> str:
        return self.label or "Parking spot"

    @property
    def display_waiting_time(self) -> str:
        if self.waiting_time is None or self.waiting_time == "":
            return "N/A"
        if isinstance(self.waiting_time, float) and not math.isfinite(self.waiting_time):
            return "N/A"
        if isinstance(self.waiting_time, float) and self.waiting_time.is_integer():
            # pandas reads an integer column with blanks as float
            return str(int(self.waiting_time))
        return str(self.waiting_time)


def _location_from_mapping(entry: Mapping) -> Optional[Location]:
    lat, lng = entry.get('lat'), entry.get('lng')
    if not (_is_coordinate(lat) and _is_coordinate(lng)):
        return None

    waiting_time = entry.get('waitingTime', entry.get('waiting_time'))
    if isinstance(waiting_time, float) and math.isnan(waiting_time):
        waiting_time = None

    label = entry.get('label')
    if not isinstance(label, str) or not label.strip():
        label = None

    return Location(float(lat), float(lng), waiting_time, label)


def coerce_locations(data: Union[None, pd.DataFrame, Iterable[Any]]) -> List[Location]:
    """
    Normalise host input into a list of Location objects.

    Accepts Location instances, mappings with lat/lng and waitingTime or
    waiting_time, or a DataFrame with those columns. Entries without finite
    coordinates are dropped.
    """
    if data is None:
        return []

    if isinstance(data, pd.DataFrame):
        records = data.to_dict(orient='records')
    else:
        records = list(data)

    locations = []
    dropped = 0
    for entry in records:
        if isinstance(entry, Location):
            location = entry if _is_coordinate(entry.lat) and _is_coordinate(entry.lng) else None
        elif isinstance(entry, Mapping):
            location = _location_from_mapping(entry)
        else:
            location = None

        if location is None:
            dropped += 1
            continue
        locations.append(location)

    if dropped:
        logger.warning(f"Dropped {dropped} location(s) without valid coordinates")
    return locations


def resolve_center(center: Any, locations: List[Location],
                   fallback=FALLBACK_CENTER) -> LatLng:
    """Explicit centre if valid, else the first location, else the fallback point."""
    explicit = LatLng.parse(center)
    if explicit is not None:
        return explicit
    if locations:
        return locations[0].position
    return LatLng(float(fallback[0]), float(fallback[1]))


def resolve_zoom(zoom: Any, default: int = DEFAULT_ZOOM) -> Union[int, float]:
    """Explicit zoom if it is a positive finite number, else the default."""
    if _is_coordinate(zoom) and zoom > 0:
        return zoom
    return default
