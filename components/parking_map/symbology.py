"""
Marker symbology for the parking map.

This module classifies waiting-time values into colour bands and produces the
style descriptor used to draw each parking marker. Classification is total:
anything that cannot be read as a non-negative number of minutes falls into
the UNKNOWN band instead of raising.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')

DEFAULT_SHAPE = "M12 2C8.13 2 5 5.13 5 9c0 5.25 7 13 7 13s7-7.75 7-13c0-3.87-3.13-7-7-7z"


class WaitBand(str, Enum):
    """Waiting-time classes shown on the map."""
    GREEN = "green"
    MID = "mid"
    RED = "red"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MarkerStyle:
    """Visual description of one parking marker."""
    band: WaitBand
    fill_color: str
    border_color: str = "#0f172a"
    shape: str = DEFAULT_SHAPE
    scale: float = 1.3
    fill_opacity: float = 1.0
    border_weight: float = 1


@dataclass(frozen=True)
class BandRule:
    """Minutes strictly below `upper` fall into `band`; `upper=None` is open-ended."""
    band: WaitBand
    upper: Optional[float]
    fill_color: str


def parse_waiting_time(value: Any) -> Optional[int]:
    """
    Read a waiting time in whole minutes.

    Numbers are truncated, strings are read up to the first non-digit
    ("12 min" -> 12). Missing, negative, non-finite or unreadable values
    return None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        minutes = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return None
        minutes = int(match.group(1))
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number):
            return None
        minutes = int(number)

    if minutes < 0:
        return None
    return minutes


class WaitTimePolicy:
    """Ordered band rules plus the shared marker styling."""

    def __init__(self, rules: List[BandRule], unknown_color: str = "#9ca3af",
                 border_color: str = "#0f172a", shape: str = DEFAULT_SHAPE,
                 scale: float = 1.3, fill_opacity: float = 1.0,
                 border_weight: float = 1):
        if not rules:
            raise ValueError("At least one band rule is required")
        if rules[-1].upper is not None:
            raise ValueError("The last band rule must be open-ended (upper=None)")

        uppers = [rule.upper for rule in rules[:-1]]
        if any(upper is None for upper in uppers) or uppers != sorted(uppers):
            raise ValueError("Band upper bounds must be ascending")

        self.rules = list(rules)
        self.unknown_color = unknown_color
        self.border_color = border_color
        self.shape = shape
        self.scale = scale
        self.fill_opacity = fill_opacity
        self.border_weight = border_weight

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'WaitTimePolicy':
        """Build a policy from the `symbology` section of the map config."""
        rules = [
            BandRule(
                band=WaitBand(entry["band"]),
                upper=entry.get("upper"),
                fill_color=entry["fill_color"]
            )
            for entry in config.get("bands", [])
        ]
        return cls(
            rules,
            unknown_color=config.get("unknown_color", "#9ca3af"),
            border_color=config.get("border_color", "#0f172a"),
            shape=config.get("shape", DEFAULT_SHAPE),
            scale=config.get("scale", 1.3),
            fill_opacity=config.get("fill_opacity", 1.0),
            border_weight=config.get("border_weight", 1)
        )

    def band_for(self, minutes: Optional[int]) -> Tuple[WaitBand, str]:
        """Return (band, fill colour) for parsed minutes."""
        if minutes is None:
            return WaitBand.UNKNOWN, self.unknown_color

        for rule in self.rules:
            if rule.upper is None or minutes < rule.upper:
                return rule.band, rule.fill_color

        # unreachable: last rule is open-ended
        return WaitBand.UNKNOWN, self.unknown_color

    def style_for(self, value: Any) -> MarkerStyle:
        band, fill = self.band_for(parse_waiting_time(value))
        return MarkerStyle(
            band=band,
            fill_color=fill,
            border_color=self.border_color,
            shape=self.shape,
            scale=self.scale,
            fill_opacity=self.fill_opacity,
            border_weight=self.border_weight
        )

    def legend_entries(self) -> List[Tuple[str, str]]:
        """Return (label, colour) pairs describing every band."""
        entries = []
        lower = 0
        for rule in self.rules:
            if rule.upper is None:
                label = f"{lower:g}+ min"
            else:
                label = f"{lower:g}-{rule.upper:g} min"
                lower = rule.upper
            entries.append((label, rule.fill_color))
        entries.append(("Unknown", self.unknown_color))
        return entries


def default_policy() -> WaitTimePolicy:
    """Canonical banding: <15 green, 15-29 mid, >=30 red."""
    return WaitTimePolicy([
        BandRule(WaitBand.GREEN, 15, "#22c55e"),
        BandRule(WaitBand.MID, 30, "#f97316"),
        BandRule(WaitBand.RED, None, "#ef4444"),
    ])


def classify_waiting_time(value: Any, policy: Optional[WaitTimePolicy] = None) -> MarkerStyle:
    """Map a raw waiting-time value to its marker style."""
    return (policy or default_policy()).style_for(value)


def marker_label(value: Any) -> str:
    """Short text drawn above a marker, e.g. "12m"."""
    minutes = parse_waiting_time(value)
    if minutes is None:
        return "N/A"
    return f"{minutes}m"
