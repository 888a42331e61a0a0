"""
Responsive layout handling for the parking map.

The viewport width is reported by the host page; the observer turns it into
a single UiMode value and notifies subscribers when the mode changes.
"""

from enum import Enum
from typing import Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

MOBILE_BREAKPOINT_PX = 768


class UiMode(str, Enum):
    """How the detail surface is presented."""
    DESKTOP = "desktop"  # popup anchored to the marker
    MOBILE = "mobile"    # fixed bottom sheet


def ui_mode_for_width(width: Optional[float], breakpoint_px: int = MOBILE_BREAKPOINT_PX) -> UiMode:
    """Widths at or below the breakpoint are MOBILE; unknown widths are DESKTOP."""
    if width is None:
        return UiMode.DESKTOP
    return UiMode.MOBILE if width <= breakpoint_px else UiMode.DESKTOP


class ResponsiveLayoutObserver:
    """Tracks the current UiMode and fans out changes to subscribers."""

    def __init__(self, breakpoint_px: int = MOBILE_BREAKPOINT_PX,
                 initial_width: Optional[float] = None):
        self.breakpoint_px = breakpoint_px
        self.width = initial_width
        self.mode = ui_mode_for_width(initial_width, breakpoint_px)
        self._subscribers: Dict[int, Callable[[UiMode], None]] = {}
        self._next_token = 0

    def subscribe(self, callback: Callable[[UiMode], None]) -> Callable[[], None]:
        """
        Register a callback for mode changes.

        The callback is invoked immediately with the current mode. The returned
        function removes the subscription; calling it twice is harmless.
        """
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback
        callback(self.mode)

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def update(self, width: Optional[float]) -> UiMode:
        """Record a new viewport width (a resize) and notify on mode change."""
        self.width = width
        mode = ui_mode_for_width(width, self.breakpoint_px)
        if mode != self.mode:
            logger.debug(f"Viewport width {width} switched layout {self.mode.value} -> {mode.value}")
            self.mode = mode
            for callback in list(self._subscribers.values()):
                callback(mode)
        return self.mode
