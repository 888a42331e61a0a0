"""
Route coordination for the active parking selection.

When a parking spot is selected and both the user position and the final
destination are known, two legs are requested from the directions service:

    drive: user location -> parking spot
    walk:  parking spot  -> destination

Each selection runs its own small state machine:

    NONE -> SELECTED -> ROUTES_PENDING -> ROUTES_READY | ROUTES_UNAVAILABLE

Leg state is rebuilt on every selection change, so results that belong to an
earlier selection have nowhere to land and are dropped.
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging

from .directions import DirectionsResult, TravelMode, STATUS_ERROR
from .models import LatLng, Location

logger = logging.getLogger(__name__)

RouteFn = Callable[[LatLng, LatLng, TravelMode], DirectionsResult]

_route_executor: Optional[ThreadPoolExecutor] = None
_route_executor_lock = threading.Lock()


def get_route_executor(max_workers: int = 8) -> ThreadPoolExecutor:
    """Worker pool shared by every session's route requests."""
    global _route_executor
    with _route_executor_lock:
        if _route_executor is None:
            _route_executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="route")
            logger.info(f"Started route worker pool with {max_workers} workers")
        return _route_executor


class RoutePhase(str, Enum):
    NONE = "none"
    SELECTED = "selected"
    ROUTES_PENDING = "routes_pending"
    ROUTES_READY = "routes_ready"
    ROUTES_UNAVAILABLE = "routes_unavailable"


class RouteLeg(str, Enum):
    DRIVE = "drive"
    WALK = "walk"

    @property
    def travel_mode(self) -> TravelMode:
        return TravelMode.DRIVING if self is RouteLeg.DRIVE else TravelMode.WALKING


class LegStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    UNAVAILABLE = "unavailable"


@dataclass
class LegState:
    leg: RouteLeg
    origin: LatLng
    destination: LatLng
    generation: int
    requested_at: float
    future: Optional[Future] = None
    status: LegStatus = LegStatus.PENDING
    result: Optional[DirectionsResult] = None


@dataclass
class RouteSnapshot:
    """Read-only view handed to the renderer."""
    phase: RoutePhase
    drive: Optional[DirectionsResult] = None
    walk: Optional[DirectionsResult] = None
    leg_status: Dict[RouteLeg, LegStatus] = field(default_factory=dict)


class RouteCoordinator:
    """Owns route requests and results for the current selection."""

    def __init__(self, route_fn: RouteFn, executor: Optional[Executor] = None,
                 timeout_sec: Optional[float] = 15, max_workers: int = 8,
                 clock: Callable[[], float] = time.monotonic):
        self.route_fn = route_fn
        self.executor = executor or get_route_executor(max_workers)
        self.timeout_sec = timeout_sec
        self.clock = clock

        self.generation = 0
        self.selection_index: Optional[int] = None
        self.selection: Optional[Location] = None
        self._request_key: Optional[Tuple] = None
        self.legs: Dict[RouteLeg, LegState] = {}

    # Selection lifecycle

    def select(self, index: int, location: Location) -> None:
        """Start a fresh machine for a new selection."""
        self.generation += 1
        self.selection_index = index
        self.selection = location
        self._reset_legs()
        logger.debug(f"Route machine restarted for selection {index} (generation {self.generation})")

    def clear(self) -> None:
        """Drop the selection and every route result."""
        self.generation += 1
        self.selection_index = None
        self.selection = None
        self._reset_legs()

    def _reset_legs(self) -> None:
        for state in self.legs.values():
            if state.future is not None:
                state.future.cancel()
        self.legs = {}
        self._request_key = None

    # Requests

    def ensure_requests(self, user_location, destination) -> bool:
        """
        Issue the drive and walk requests if they have not been issued yet for
        this (selection, user location, destination) combination.

        Returns True when new requests were submitted.
        """
        if self.selection is None:
            return False

        user = LatLng.parse(user_location)
        dest = LatLng.parse(destination)
        if user is None or dest is None:
            if self.legs:
                self._reset_legs()
            return False

        key = (self.selection_index, user, dest)
        if key == self._request_key:
            return False

        self._reset_legs()
        self.generation += 1
        self._request_key = key
        parking = self.selection.position

        self._submit(RouteLeg.DRIVE, user, parking)
        self._submit(RouteLeg.WALK, parking, dest)
        logger.info(f"Requested drive and walk routes for selection {self.selection_index}")
        return True

    def _submit(self, leg: RouteLeg, origin: LatLng, destination: LatLng) -> None:
        state = LegState(
            leg=leg,
            origin=origin,
            destination=destination,
            generation=self.generation,
            requested_at=self.clock()
        )
        self.legs[leg] = state
        state.future = self.executor.submit(self.route_fn, origin, destination, leg.travel_mode)

    # Results

    def resolve(self, leg: RouteLeg, generation: int, result: Optional[DirectionsResult]) -> bool:
        """
        Record the outcome of one leg. Outcomes from another generation or for
        a leg that is no longer pending are ignored.
        """
        state = self.legs.get(leg)
        if state is None or state.generation != generation or generation != self.generation:
            logger.debug(f"Discarded stale {leg.value} route (generation {generation})")
            return False
        if state.status is not LegStatus.PENDING:
            return False

        if result is not None and result.ok:
            state.status = LegStatus.READY
            state.result = result
        else:
            state.status = LegStatus.UNAVAILABLE
            state.result = None
            status = result.status if result is not None else STATUS_ERROR
            logger.debug(f"No {leg.value} route available ({status})")
        return True

    def poll(self, timeout: Optional[float] = 0) -> RouteSnapshot:
        """
        Collect finished requests, waiting up to `timeout` seconds for pending
        ones, then expire legs that exceeded the route timeout.
        """
        pending = [s.future for s in self.legs.values()
                   if s.status is LegStatus.PENDING and s.future is not None]
        if pending and timeout:
            wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)

        for state in list(self.legs.values()):
            future = state.future
            if state.status is not LegStatus.PENDING or future is None or not future.done():
                continue
            if future.cancelled():
                result = None
            else:
                error = future.exception()
                if error is not None:
                    logger.debug(f"{state.leg.value} route request raised {error!r}")
                    result = None
                else:
                    result = future.result()
            self.resolve(state.leg, state.generation, result)

        self._expire_stale()
        return self.snapshot()

    def _expire_stale(self) -> None:
        if not self.timeout_sec:
            return
        now = self.clock()
        for state in self.legs.values():
            if state.status is LegStatus.PENDING and now - state.requested_at >= self.timeout_sec:
                logger.debug(f"{state.leg.value} route timed out after {self.timeout_sec}s")
                if state.future is not None:
                    state.future.cancel()
                state.status = LegStatus.UNAVAILABLE

    # State

    @property
    def phase(self) -> RoutePhase:
        if self.selection is None:
            return RoutePhase.NONE
        if not self.legs:
            return RoutePhase.SELECTED

        statuses = [state.status for state in self.legs.values()]
        if LegStatus.PENDING in statuses:
            return RoutePhase.ROUTES_PENDING
        if LegStatus.READY in statuses:
            return RoutePhase.ROUTES_READY
        return RoutePhase.ROUTES_UNAVAILABLE

    def result_for(self, leg: RouteLeg) -> Optional[DirectionsResult]:
        state = self.legs.get(leg)
        if state is None or state.status is not LegStatus.READY:
            return None
        return state.result

    def snapshot(self) -> RouteSnapshot:
        return RouteSnapshot(
            phase=self.phase,
            drive=self.result_for(RouteLeg.DRIVE),
            walk=self.result_for(RouteLeg.WALK),
            leg_status={leg: state.status for leg, state in self.legs.items()}
        )

    def shutdown(self) -> None:
        """Cancel outstanding requests. The executor itself outlives the coordinator."""
        self._reset_legs()
