"""
Pytest configuration and fixtures for parking map tests.
"""

import pytest
from concurrent.futures import Future
from typing import List

from components.parking_map.directions import DirectionsResult, TravelMode, STATUS_OK
from components.parking_map.map_config import ParkingMapConfig
from components.parking_map.models import Location


@pytest.fixture
def sample_locations():
    """Create sample parking locations covering every waiting-time band."""
    return [
        {'lat': 48.1, 'lng': 11.5, 'waitingTime': '3'},
        {'lat': 48.2, 'lng': 11.6, 'waitingTime': '20', 'label': 'Garage Nord'},
        {'lat': 48.3, 'lng': 11.7, 'waitingTime': 45},
        {'lat': 48.4, 'lng': 11.8, 'waitingTime': 'n/a'},
    ]


@pytest.fixture
def config(tmp_path):
    """Configuration backed by a file that does not exist yet, i.e. defaults."""
    return ParkingMapConfig(str(tmp_path / "parking_map_config.json"))


def make_result(mode: TravelMode, status: str = STATUS_OK) -> DirectionsResult:
    """Build a directions result with a two-point path."""
    path = [(48.0, 11.0), (48.1, 11.5)] if status == STATUS_OK else []
    return DirectionsResult(status=status, mode=mode, path=path, distance_m=1500, duration_sec=300)


class ImmediateExecutor:
    """Executor that runs submitted calls synchronously."""

    def __init__(self):
        self.calls: List[tuple] = []

    def submit(self, fn, *args, **kwargs):
        self.calls.append(args)
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        pass


class ManualExecutor:
    """Executor whose futures are resolved by the test."""

    def __init__(self):
        self.submitted: List[tuple] = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.submitted.append((future, args))
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        pass


class FakeDirectionsService:
    """Stands in for DirectionsService; records every route request."""

    def __init__(self, api_key=None, timeout=None, statuses=None):
        self.api_key = api_key
        self.requests = []
        self.statuses = statuses or {}

    def route(self, origin, destination, mode):
        self.requests.append((origin, destination, mode))
        return make_result(mode, self.statuses.get(mode, STATUS_OK))


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def fake_service():
    return FakeDirectionsService()


@pytest.fixture
def parking_spot():
    return Location(48.1, 11.5, '3')


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
