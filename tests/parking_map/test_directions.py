"""
Tests for the directions service wrapper.
"""

import pytest
import polyline
from unittest.mock import patch, MagicMock

from googlemaps import exceptions as gmaps_exceptions

from components.parking_map.directions import (
    DirectionsService,
    MapServiceError,
    TravelMode,
    parse_route,
    STATUS_OK,
    STATUS_ZERO_RESULTS,
    STATUS_ERROR,
)
from components.parking_map.models import LatLng


ROUTE_POINTS = [(48.1, 11.5), (48.12, 11.52), (48.15, 11.55)]


def sample_route():
    return {
        'summary': 'B2R',
        'overview_polyline': {'points': polyline.encode(ROUTE_POINTS)},
        'legs': [{'distance': {'value': 2400}, 'duration': {'value': 420}}],
    }


class TestDirectionsServiceInit:

    def test_missing_key_raises_map_service_error(self):
        with pytest.raises(MapServiceError) as exc_info:
            DirectionsService(None)
        assert "API key" in str(exc_info.value)

    def test_malformed_key_raises_map_service_error(self):
        with pytest.raises(MapServiceError):
            DirectionsService("not-a-google-key")

    @patch('components.parking_map.directions.googlemaps.Client')
    def test_valid_key_creates_client(self, mock_client):
        service = DirectionsService("AIzaTestKey", timeout=5)

        mock_client.assert_called_once_with(
            key="AIzaTestKey", timeout=5, retry_timeout=5, retry_over_query_limit=False
        )
        assert service.client is mock_client.return_value


class TestDirectionsServiceRoute:

    def setup_method(self):
        self.patcher = patch('components.parking_map.directions.googlemaps.Client')
        self.mock_client_cls = self.patcher.start()
        self.client = MagicMock()
        self.mock_client_cls.return_value = self.client
        self.service = DirectionsService("AIzaTestKey")
        self.origin = LatLng(48.1, 11.5)
        self.destination = LatLng(48.15, 11.55)

    def teardown_method(self):
        self.patcher.stop()

    def test_successful_route(self):
        self.client.directions.return_value = [sample_route()]

        result = self.service.route(self.origin, self.destination, TravelMode.DRIVING)

        self.client.directions.assert_called_once_with(
            origin=(48.1, 11.5), destination=(48.15, 11.55), mode="driving"
        )
        assert result.ok
        assert result.status == STATUS_OK
        assert result.mode == TravelMode.DRIVING
        assert result.distance_m == 2400
        assert result.duration_sec == 420
        assert result.path == [pytest.approx(point) for point in ROUTE_POINTS]

    def test_empty_response_is_zero_results(self):
        self.client.directions.return_value = []

        result = self.service.route(self.origin, self.destination, TravelMode.WALKING)

        assert not result.ok
        assert result.status == STATUS_ZERO_RESULTS

    def test_api_error_status_is_kept(self):
        self.client.directions.side_effect = gmaps_exceptions.ApiError("REQUEST_DENIED", "denied")

        result = self.service.route(self.origin, self.destination, TravelMode.WALKING)

        assert not result.ok
        assert result.status == "REQUEST_DENIED"

    def test_transport_error_degrades(self):
        self.client.directions.side_effect = gmaps_exceptions.TransportError("offline")

        result = self.service.route(self.origin, self.destination, TravelMode.DRIVING)

        assert not result.ok
        assert result.status == STATUS_ERROR

    def test_timeout_degrades(self):
        self.client.directions.side_effect = gmaps_exceptions.Timeout()

        result = self.service.route(self.origin, self.destination, TravelMode.DRIVING)

        assert result.status == STATUS_ERROR


class TestDirectionsServiceQuota:
    """Runs the real googlemaps client against a stubbed HTTP session."""

    @patch('googlemaps.client.time.sleep')
    def test_over_query_limit_is_sent_once(self, mock_sleep):
        service = DirectionsService("AIzaTestKey")
        response = MagicMock(status_code=200)
        response.json.return_value = {"status": "OVER_QUERY_LIMIT", "routes": []}

        with patch.object(service.client.session, 'get', return_value=response) as mock_get:
            result = service.route(LatLng(48.1, 11.5), LatLng(48.15, 11.55), TravelMode.DRIVING)

        assert mock_get.call_count == 1
        assert result.ok is False
        assert result.status == "OVER_QUERY_LIMIT"


class TestParseRoute:

    def test_route_without_polyline(self):
        result = parse_route({'legs': []}, TravelMode.DRIVING)
        assert result.status == STATUS_ZERO_RESULTS

    def test_single_point_route_is_not_ok(self):
        route = {'overview_polyline': {'points': polyline.encode([(48.1, 11.5)])}}
        result = parse_route(route, TravelMode.WALKING)
        assert result.status == STATUS_OK
        assert not result.ok

    def test_route_without_legs_has_no_totals(self):
        route = {'overview_polyline': {'points': polyline.encode(ROUTE_POINTS)}}
        result = parse_route(route, TravelMode.WALKING)
        assert result.ok
        assert result.distance_m is None
        assert result.duration_sec is None
