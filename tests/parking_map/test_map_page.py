"""
Tests for the parking map page helpers and the details panel text.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from components.parking_map.details_panel import format_route_summary
from components.parking_map.directions import TravelMode
from components.parking_map.map_page import (
    SAMPLE_LOCATIONS,
    VIEW_STATE_KEY,
    ParkingMapPage,
    load_locations_file,
    parse_coordinate_text,
)
from components.parking_map.models import LatLng, coerce_locations
from components.parking_map.routes import RoutePhase, RouteSnapshot
from components.parking_map.symbology import marker_label

from conftest import make_result


class TestParseCoordinateText:

    @pytest.mark.parametrize("text, expected", [
        ("48.1, 11.5", LatLng(48.1, 11.5)),
        ("48.1,11.5", LatLng(48.1, 11.5)),
        (" -33.9 ; 151.2 ", LatLng(-33.9, 151.2)),
    ])
    def test_valid(self, text, expected):
        assert parse_coordinate_text(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "48.1", "a, b", "95, 11", "48, 200", "1, 2, 3"])
    def test_invalid(self, text):
        assert parse_coordinate_text(text) is None


class TestLoadLocationsFile:

    def test_csv(self):
        content = b"lat,lng,waitingTime,label\n48.1,11.5,3,North\n48.2,11.6,,\n"

        locations = coerce_locations(load_locations_file("spots.csv", content))

        assert len(locations) == 2
        assert locations[0].label == "North"
        assert locations[1].waiting_time is None

    def test_csv_column_with_blanks_shows_whole_minutes(self):
        content = b"lat,lng,waitingTime\n48.1,11.5,3\n48.2,11.6,\n"

        location = coerce_locations(load_locations_file("spots.csv", content))[0]

        assert location.display_waiting_time == "3"
        assert marker_label(location.waiting_time) == "3m"

    def test_csv_missing_columns(self):
        with pytest.raises(ValueError, match="lng"):
            load_locations_file("spots.csv", b"lat,waitingTime\n48.1,3\n")

    def test_json(self):
        content = json.dumps([{"lat": 48.1, "lng": 11.5, "waitingTime": "3"}]).encode()

        locations = coerce_locations(load_locations_file("spots.json", content))

        assert locations[0].waiting_time == "3"

    def test_json_must_be_list(self):
        with pytest.raises(ValueError):
            load_locations_file("spots.json", b'{"lat": 48.1}')

    def test_sample_locations_are_valid(self):
        assert len(coerce_locations(SAMPLE_LOCATIONS)) == len(SAMPLE_LOCATIONS)


class TestFormatRouteSummary:

    def test_nothing_before_routes_requested(self):
        assert format_route_summary(None) is None
        assert format_route_summary(RouteSnapshot(phase=RoutePhase.SELECTED)) is None

    def test_pending(self):
        assert format_route_summary(RouteSnapshot(phase=RoutePhase.ROUTES_PENDING)) == "Calculating routes..."

    def test_unavailable(self):
        assert format_route_summary(RouteSnapshot(phase=RoutePhase.ROUTES_UNAVAILABLE)) == "No route available"

    def test_ready(self):
        snapshot = RouteSnapshot(
            phase=RoutePhase.ROUTES_READY,
            drive=make_result(TravelMode.DRIVING),
            walk=make_result(TravelMode.WALKING)
        )
        assert format_route_summary(snapshot) == "Drive 5 min (1.5 km) · Walk 5 min (1.5 km)"


class TestParkingMapPageSettings:

    @patch('components.parking_map.map_page.st')
    def test_reset_settings_writes_defaults_and_drops_view(self, mock_st, config):
        view = MagicMock()
        mock_st.session_state = {VIEW_STATE_KEY: view}
        config.get_map_settings()['default_zoom'] = 3
        with patch('components.parking_map.map_page.get_map_config', return_value=config):
            page = ParkingMapPage()

        page.reset_settings()

        assert config.get_map_settings()['default_zoom'] == 12
        saved = json.loads(Path(config.config_path).read_text())
        assert saved['map_settings']['default_zoom'] == 12
        view.teardown.assert_called_once()
        assert VIEW_STATE_KEY not in mock_st.session_state
