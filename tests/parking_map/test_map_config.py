"""
Tests for parking map configuration loading and merging.
"""

import json

from components.parking_map.map_config import ParkingMapConfig


class TestParkingMapConfig:

    def test_defaults_when_file_missing(self, config):
        assert config.get_map_settings()['default_zoom'] == 12
        assert config.get_map_settings()['fallback_center'] == [48.13513, 11.58198]
        assert config.get_layout_settings()['mobile_breakpoint_px'] == 768
        assert config.get_route_settings()['walk']['dash_array'] == '10, 10'
        assert [b['upper'] for b in config.get_symbology_config()['bands']] == [15, 30, None]

    def test_user_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({
            "layout": {"mobile_breakpoint_px": 600},
            "routes": {"walk": {"color": "#000000"}}
        }))

        config = ParkingMapConfig(str(path))

        assert config.get_layout_settings()['mobile_breakpoint_px'] == 600
        assert config.get_layout_settings()['default_viewport_width'] == 1280
        assert config.get_route_settings()['walk']['color'] == "#000000"
        assert config.get_route_settings()['walk']['dash_array'] == '10, 10'

    def test_invalid_file_falls_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        config = ParkingMapConfig(str(path))

        assert config.config == config.default_config
        assert "Failed to load config" in caplog.text

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        config = ParkingMapConfig(str(path))
        config.get_map_settings()["default_zoom"] = 14
        config.save_config()

        reloaded = ParkingMapConfig(str(path))

        assert reloaded.get_map_settings()['default_zoom'] == 14

    def test_reset_does_not_share_state_with_defaults(self, config):
        config.get_symbology_config()["unknown_color"] = "#123456"
        config.reset_to_defaults()
        config.get_map_settings()['height'] = 1

        assert config.get_symbology_config()['unknown_color'] == "#9ca3af"
        assert config.default_config['map_settings']['height'] == 720
