"""
Configuration management for the parking map view.

This module holds map, marker symbology, layout and route settings and merges
an optional JSON file over the built-in defaults.
"""

import json
import os
from typing import Dict, Any, Optional
from pathlib import Path
import copy
import logging

logger = logging.getLogger(__name__)


class ParkingMapConfig:
    """Manages parking map configuration settings."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "parking_map_config.json"
        self.default_config = self._get_default_config()
        self.config = self._load_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default parking map configuration."""
        return {
            "map_settings": {
                "default_zoom": 12,
                "fallback_center": [48.13513, 11.58198],
                "height": 720,
                "tiles": "OpenStreetMap",
                "zoom_control": True
            },
            "symbology": {
                # Bands are checked in order; upper bounds are exclusive
                "bands": [
                    {"band": "green", "upper": 15, "fill_color": "#22c55e"},
                    {"band": "mid", "upper": 30, "fill_color": "#f97316"},
                    {"band": "red", "upper": None, "fill_color": "#ef4444"}
                ],
                "unknown_color": "#9ca3af",
                "border_color": "#0f172a",
                "border_weight": 1,
                "fill_opacity": 1.0,
                "scale": 1.3,
                "shape": "M12 2C8.13 2 5 5.13 5 9c0 5.25 7 13 7 13s7-7.75 7-13c0-3.87-3.13-7-7-7z",
                "label_color": "#0f172a"
            },
            "layout": {
                "mobile_breakpoint_px": 768,
                "default_viewport_width": 1280
            },
            "routes": {
                "timeout_sec": 15,
                "poll_wait_sec": 3,
                "max_workers": 8,
                "drive": {"color": "#2563eb", "weight": 5, "opacity": 0.9, "dash_array": None},
                "walk": {"color": "#16a34a", "weight": 4, "opacity": 0.9, "dash_array": "10, 10"}
            },
            "service": {
                "api_key_env": "GOOGLE_MAPS_API_KEY",
                "request_timeout_sec": 10
            }
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config = json.load(f)
                logger.info(f"Loaded parking map configuration from {self.config_path}")

                return self._merge_configs(self.default_config, config)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")
                return copy.deepcopy(self.default_config)
        else:
            logger.info(f"Config file {self.config_path} not found, using defaults")
            return copy.deepcopy(self.default_config)

    def _merge_configs(self, default: Dict, user: Dict) -> Dict:
        """Recursively merge user config with defaults."""
        merged = copy.deepcopy(default)

        for key, value in user.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            config_dir = Path(self.config_path).parent
            config_dir.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w') as f:
                json.dump(self.config, f, indent=2)
            logger.info(f"Saved parking map configuration to {self.config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")

    def get_map_settings(self) -> Dict[str, Any]:
        """Get map display settings."""
        return self.config["map_settings"]

    def get_symbology_config(self) -> Dict[str, Any]:
        """Get marker symbology configuration."""
        return self.config["symbology"]

    def get_layout_settings(self) -> Dict[str, Any]:
        """Get responsive layout settings."""
        return self.config["layout"]

    def get_route_settings(self) -> Dict[str, Any]:
        """Get route request and styling settings."""
        return self.config["routes"]

    def get_service_settings(self) -> Dict[str, Any]:
        """Get directions service settings."""
        return self.config["service"]

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self.config = copy.deepcopy(self.default_config)
        logger.info("Reset configuration to defaults")


# Global configuration instance
_map_config = None

def get_map_config(config_path: Optional[str] = None) -> ParkingMapConfig:
    """Get global parking map configuration instance."""
    global _map_config
    if _map_config is None:
        _map_config = ParkingMapConfig(config_path)
    return _map_config
