"""
Configuration Management for DEPTH HANDS

Loads and provides access to configuration from config.json.
Allows runtime configuration of the detector thresholds, cursor control and
display parameters. Values may be stored directly or as [value, description].
"""

import json
from typing import Dict, Any, Optional, Tuple
from pathlib import Path


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.json"


class Config:
    """
    Singleton configuration manager that loads from config.json
    """
    _instance = None
    _config_data: Dict[str, Any] = {}
    _config_path: str = ""

    def __new__(cls, *args, **kwargs):
        # Extra args (e.g. Config(path)) are accepted so callers can force a reload
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration from JSON file.

        Args:
            config_path: Path to config.json. If provided, force reload from
                         that path. If None, load from the default location
                         only on first initialization.
        """
        if config_path is not None:
            self._config_path = str(config_path)
            self.reload()
            return

        if not self._config_data:
            self._config_path = str(DEFAULT_CONFIG_PATH)
            self.reload()

    def reload(self):
        """Reload configuration from file."""
        try:
            with open(self._config_path, 'r') as f:
                self._config_data = json.load(f)
            print(f"✓ Loaded configuration from {self._config_path}")
        except FileNotFoundError:
            print(f"⚠ Config file not found: {self._config_path}")
            print("  Using default values")
            self._config_data = self._get_defaults()
        except json.JSONDecodeError as e:
            print(f"⚠ Error parsing config file: {e}")
            print("  Using default values")
            self._config_data = self._get_defaults()

    def save(self):
        """Save current configuration back to file."""
        try:
            with open(self._config_path, 'w') as f:
                json.dump(self._config_data, f, indent=2)
            print(f"✓ Saved configuration to {self._config_path}")
        except OSError as e:
            print(f"✗ Error saving config: {e}")

    def get(self, *keys, default=None) -> Any:
        """
        Get configuration value by key path.
        Handles both plain values and the [value, description] format.

        Examples:
            config.get('depth', 'width')  # Returns 512
            config.get('detection', 'selection', 'tip_suppression_radius')

        Args:
            keys: Path to value
            default: Default value if path doesn't exist

        Returns:
            Configuration value or default
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        if isinstance(current, list) and len(current) >= 1:
            return current[0]

        return current

    def get_with_description(self, *keys, default=None) -> Tuple[Any, str]:
        """
        Get configuration value AND description.

        Returns:
            Tuple of (value, description) or (default, "")
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return (default, "")

        if isinstance(current, list):
            if len(current) >= 2:
                return (current[0], current[1])
            elif len(current) == 1:
                return (current[0], "")

        return (current, "")

    def set(self, *keys, value):
        """
        Set configuration value by key path. Keeps the description of
        [value, description] entries.

        Example:
            config.set('cursor_control', 'gain', value=4)
        """
        if len(keys) == 0:
            return

        current = self._config_data
        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        existing = current.get(keys[-1])
        if isinstance(existing, list) and len(existing) >= 2:
            current[keys[-1]] = [value, existing[1]]
        else:
            current[keys[-1]] = value

    def _get_defaults(self) -> Dict:
        """Return default configuration values."""
        return {
            "depth": {
                "width": 512,
                "height": 424,
                "bytes_per_pixel": 2,
                "min_reliable_mm": 500,
                "max_reliable_mm": 4500
            },
            "detection": {
                "region": {
                    "window_half_width": 60,
                    "window_extent_ratio": 1.5,
                    "quantum_mm": 25
                },
                "rays": {
                    "scan_width": 60,
                    "max_steps": 90,
                    "offset_divisor": 1.0,
                    "thumb_rays": 30,
                    "thumb_max_steps": 40,
                    "thumb_angle_step_deg": 3.0,
                    "thumb_axis_sign_right": 1,
                    "thumb_side_sign_right": -1,
                    "thumb_axis_sign_left": 1,
                    "thumb_side_sign_left": 1,
                    "tip_mark_radius": 3
                },
                "selection": {
                    "coefficient": 1.3,
                    "coefficient_decay": 0.05,
                    "min_coefficient": 1.1,
                    "tip_suppression_radius": 7,
                    "thumb_coefficient": 1.5,
                    "max_fingertips_open": 4,
                    "max_fingertips_lasso": 1,
                    "max_fingertips_other": 4
                }
            },
            "cursor_control": {
                "gain": 5,
                "jitter_px": 3,
                "jump_px": 20,
                "dwell_frames": 60,
                "click_button": "left",
                "closed_hand_button_right": "left",
                "closed_hand_button_left": "right"
            },
            "pointer": {
                "bounds_padding": 0,
                "fallback_screen_width": 1920,
                "fallback_screen_height": 1080
            },
            "display": {
                "enabled": True,
                "window_name": "DEPTH HANDS",
                "scale": 1.5,
                "show_guide": True
            },
            "replay": {
                "fps": 30
            }
        }

    @property
    def data(self) -> Dict:
        """Get entire configuration dictionary."""
        return self._config_data

    @property
    def path(self) -> str:
        return self._config_path


# Global configuration instance
config = Config()


# Convenience functions for common access patterns
def get_detection_setting(section: str, param_name: str, default=None):
    """Get a detector parameter ('region', 'rays' or 'selection')."""
    return config.get('detection', section, param_name, default=default)


def get_controller_setting(param_name: str, default=None):
    """Get a cursor control parameter."""
    return config.get('cursor_control', param_name, default=default)


def get_pointer_setting(param_name: str, default=None):
    """Get a pointer device parameter."""
    return config.get('pointer', param_name, default=default)


def get_display_setting(param_name: str, default=None):
    """Get a visualization parameter."""
    return config.get('display', param_name, default=default)


if __name__ == "__main__":
    print("\n=== Configuration Test ===\n")

    print("Detection:")
    print(f"  Window half width: {get_detection_setting('region', 'window_half_width')}")
    print(f"  Scan width: {get_detection_setting('rays', 'scan_width')}")
    print(f"  Suppression radius: {get_detection_setting('selection', 'tip_suppression_radius')}")

    print("\nCursor Control:")
    print(f"  Gain: {get_controller_setting('gain')}")
    print(f"  Dwell frames: {get_controller_setting('dwell_frames')}")

    print("\nDepth:")
    print(f"  Resolution: {config.get('depth', 'width')}x{config.get('depth', 'height')}")

    print("\n✓ Configuration system working!")
