"""
settings.py

Persistent settings management for PictoGuide.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/pictoguide/settings.toml
    - macOS: ~/Library/Application Support/pictoguide/settings.toml
    - Linux: ~/.config/pictoguide/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from utils import to_bool, to_float

APP_NAME = "pictoguide"

log = logging.getLogger(__name__)

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Guide Settings
# =============================================================================

@dataclass
class GuideSnapSettings:
    """Guide snapping behaviour.

    Defaults:
        default_tolerance: 6.0
        snap_to_grid: False
        show_drag_info: True
    """
    default_tolerance: float = 6.0   # Default: 6.0 drawing units
    snap_to_grid: bool = False       # Default: False (shift-drag forces it)
    show_drag_info: bool = True      # Default: True


@dataclass
class GuideAppearanceSettings:
    """Guide colour and redraw rect settings.

    Defaults:
        color: "#4A90E2"
        rect_margin: 2.0
        margin_extension: 100.0
        extend_into_margin: False
    """
    color: str = "#4A90E2"             # Default: blue
    rect_margin: float = 2.0           # Default: 2.0 units either side of the line
    margin_extension: float = 100.0    # Default: 100.0 units past each drawing edge
    extend_into_margin: bool = False   # Default: False


@dataclass
class GuideLayerSettings:
    """Drawing bounds used by a new guide layer.

    Defaults:
        drawing_width: 595.0
        drawing_height: 842.0
    """
    drawing_width: float = 595.0    # Default: A4 width in points
    drawing_height: float = 842.0   # Default: A4 height in points


@dataclass
class GuideSettings:
    """All guide-related settings."""
    snap: GuideSnapSettings = field(default_factory=GuideSnapSettings)
    appearance: GuideAppearanceSettings = field(default_factory=GuideAppearanceSettings)
    layer: GuideLayerSettings = field(default_factory=GuideLayerSettings)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        guides: Guide-related settings.
    """
    guides: GuideSettings = field(default_factory=GuideSettings)


# =============================================================================
# Settings Manager
# =============================================================================

def _table(parent: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return parent[key] if it is a TOML table, else an empty dict."""
    value = parent.get(key, {})
    if isinstance(value, dict):
        return value
    log.warning("Ignoring [guides.%s] in settings: not a table", key)
    return {}


class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Optional explicit directory, overriding the platform one.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, tomllib.TOMLDecodeError) as e:
            # If file is corrupted or invalid, return defaults
            log.warning("Could not read %s, using defaults: %s", self.settings_file, e)
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Values of the wrong type keep their defaults, as does a section
        that is not a table.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        guides = data.get("guides", {})
        if not isinstance(guides, dict):
            log.warning("Ignoring [guides] in %s: not a table", self.settings_file)
            return settings

        s = _table(guides, "snap")
        snap = settings.guides.snap
        snap.default_tolerance = to_float(s.get("default_tolerance"), snap.default_tolerance)
        snap.snap_to_grid = to_bool(s.get("snap_to_grid"), snap.snap_to_grid)
        snap.show_drag_info = to_bool(s.get("show_drag_info"), snap.show_drag_info)

        a = _table(guides, "appearance")
        appearance = settings.guides.appearance
        color = a.get("color", appearance.color)
        appearance.color = color if isinstance(color, str) else appearance.color
        appearance.rect_margin = to_float(a.get("rect_margin"), appearance.rect_margin)
        appearance.margin_extension = to_float(a.get("margin_extension"), appearance.margin_extension)
        appearance.extend_into_margin = to_bool(a.get("extend_into_margin"), appearance.extend_into_margin)

        ly = _table(guides, "layer")
        layer = settings.guides.layer
        layer.drawing_width = to_float(ly.get("drawing_width"), layer.drawing_width)
        layer.drawing_height = to_float(ly.get("drawing_height"), layer.drawing_height)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        # Convert settings to TOML structure
        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "guides": {
                "snap": {
                    "default_tolerance": s.guides.snap.default_tolerance,
                    "snap_to_grid": s.guides.snap.snap_to_grid,
                    "show_drag_info": s.guides.snap.show_drag_info,
                },
                "appearance": {
                    "color": s.guides.appearance.color,
                    "rect_margin": s.guides.appearance.rect_margin,
                    "margin_extension": s.guides.appearance.margin_extension,
                    "extend_into_margin": s.guides.appearance.extend_into_margin,
                },
                "layer": {
                    "drawing_width": s.guides.layer.drawing_width,
                    "drawing_height": s.guides.layer.drawing_height,
                },
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
