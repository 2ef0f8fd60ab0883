"""
settings.py

Persistent settings management for the diagram canvas.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/diagramcanvas/settings.toml
    - macOS: ~/Library/Application Support/diagramcanvas/settings.toml
    - Linux: ~/.config/diagramcanvas/settings.toml

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

APP_NAME = "diagramcanvas"

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


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (``None`` resets to lazy default)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasGridSettings:
    """Background dot grid settings.

    Defaults:
        spacing: 100.0
        major_radius: 8.0
        minor_radius: 6.0
        max_zoom: 5.0
        color: "#C8CDD5"
    """
    spacing: float = 100.0       # Default: 100.0 logical units
    major_radius: float = 8.0    # Default: 8.0 units
    minor_radius: float = 6.0    # Default: 6.0 units
    max_zoom: float = 5.0        # Default: 5.0 (grid hidden at or above)
    color: str = "#C8CDD5"       # Default: light gray


@dataclass
class CanvasShapeSettings:
    """Shape drawing settings.

    Defaults:
        accent_color: "#4F6BED"
        default_corner_radius: 0.0
        line_width: 2.0
    """
    accent_color: str = "#4F6BED"        # Default: indigo
    default_corner_radius: float = 0.0   # Default: 0.0 units
    line_width: float = 2.0              # Default: 2.0 pixels


@dataclass
class CanvasHandleSettings:
    """Selection handle settings.

    Defaults:
        size: 8.0
        color: "#F97316"
    """
    size: float = 8.0          # Default: 8.0 pixels
    color: str = "#F97316"     # Default: orange


@dataclass
class CanvasSelectionSettings:
    """Selection appearance settings.

    Defaults:
        outline_color: "#F97316"
        line_width: 1.0
    """
    outline_color: str = "#F97316"  # Default: orange
    line_width: float = 1.0         # Default: 1.0 pixel


@dataclass
class CanvasZoomSettings:
    """Zoom behavior settings.

    Defaults:
        factor: 1.0
    """
    factor: float = 1.0  # Default: 1.0 (surface pixels per layout unit)


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    background_color: str = "#FFFFFF"  # Default: white
    grid: CanvasGridSettings = field(default_factory=CanvasGridSettings)
    shapes: CanvasShapeSettings = field(default_factory=CanvasShapeSettings)
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)


# =============================================================================
# Storage / Logging Settings
# =============================================================================

@dataclass
class StorageSettings:
    """Key-value store settings.

    Defaults:
        data_dir: "" (platform user data dir)
        elements_key: "diagram.elements"
    """
    data_dir: str = ""                       # Default: "" (platformdirs user data dir)
    elements_key: str = "diagram.elements"   # Default: "diagram.elements"


@dataclass
class LoggingSettings:
    """Logging and trace settings.

    Defaults:
        level: "INFO"
        trace: False
        trace_paint: False
        log_file: ""
    """
    level: str = "INFO"        # Default: "INFO"
    trace: bool = False        # Default: False
    trace_paint: bool = False  # Default: False (very verbose)
    log_file: str = ""         # Default: "" (stderr only)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        canvas: Canvas-related settings.
        storage: Persistence store settings.
        logging: Logging and trace settings.
    """
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory, overriding the platform location.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        self.app_name = app_name
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
        except (OSError, tomllib.TOMLDecodeError) as e:
            log.warning("Ignoring unreadable settings file %s: %s", self.settings_file, e)
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # Canvas section
        canvas = data.get("canvas", {})
        settings.canvas.background_color = canvas.get("background_color", settings.canvas.background_color)
        if "grid" in canvas:
            g = canvas["grid"]
            settings.canvas.grid.spacing = g.get("spacing", settings.canvas.grid.spacing)
            settings.canvas.grid.major_radius = g.get("major_radius", settings.canvas.grid.major_radius)
            settings.canvas.grid.minor_radius = g.get("minor_radius", settings.canvas.grid.minor_radius)
            settings.canvas.grid.max_zoom = g.get("max_zoom", settings.canvas.grid.max_zoom)
            settings.canvas.grid.color = g.get("color", settings.canvas.grid.color)
        if "shapes" in canvas:
            s = canvas["shapes"]
            settings.canvas.shapes.accent_color = s.get("accent_color", settings.canvas.shapes.accent_color)
            settings.canvas.shapes.default_corner_radius = s.get("default_corner_radius", settings.canvas.shapes.default_corner_radius)
            settings.canvas.shapes.line_width = s.get("line_width", settings.canvas.shapes.line_width)
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.size = h.get("size", settings.canvas.handles.size)
            settings.canvas.handles.color = h.get("color", settings.canvas.handles.color)
        if "selection" in canvas:
            sel = canvas["selection"]
            settings.canvas.selection.outline_color = sel.get("outline_color", settings.canvas.selection.outline_color)
            settings.canvas.selection.line_width = sel.get("line_width", settings.canvas.selection.line_width)
        if "zoom" in canvas:
            zm = canvas["zoom"]
            settings.canvas.zoom.factor = zm.get("factor", settings.canvas.zoom.factor)

        # Storage section
        storage = data.get("storage", {})
        settings.storage.data_dir = storage.get("data_dir", settings.storage.data_dir)
        settings.storage.elements_key = storage.get("elements_key", settings.storage.elements_key)

        # Logging section
        lg = data.get("logging", {})
        settings.logging.level = lg.get("level", settings.logging.level)
        settings.logging.trace = lg.get("trace", settings.logging.trace)
        settings.logging.trace_paint = lg.get("trace_paint", settings.logging.trace_paint)
        settings.logging.log_file = lg.get("log_file", settings.logging.log_file)

        self._check_positive(settings)
        return settings

    def _check_positive(self, settings: AppSettings) -> None:
        """Replace non-positive grid spacing or zoom factor with the defaults."""
        defaults = CanvasSettings()
        if not settings.canvas.grid.spacing > 0:
            log.warning("canvas.grid.spacing must be positive, got %r; using %r",
                        settings.canvas.grid.spacing, defaults.grid.spacing)
            settings.canvas.grid.spacing = defaults.grid.spacing
        if not settings.canvas.zoom.factor > 0:
            log.warning("canvas.zoom.factor must be positive, got %r; using %r",
                        settings.canvas.zoom.factor, defaults.zoom.factor)
            settings.canvas.zoom.factor = defaults.zoom.factor

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

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
            "canvas": {
                "background_color": s.canvas.background_color,
                "grid": {
                    "spacing": s.canvas.grid.spacing,
                    "major_radius": s.canvas.grid.major_radius,
                    "minor_radius": s.canvas.grid.minor_radius,
                    "max_zoom": s.canvas.grid.max_zoom,
                    "color": s.canvas.grid.color,
                },
                "shapes": {
                    "accent_color": s.canvas.shapes.accent_color,
                    "default_corner_radius": s.canvas.shapes.default_corner_radius,
                    "line_width": s.canvas.shapes.line_width,
                },
                "handles": {
                    "size": s.canvas.handles.size,
                    "color": s.canvas.handles.color,
                },
                "selection": {
                    "outline_color": s.canvas.selection.outline_color,
                    "line_width": s.canvas.selection.line_width,
                },
                "zoom": {
                    "factor": s.canvas.zoom.factor,
                },
            },
            "storage": {
                "data_dir": s.storage.data_dir,
                "elements_key": s.storage.elements_key,
            },
            "logging": {
                "level": s.logging.level,
                "trace": s.logging.trace,
                "trace_paint": s.logging.trace_paint,
                "log_file": s.logging.log_file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        return tomli_w.dumps(self._to_toml_dict())

    def get_data_dir(self) -> Path:
        """Get the resolved data directory for the key-value store.

        Returns:
            Path to the data directory. Falls back to the platformdirs user
            data directory if the data_dir setting is empty.
        """
        if self.settings.storage.data_dir:
            return Path(self.settings.storage.data_dir)
        return Path(platformdirs.user_data_dir(self.app_name))

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
