"""
Settings management for PDF Joiner.

Stores settings in a JSON file under the user's app data directory.
The "don't ask again" answer to the Ghostscript install prompt is not a
setting: it only lives for the running process (see GhostscriptService).
"""
import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Dict, Any

from .sanitize import get_logger


# Application name for settings directory
APP_NAME = "PDFJoiner"


def get_app_data_dir() -> Path:
    """
    Get the application data directory.

    Returns:
        Path to app data directory (created if doesn't exist)
    """
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
    else:  # Unix/Mac
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))

    app_dir = base / APP_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_settings_path() -> Path:
    """Get path to settings file."""
    return get_app_data_dir() / "settings.json"


def get_log_path() -> Path:
    """Get path to log file."""
    return get_app_data_dir() / "app.log"


def default_install_dir() -> str:
    """Directory the silent Ghostscript installer is pointed at."""
    program_files = os.environ.get('PROGRAMFILES', 'C:\\Program Files')
    return str(Path(program_files) / "gs" / "gs10.00.0")


@dataclass
class AppSettings:
    """
    Application settings.

    All settings are non-sensitive and safe to store in plain JSON.
    """

    # Ghostscript
    ghostscript_path: str = ""  # Empty = auto-detect
    auto_install_ghostscript: bool = True  # Windows only
    ghostscript_install_dir: str = ""  # Empty = %PROGRAMFILES%\gs\gs10.00.0

    # Installer download
    max_redirects: int = 10
    download_timeout: float = 60.0
    install_verify_timeout: float = 10.0
    install_poll_interval: float = 1.0

    # Rendering and conversion
    thumbnail_resolution: int = 72
    pdfa_level: int = 2

    # Recent paths (for convenience)
    last_open_directory: str = ""
    last_save_directory: str = ""

    # UI settings
    window_width: int = 1200
    window_height: int = 800

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppSettings':
        """Create settings from dictionary."""
        # Filter to only known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)

    @property
    def install_dir(self) -> str:
        """Effective Ghostscript install directory."""
        return self.ghostscript_install_dir or default_install_dir()


class SettingsManager:
    """
    Manages loading and saving application settings.

    Thread-safe for reading; writing should be done from main thread.
    """

    def __init__(self, settings_path: Optional[Path] = None):
        self._settings: Optional[AppSettings] = None
        self._settings_path = settings_path or get_settings_path()
        self._logger = get_logger()

    @property
    def settings(self) -> AppSettings:
        """Get current settings, loading from file if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> AppSettings:
        """
        Load settings from file.

        Returns:
            Loaded settings, or defaults if file doesn't exist or is invalid
        """
        if not self._settings_path.exists():
            self._logger.info("No settings file found, using defaults")
            return AppSettings()

        try:
            with open(self._settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._logger.info("Settings loaded from file")
            return AppSettings.from_dict(data)
        except (json.JSONDecodeError, TypeError, AttributeError, IOError) as e:
            self._logger.warning(f"Failed to load settings: {e}, using defaults")
            return AppSettings()

    def save(self, settings: Optional[AppSettings] = None) -> bool:
        """
        Save settings to file.

        Args:
            settings: Settings to save (uses current if None)

        Returns:
            True if saved successfully
        """
        if settings is not None:
            self._settings = settings

        if self._settings is None:
            return False

        try:
            self._settings_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._settings_path, 'w', encoding='utf-8') as f:
                json.dump(self._settings.to_dict(), f, indent=2)

            self._logger.info("Settings saved")
            return True
        except IOError as e:
            self._logger.error(f"Failed to save settings: {e}")
            return False

    def reset_to_defaults(self) -> AppSettings:
        """Reset settings to defaults."""
        self._settings = AppSettings()
        self.save()
        return self._settings


# Global settings manager instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """Get the global settings manager."""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager