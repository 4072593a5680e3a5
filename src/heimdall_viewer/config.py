"""Configuration for the viewer."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "HEIMDALL_VIEWER_LOG_LEVEL"


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    # Use XDG_CONFIG_HOME on Linux, or platform-specific defaults
    if os.name == "nt":  # Windows
        return Path(os.environ.get("APPDATA", "~")).expanduser() / "heimdall-viewer"
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "heimdall-viewer"
    return Path.home() / ".config" / "heimdall-viewer"


def get_config_file() -> Path:
    """Get the configuration file path."""
    return get_config_dir() / "config.json"


@dataclass
class ViewerConfig:
    """Configuration for the desktop viewer."""

    # Window
    window_width: int = 1200
    window_height: int = 800

    # Status bar messages clear after these delays (ms)
    status_timeout_ms: int = 3000
    error_timeout_ms: int = 5000

    # Canvas controls
    zoom_in_factor: float = 1.2
    zoom_out_factor: float = 0.8
    nudge_step: int = 10
    fit_padding: int = 50

    # Logging
    log_level: str = "WARNING"
    dev_mode: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ViewerConfig":
        """Create config from dictionary."""
        return cls(
            window_width=data.get("window_width", 1200),
            window_height=data.get("window_height", 800),
            status_timeout_ms=data.get("status_timeout_ms", 3000),
            error_timeout_ms=data.get("error_timeout_ms", 5000),
            zoom_in_factor=data.get("zoom_in_factor", 1.2),
            zoom_out_factor=data.get("zoom_out_factor", 0.8),
            nudge_step=data.get("nudge_step", 10),
            fit_padding=data.get("fit_padding", 50),
            log_level=os.environ.get(LOG_LEVEL_ENV) or data.get("log_level", "WARNING"),
            dev_mode=data.get("dev_mode", False),
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "window_width": self.window_width,
            "window_height": self.window_height,
            "status_timeout_ms": self.status_timeout_ms,
            "error_timeout_ms": self.error_timeout_ms,
            "zoom_in_factor": self.zoom_in_factor,
            "zoom_out_factor": self.zoom_out_factor,
            "nudge_step": self.nudge_step,
            "fit_padding": self.fit_padding,
            "log_level": self.log_level,
            "dev_mode": self.dev_mode,
        }

    @property
    def effective_log_level(self) -> str:
        """Log level, forced to DEBUG in dev mode."""
        return "DEBUG" if self.dev_mode else self.log_level.upper()


def load_config(path: Optional[Path] = None) -> ViewerConfig:
    """Load the config file, falling back to defaults.

    A missing or unreadable file is not an error.
    """
    config_file = path or get_config_file()
    data: dict = {}
    if config_file.exists():
        try:
            loaded = json.loads(config_file.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                data = loaded
            else:
                logger.warning(f"Ignoring config file {config_file}: not a JSON object")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring config file {config_file}: {e}")
    return ViewerConfig.from_dict(data)
