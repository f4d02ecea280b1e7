"""Application settings singleton - single source of truth for configuration

This module provides a singleton Settings class that consolidates:
1. Remote engine constants (logical viewport, key vocabulary limits)
2. Input classification constants (double-click window and distance)
3. Runtime configuration from config.yml

Usage:
    from rvdrive.common.settings import settings

    # Initialize once at startup with loaded config
    config = ConfigLoader.config_load()
    settings.initialize(config)

    # Use anywhere in the application
    scale_x = settings.LOGICAL_VIEWPORT_WIDTH / display.width
    if now - record.timestamp < settings.DOUBLE_CLICK_WINDOW_SEC:
        ...

Only immutable constants and the loaded configuration live here. Per-viewport
mutable state (display size, click record, connection state) is owned by the
objects of each viewport, never by this singleton.
"""

from typing import Optional

from rvdrive.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and engine constants"""

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded application configuration.
        """
        self._config = config

    # =========================================================================
    # Remote Engine Constants
    # =========================================================================

    LOGICAL_VIEWPORT_WIDTH: int = 1280
    """Width of the remote engine's canonical coordinate space

    Every positional command is expressed in this space, never in local
    display pixels.
    """

    LOGICAL_VIEWPORT_HEIGHT: int = 720
    """Height of the remote engine's canonical coordinate space"""

    RESERVED_SHORTCUT_KEYS: frozenset[str] = frozenset({"r", "R", "t", "T", "w", "W"})
    """Keys that stay local when combined with Ctrl or Cmd (reload, new tab, close)"""

    # =========================================================================
    # Input Classification Constants
    # =========================================================================

    DOUBLE_CLICK_WINDOW_SEC: float = 0.3
    """Maximum gap between two clicks reported as one double click (seconds)"""

    DOUBLE_CLICK_DISTANCE_PX: int = 10
    """Per-axis distance, in logical pixels, below which clicks count as the same spot"""

    # =========================================================================
    # Connection Constants
    # =========================================================================

    RECONNECT_BACKOFF_FACTOR: float = 2.0
    """Multiplier applied to the reconnect delay after each failed push attempt"""

    PUSH_MAX_MESSAGE_BYTES: int = 16 * 1024 * 1024
    """Largest push message accepted from the backend (frames are base64 images)"""

    ERROR_BODY_PREVIEW_CHARS: int = 80
    """Characters of an unparseable response body quoted in error messages"""

    # =========================================================================
    # Runtime Configuration Access
    # =========================================================================

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Returns:
            Loaded configuration.

        Raises:
            RuntimeError: If settings were never initialized.
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from rvdrive.common.settings import settings
"""
