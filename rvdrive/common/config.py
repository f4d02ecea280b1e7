"""Configuration file loading and management"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

BACKEND_URL_ENV = "RVDRIVE_BACKEND_URL"


@dataclass
class BackendConfig:
    """Remote automation backend settings"""
    url: Optional[str]
    request_timeout_seconds: float


@dataclass
class ReconnectConfig:
    """Push channel reconnection settings"""
    enabled: bool
    delay_seconds: float
    max_delay_seconds: float


@dataclass
class ConnectionConfig:
    """Frame acquisition settings"""
    poll_interval_ms: int
    reconnect: ReconnectConfig


@dataclass
class ViewportConfig:
    """Initial local display surface size"""
    display_width: int
    display_height: int


@dataclass
class SuggestionsConfig:
    """Address-bar suggestion lookup settings"""
    debounce_ms: int
    limit: int
    min_query_length: int


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str
    file: Optional[str]
    format: str


@dataclass
class Config:
    """Complete application configuration"""
    backend: BackendConfig
    connection: ConnectionConfig
    viewport: ViewportConfig
    suggestions: SuggestionsConfig
    logging: LoggingConfig


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/rvdrive/config.yml",
        "/etc/rvdrive/config.yml",
    ]

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every section falls back to defaults suitable for a local backend. The
        backend URL may come from the environment, so it is checked later.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object

        Raises:
            ValueError: If timing values are out of range
        """
        backend_data = data.get("backend") or {}
        backend = BackendConfig(
            url=backend_data.get("url"),
            request_timeout_seconds=float(backend_data.get("request_timeout_seconds", 10.0)),
        )

        connection_data = data.get("connection", {})
        reconnect_data = connection_data.get("reconnect", {})
        reconnect = ReconnectConfig(
            enabled=reconnect_data.get("enabled", True),
            delay_seconds=float(reconnect_data.get("delay_seconds", 1.0)),
            max_delay_seconds=float(reconnect_data.get("max_delay_seconds", 15.0)),
        )
        if reconnect.delay_seconds <= 0:
            raise ValueError("connection.reconnect.delay_seconds must be positive")
        if reconnect.max_delay_seconds < reconnect.delay_seconds:
            raise ValueError(
                "connection.reconnect.max_delay_seconds must be >= delay_seconds"
            )
        connection = ConnectionConfig(
            poll_interval_ms=int(connection_data.get("poll_interval_ms", 1000)),
            reconnect=reconnect,
        )
        if connection.poll_interval_ms <= 0:
            raise ValueError("connection.poll_interval_ms must be positive")

        viewport_data = data.get("viewport", {})
        viewport = ViewportConfig(
            display_width=int(viewport_data.get("display_width", 1280)),
            display_height=int(viewport_data.get("display_height", 720)),
        )

        suggestions_data = data.get("suggestions", {})
        suggestions = SuggestionsConfig(
            debounce_ms=int(suggestions_data.get("debounce_ms", 300)),
            limit=int(suggestions_data.get("limit", 5)),
            min_query_length=int(suggestions_data.get("min_query_length", 2)),
        )

        logging_data = data.get("logging", {})
        logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
        )

        return Config(
            backend=backend,
            connection=connection,
            viewport=viewport,
            suggestions=suggestions,
            logging=logging,
        )

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard locations.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                raise FileNotFoundError(
                    f"Config file not found in standard locations: "
                    f"{ConfigLoader.DEFAULT_CONFIG_PATHS}"
                )

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply environment and command-line overrides

        Precedence is command line, then RVDRIVE_BACKEND_URL, then the file.

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(
                backend_url="https://host.example/api",
                display_width=640,
            )
        """
        config = ConfigLoader.config_load(file_path)

        env_url = os.environ.get(BACKEND_URL_ENV)
        if env_url:
            config.backend.url = env_url
        if overrides.get("backend_url") is not None:
            config.backend.url = overrides["backend_url"]

        if overrides.get("display_width") is not None:
            config.viewport.display_width = overrides["display_width"]
        if overrides.get("display_height") is not None:
            config.viewport.display_height = overrides["display_height"]
        if overrides.get("poll_interval_ms") is not None:
            config.connection.poll_interval_ms = overrides["poll_interval_ms"]

        return config
