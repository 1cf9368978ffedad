"""
Configuration management for music-shelf
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class StorageConfig:
    """Configuration for the managed storage area."""

    root: Optional[str] = None  # Default: XDG data dir (~/.local/share/music-shelf)
    bundled_songs_dir: Optional[str] = None  # Read-only songs shipped with the app


@dataclass
class PlayerConfig:
    """Configuration for the playback backend."""

    mpv_socket_path: Optional[str] = None
    volume: int = 70
    tick_interval: float = 0.5  # Progress polling interval in seconds
    load_timeout: float = 2.0  # Seconds to wait for mpv to report a duration

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0 <= self.volume <= 100:
            raise ValueError(f"Invalid volume: {self.volume}. Must be between 0 and 100")
        if self.tick_interval <= 0:
            raise ValueError(f"Invalid tick_interval: {self.tick_interval}. Must be positive")
        if self.load_timeout <= 0:
            raise ValueError(f"Invalid load_timeout: {self.load_timeout}. Must be positive")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/music-shelf/music-shelf.log)
    )
    rotation: str = "10 MB"  # Rotate the log file once it reaches this size
    retention: int = 5  # Number of rotated files to keep
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "music-shelf"
    return Path.home() / ".config" / "music-shelf"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the current working directory first, then
    falls back to XDG_CONFIG_HOME/music-shelf (or ~/.config/music-shelf).
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "music-shelf"
    return Path.home() / ".local" / "share" / "music-shelf"


def get_storage_root(config: Config) -> Path:
    """Resolve the managed storage root from config, falling back to the data dir."""
    if config.storage.root:
        return Path(config.storage.root).expanduser()
    return get_data_dir()


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# music-shelf Configuration

[storage]
# Managed storage root holding library.json, Tracks/ and Songs/
# (default: ~/.local/share/music-shelf)
# root = "~/Music/music-shelf"

# Directory with songs shipped alongside the application; copied into Songs/
# bundled_songs_dir = "/usr/share/music-shelf/Songs"

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/music-shelf-mpv"

# Default volume (0-100)
volume = 70

# Seconds between playback progress updates
tick_interval = 0.5

# Seconds to wait for mpv to report a track duration
load_timeout = 2.0

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/music-shelf/music-shelf.log)
# log_file = "/path/to/custom/music-shelf.log"

# Rotate the log file once it reaches this size
rotation = "10 MB"

# Number of rotated log files to keep
retention = 5

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MUSIC_SHELF_ROOT
    - MUSIC_SHELF_LOG_LEVEL
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            logger.info(f"Created default configuration at: {config_path}")
        except OSError as e:
            logger.warning(f"Could not write default configuration to {config_path}: {e}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        return _apply_env_overrides(Config())

    config = Config()

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        config.storage = StorageConfig(
            root=storage_data.get("root", config.storage.root),
            bundled_songs_dir=storage_data.get(
                "bundled_songs_dir", config.storage.bundled_songs_dir
            ),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
            tick_interval=player_data.get("tick_interval", config.player.tick_interval),
            load_timeout=player_data.get("load_timeout", config.player.load_timeout),
        )
        try:
            config.player.validate()
        except ValueError as e:
            logger.warning(f"Invalid player configuration: {e}")
            logger.warning("Using default player configuration.")
            config.player = PlayerConfig()

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            rotation=logging_data.get("rotation", config.logging.rotation),
            retention=logging_data.get("retention", config.logging.retention),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )
        if config.logging.level not in VALID_LOG_LEVELS:
            logger.warning(
                f"Invalid log level: {config.logging.level}. Falling back to INFO"
            )
            config.logging.level = "INFO"

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    storage_root = os.environ.get("MUSIC_SHELF_ROOT")
    if storage_root:
        config.storage.root = storage_root

    log_level = os.environ.get("MUSIC_SHELF_LOG_LEVEL")
    if log_level and log_level.upper() in VALID_LOG_LEVELS:
        config.logging.level = log_level.upper()

    return config
