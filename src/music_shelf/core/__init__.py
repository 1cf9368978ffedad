"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging setup (Loguru)
- Error kinds shared by the domain layer
- Listener subscriptions for observable state

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    Config,
    LoggingConfig,
    PlayerConfig,
    StorageConfig,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_storage_root,
    create_default_config,
)

# Errors
from .errors import (
    MusicShelfError,
    ImportIOError,
    ProbeError,
    DecodeLoadError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
)

# Logging
from .output import setup_loguru, setup_logging_from_config

# Observers
from .observable import Observable

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "PlayerConfig",
    "StorageConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_storage_root",
    "create_default_config",
    # Errors
    "MusicShelfError",
    "ImportIOError",
    "ProbeError",
    "DecodeLoadError",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    # Logging
    "setup_loguru",
    "setup_logging_from_config",
    # Observers
    "Observable",
]
