"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database connections and schema (SQLite)
- Logging (Loguru)
- Shared exception types

Clean architecture principle: The core layer has no dependencies on
domain or web layers.
"""

# Configuration
from .config import (
    Config,
    ServerConfig,
    StorageConfig,
    PlayerConfig,
    CatalogConfig,
    LoggingConfig,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
)

# Database
from .database import (
    SCHEMA_VERSION,
    get_db_connection,
    open_connection,
    init_database,
    memory_database_uri,
)

# Exceptions
from .exceptions import (
    TunestreamError,
    NotFoundError,
    AccessDeniedError,
    AuthenticationError,
    ValidationError,
    ConflictError,
)

# Logging
from .output import setup_loguru

__all__ = [
    # Config
    "Config",
    "ServerConfig",
    "StorageConfig",
    "PlayerConfig",
    "CatalogConfig",
    "LoggingConfig",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    # Database
    "SCHEMA_VERSION",
    "get_db_connection",
    "open_connection",
    "init_database",
    "memory_database_uri",
    # Exceptions
    "TunestreamError",
    "NotFoundError",
    "AccessDeniedError",
    "AuthenticationError",
    "ValidationError",
    "ConflictError",
    # Logging
    "setup_loguru",
]
