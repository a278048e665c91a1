"""
Configuration management for Tunestream
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173"]
    )
    session_secret: str = "tunestream-dev-secret-change-me"
    session_max_age: int = 14 * 24 * 60 * 60  # 14 days
    https_only: bool = False

    def validate(self) -> None:
        """Validate server configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535")
        if not self.session_secret:
            raise ValueError("session_secret must not be empty")


@dataclass
class StorageConfig:
    """Configuration for the catalog database."""

    database_path: Optional[str] = None  # None = <data dir>/tunestream.db
    seed_subscription_plans: bool = True

    def resolve_path(self) -> str:
        """Return the database path, falling back to the data directory."""
        if self.database_path == ":memory:":
            return self.database_path
        if self.database_path:
            return str(Path(self.database_path).expanduser())
        return str(get_data_dir() / "tunestream.db")


@dataclass
class PlayerConfig:
    """Configuration for playback sessions."""

    preview_duration: float = 15.0  # seconds
    default_volume: float = 1.0
    restart_threshold: float = 3.0  # "previous" restarts the track after this

    def validate(self) -> None:
        if self.preview_duration <= 0:
            raise ValueError(
                f"preview_duration must be positive, got {self.preview_duration}"
            )
        if not 0.0 <= self.default_volume <= 1.0:
            raise ValueError(
                f"default_volume must be between 0 and 1, got {self.default_volume}"
            )
        if self.restart_threshold < 0:
            raise ValueError("restart_threshold must not be negative")


@dataclass
class CatalogConfig:
    """Configuration for catalog listings and pricing."""

    page_size: int = 50
    new_releases_limit: int = 10
    similar_tracks_limit: int = 5
    album_price: int = 999  # cents


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    log_file: Optional[str] = None  # default: <data dir>/tunestream.log
    rotation: str = "10 MB"
    retention: int = 5
    console_output: bool = False

    def validate(self) -> None:
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.level}. Valid levels are: {sorted(VALID_LOG_LEVELS)}"
            )

    def resolve_log_file(self) -> Path:
        if self.log_file:
            return Path(self.log_file).expanduser()
        return get_data_dir() / "tunestream.log"


@dataclass
class Config:
    """Main configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.server.validate()
        self.player.validate()
        self.logging.validate()


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "tunestream"
    return Path.home() / ".config" / "tunestream"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "tunestream"
    return Path.home() / ".local" / "share" / "tunestream"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. TUNESTREAM_CONFIG environment variable
    2. Current working directory
    3. XDG_CONFIG_HOME/tunestream (or ~/.config/tunestream)
    """
    env_path = os.environ.get("TUNESTREAM_CONFIG")
    if env_path:
        return Path(env_path).expanduser()

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Tunestream Configuration

[server]
host = "127.0.0.1"
port = 8000

# Origins allowed to call the API from a browser
allowed_origins = ["http://localhost:5173"]

# Secret used to sign session cookies (override with TUNESTREAM_SESSION_SECRET)
# session_secret = "change-me"

# Session cookie lifetime in seconds
session_max_age = 1209600

# Only send the session cookie over HTTPS
https_only = false

[storage]
# SQLite database file (default: ~/.local/share/tunestream/tunestream.db)
# Use ":memory:" for a throwaway in-memory catalog
# database_path = "/path/to/tunestream.db"

# Create the Free/Premium/Ultimate plans on first start
seed_subscription_plans = true

[player]
# Seconds of an unpurchased track a free listener can hear
preview_duration = 15

# Initial volume for new playback sessions (0.0 - 1.0)
default_volume = 1.0

# "Previous" restarts the current track once it has played this many seconds
restart_threshold = 3

[catalog]
page_size = 50
new_releases_limit = 10
similar_tracks_limit = 5

# Album price in cents
album_price = 999

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/tunestream/tunestream.log)
# log_file = "/path/to/custom/tunestream.log"

# Rotate the log file at this size
rotation = "10 MB"

# Number of rotated files to keep
retention = 5

# Also output logs to stderr
console_output = false
""".strip()


def _apply_env_overrides(config: Config) -> None:
    """Environment variables win over TOML values."""
    secret = os.environ.get("TUNESTREAM_SESSION_SECRET")
    if secret:
        config.server.session_secret = secret

    database = os.environ.get("TUNESTREAM_DATABASE")
    if database:
        config.storage.database_path = database

    origins = os.environ.get("ALLOWED_ORIGINS")
    if origins:
        config.server.allowed_origins = [
            origin.strip() for origin in origins.split(",") if origin.strip()
        ]

    log_level = os.environ.get("TUNESTREAM_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data. Unknown keys are ignored."""
    config = Config()

    if "server" in toml_data:
        data = toml_data["server"]
        config.server = ServerConfig(
            host=data.get("host", config.server.host),
            port=int(data.get("port", config.server.port)),
            allowed_origins=list(
                data.get("allowed_origins", config.server.allowed_origins)
            ),
            session_secret=data.get("session_secret", config.server.session_secret),
            session_max_age=int(
                data.get("session_max_age", config.server.session_max_age)
            ),
            https_only=data.get("https_only", config.server.https_only),
        )

    if "storage" in toml_data:
        data = toml_data["storage"]
        config.storage = StorageConfig(
            database_path=data.get("database_path"),
            seed_subscription_plans=data.get(
                "seed_subscription_plans", config.storage.seed_subscription_plans
            ),
        )

    if "player" in toml_data:
        data = toml_data["player"]
        config.player = PlayerConfig(
            preview_duration=float(
                data.get("preview_duration", config.player.preview_duration)
            ),
            default_volume=float(
                data.get("default_volume", config.player.default_volume)
            ),
            restart_threshold=float(
                data.get("restart_threshold", config.player.restart_threshold)
            ),
        )

    if "catalog" in toml_data:
        data = toml_data["catalog"]
        config.catalog = CatalogConfig(
            page_size=int(data.get("page_size", config.catalog.page_size)),
            new_releases_limit=int(
                data.get("new_releases_limit", config.catalog.new_releases_limit)
            ),
            similar_tracks_limit=int(
                data.get("similar_tracks_limit", config.catalog.similar_tracks_limit)
            ),
            album_price=int(data.get("album_price", config.catalog.album_price)),
        )

    if "logging" in toml_data:
        data = toml_data["logging"]
        config.logging = LoggingConfig(
            level=data.get("level", config.logging.level),
            log_file=data.get("log_file"),
            rotation=data.get("rotation", config.logging.rotation),
            retention=int(data.get("retention", config.logging.retention)),
            console_output=data.get("console_output", config.logging.console_output),
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - TUNESTREAM_SESSION_SECRET
    - TUNESTREAM_DATABASE
    - ALLOWED_ORIGINS
    - TUNESTREAM_LOG_LEVEL

    Raises:
        ValueError: If the file contains invalid values
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        config = Config()
    else:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = parse_config(toml_data)

    _apply_env_overrides(config)
    config.validate()
    return config
