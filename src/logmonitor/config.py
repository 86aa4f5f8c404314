"""Process configuration loaded from environment variables.

A ``.env`` file in the working directory is loaded first when present;
variables already set in the environment take precedence over it.

Variables:
    JWT_SECRET: Token signing secret. Required.
    DATABASE_URL: ``sqlite:///path/to.db``, ``sqlite://:memory:`` or a plain
        file path (default: logmonitor.db).
    HOST / PORT: Listener address (default: 0.0.0.0:8080).
    LOG_LEVEL: Logging level name (default: INFO).
    ADMIN_USERNAME / ADMIN_PASSWORD: The single accepted principal.
    DB_MAX_OPEN_CONNS: Connection pool size (default: 25).
    DB_CONN_MAX_LIFETIME: Seconds before a pooled connection is recycled.
    SHUTDOWN_TIMEOUT: Drain window in seconds on shutdown (default: 5).
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from logmonitor.core.errors import ConfigurationError
from logmonitor.core.models import Credentials

DEFAULT_DATABASE_URL = "logmonitor.db"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_MAX_OPEN_CONNS = 25
DEFAULT_CONN_MAX_LIFETIME = 300.0
DEFAULT_SHUTDOWN_TIMEOUT = 5.0
DEFAULT_ENV_FILE = ".env"

_SQLITE_PREFIXES = ("sqlite:///", "sqlite://")


@dataclass(frozen=True)
class Settings:
    """Typed, validated process settings."""

    jwt_secret: str
    database_path: str = DEFAULT_DATABASE_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    admin: Credentials = Credentials(username="admin", password="password")
    max_open_conns: int = DEFAULT_MAX_OPEN_CONNS
    conn_max_lifetime: float = DEFAULT_CONN_MAX_LIFETIME
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return (
            f"Settings(database_path={self.database_path!r}, host={self.host!r}, "
            f"port={self.port}, log_level={self.log_level!r}, "
            f"admin_username={self.admin.username!r}, "
            f"max_open_conns={self.max_open_conns}, "
            f"conn_max_lifetime={self.conn_max_lifetime}, "
            f"shutdown_timeout={self.shutdown_timeout})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: str | os.PathLike[str] | None = DEFAULT_ENV_FILE,
    ) -> "Settings":
        """Build settings from the environment.

        Args:
            environ: Mapping to read from (default: os.environ).
            env_file: Dotenv file loaded into os.environ first, relative to
                the working directory. None skips it.

        Raises:
            ConfigurationError: If JWT_SECRET is missing or a value is malformed.
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        env = os.environ if environ is None else environ

        secret = env.get("JWT_SECRET", "")
        if not secret:
            raise ConfigurationError("JWT_SECRET is empty! Check your .env file.")

        return cls(
            jwt_secret=secret,
            database_path=parse_database_url(
                env.get("DATABASE_URL") or DEFAULT_DATABASE_URL
            ),
            host=env.get("HOST") or DEFAULT_HOST,
            port=_read_int(env, "PORT", DEFAULT_PORT, minimum=0),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            admin=Credentials(
                username=env.get("ADMIN_USERNAME") or "admin",
                password=env.get("ADMIN_PASSWORD") or "password",
            ),
            max_open_conns=_read_int(
                env, "DB_MAX_OPEN_CONNS", DEFAULT_MAX_OPEN_CONNS, minimum=1
            ),
            conn_max_lifetime=_read_float(
                env, "DB_CONN_MAX_LIFETIME", DEFAULT_CONN_MAX_LIFETIME
            ),
            shutdown_timeout=_read_float(
                env, "SHUTDOWN_TIMEOUT", DEFAULT_SHUTDOWN_TIMEOUT
            ),
        )


def parse_database_url(url: str) -> str:
    """Turn DATABASE_URL into a path aiosqlite can open."""
    for prefix in _SQLITE_PREFIXES:
        if url.startswith(prefix):
            path = url[len(prefix) :]
            if not path:
                raise ConfigurationError(f"DATABASE_URL has no path: {url!r}")
            return path
    if "://" in url:
        raise ConfigurationError(f"Unsupported DATABASE_URL scheme: {url!r}")
    return url


def _read_int(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    # Rejects NaN as well as negatives.
    if not value >= 0:
        raise ConfigurationError(f"{name} must be >= 0, got {raw!r}")
    return value
