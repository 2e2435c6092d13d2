"""
Environment-backed settings.

Values are read lazily through small accessor functions so tests can tweak
the environment (monkeypatch) before the app starts.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:./forms.db"
DEFAULT_CORS_ORIGIN = "http://localhost:5173"
DEFAULT_STATIC_DIR = "www"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3005
DEFAULT_LOG_LEVEL = "info"

SQLITE_SCHEMES = ("sqlite",)
POSTGRES_SCHEMES = ("postgres", "postgresql")

LOG_LEVELS = {"critical", "error", "warning", "info", "debug"}


# Startup-time misconfiguration. Always fatal.
class ConfigError(RuntimeError):
    pass


def load_env_file() -> None:
    # Existing environment variables win over `.env` entries.
    load_dotenv(override=False)


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def url_scheme(url: str) -> str:
    scheme, sep, _ = url.partition(":")
    if not sep:
        return ""
    return scheme.lower()


def database_url() -> str:
    url = _env_str("DATABASE_URL", DEFAULT_DATABASE_URL)
    scheme = url_scheme(url)
    if scheme not in SQLITE_SCHEMES + POSTGRES_SCHEMES:
        raise ConfigError(f"Unsupported DATABASE_URL scheme: {scheme or url!r}.")
    return url


def cors_origins() -> list[str]:
    raw = _env_str("CORS_ORIGIN", DEFAULT_CORS_ORIGIN)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def static_dir() -> str:
    return _env_str("STATIC_DIR", DEFAULT_STATIC_DIR)


def host() -> str:
    return _env_str("HOST", DEFAULT_HOST)


def port() -> int:
    raw = os.environ.get("PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"PORT must be an integer, got {raw!r}.") from e
    if not 0 < value < 65536:
        raise ConfigError(f"PORT out of range: {value}.")
    return value


def log_level() -> str:
    level = _env_str("LOG_LEVEL", DEFAULT_LOG_LEVEL).lower()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Unknown LOG_LEVEL: {level!r}.")
    return level
