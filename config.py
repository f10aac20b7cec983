"""Application-wide configuration helpers and constants."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final, Mapping

BASE_DIR: Final[Path] = Path(__file__).resolve().parent

try:  # pragma: no cover - optional dependency for local development
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - python-dotenv is optional
    load_dotenv = None  # type: ignore[assignment]

if load_dotenv is not None:
    load_dotenv(BASE_DIR / ".env")


logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing at startup."""


def _clean_text(value: str | None) -> str:
    """Return ``value`` stripped of surrounding whitespace."""

    if value is None:
        return ""
    return value.strip()


def _path_from(env_value: str | None, default: str | Path) -> Path:
    """Resolve a filesystem path using an environment override when provided."""

    text = _clean_text(env_value)
    candidate = Path(text) if text else Path(default)
    candidate = candidate.expanduser()
    if candidate.is_absolute():
        try:
            return candidate.resolve()
        except (OSError, RuntimeError):  # pragma: no cover - fallback for exotic paths
            return candidate
    return candidate


def _coerce_positive_float(value: str | None, default: float) -> float:
    """Return ``value`` coerced to a positive float or ``default`` when invalid."""

    text = _clean_text(value)
    if not text:
        return default
    try:
        numeric = float(text)
    except (TypeError, ValueError):
        return default
    return numeric if numeric > 0 else default


def _coerce_positive_int(value: str | None, default: int) -> int:
    """Return ``value`` coerced to a positive integer or ``default`` when invalid."""

    text = _clean_text(value)
    if not text:
        return default
    try:
        numeric = int(float(text))
    except (TypeError, ValueError):
        return default
    return numeric if numeric > 0 else default


def _coerce_flag_env(value: str | None, default: bool) -> bool:
    """Return the boolean meaning of ``value`` falling back to ``default``."""

    text = _clean_text(value).lower()
    if not text:
        return default
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def _first_env(*names: str, env: Mapping[str, str] | None = None) -> str:
    source = os.environ if env is None else env
    for name in names:
        value = _clean_text(source.get(name))
        if value:
            return value
    return ""


LOG_DIR_PATH: Final[Path] = _path_from(os.environ.get("LOG_DIR"), BASE_DIR / "logs")
LOG_DIR: Final[str] = os.fspath(LOG_DIR_PATH)
LOG_FILE_PATH: Final[Path] = _path_from(
    os.environ.get("LOG_FILE"), LOG_DIR_PATH / "app.log"
)
LOG_FILE: Final[str] = os.fspath(LOG_FILE_PATH)

PORT: Final[int] = _coerce_positive_int(os.environ.get("PORT"), 3000)

DEFAULT_IGDB_USER_AGENT: Final[str] = "Upcoming-Releases/1.0 (support@example.com)"
IGDB_USER_AGENT: Final[str] = (
    _clean_text(os.environ.get("IGDB_USER_AGENT")) or DEFAULT_IGDB_USER_AGENT
)

CLIENT_ID_ENV_VARS: Final[tuple[str, ...]] = ("TWITCH_CLIENT_ID", "IGDB_CLIENT_ID")
CLIENT_SECRET_ENV_VARS: Final[tuple[str, ...]] = (
    "TWITCH_CLIENT_SECRET",
    "IGDB_CLIENT_SECRET",
)

IGDB_CLIENT_ID: Final[str] = _first_env(*CLIENT_ID_ENV_VARS)
IGDB_CLIENT_SECRET: Final[str] = _first_env(*CLIENT_SECRET_ENV_VARS)

IGDB_TIMEOUT_SECONDS: Final[float] = _coerce_positive_float(
    os.environ.get("IGDB_TIMEOUT"), 10.0
)
IGDB_TOKEN_CACHE: Final[bool] = _coerce_flag_env(
    os.environ.get("IGDB_TOKEN_CACHE"), True
)
IGDB_TOKEN_REFRESH_MARGIN_SECONDS: Final[float] = _coerce_positive_float(
    os.environ.get("IGDB_TOKEN_REFRESH_MARGIN"), 60.0
)
IGDB_RELEASE_LIMIT: Final[int] = min(
    _coerce_positive_int(os.environ.get("IGDB_RELEASE_LIMIT"), 500), 500
)


def require_igdb_credentials(env: Mapping[str, str] | None = None) -> tuple[str, str]:
    """Return the catalog credentials or raise :class:`ConfigurationError`.

    Both the Twitch-style and IGDB-style variable names are accepted. The
    error message lists the preferred name of every missing value so the
    operator can fix the environment in one go.
    """

    client_id = _first_env(*CLIENT_ID_ENV_VARS, env=env)
    client_secret = _first_env(*CLIENT_SECRET_ENV_VARS, env=env)

    missing = [
        names[0]
        for names, value in (
            (CLIENT_ID_ENV_VARS, client_id),
            (CLIENT_SECRET_ENV_VARS, client_secret),
        )
        if not value
    ]
    if missing:
        message = f"Missing {' or '.join(missing)} in environment or .env"
        logger.error(message)
        raise ConfigurationError(message)

    return client_id, client_secret


__all__ = [
    "BASE_DIR",
    "CLIENT_ID_ENV_VARS",
    "CLIENT_SECRET_ENV_VARS",
    "ConfigurationError",
    "DEFAULT_IGDB_USER_AGENT",
    "IGDB_CLIENT_ID",
    "IGDB_CLIENT_SECRET",
    "IGDB_RELEASE_LIMIT",
    "IGDB_TIMEOUT_SECONDS",
    "IGDB_TOKEN_CACHE",
    "IGDB_TOKEN_REFRESH_MARGIN_SECONDS",
    "IGDB_USER_AGENT",
    "LOG_DIR",
    "LOG_DIR_PATH",
    "LOG_FILE",
    "LOG_FILE_PATH",
    "PORT",
    "require_igdb_credentials",
]
