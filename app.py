import os
import sys
import logging
import logging.config
from pathlib import Path
from typing import Any

from flask import Flask

from config import (
    ConfigurationError,
    IGDB_CLIENT_ID,
    IGDB_CLIENT_SECRET,
    IGDB_RELEASE_LIMIT,
    IGDB_TIMEOUT_SECONDS,
    IGDB_TOKEN_CACHE,
    IGDB_TOKEN_REFRESH_MARGIN_SECONDS,
    IGDB_USER_AGENT,
    LOG_FILE,
    PORT,
    require_igdb_credentials,
)
from igdb.client import IGDBClient
from releases.service import ReleaseQueryService
from releases.window import DEFAULT_MODE, MODE_LABELS, WINDOW_MODES
from routes import releases as routes_releases
from routes import web as routes_web

logger = logging.getLogger(__name__)

igdb_api_client = IGDBClient(
    client_id=IGDB_CLIENT_ID,
    client_secret=IGDB_CLIENT_SECRET,
    user_agent=IGDB_USER_AGENT,
    timeout=IGDB_TIMEOUT_SECONDS,
    cache_tokens=IGDB_TOKEN_CACHE,
    refresh_margin=IGDB_TOKEN_REFRESH_MARGIN_SECONDS,
)
release_service = ReleaseQueryService(igdb_api_client, limit=IGDB_RELEASE_LIMIT)


def _determine_log_level(flask_app: Flask) -> int:
    if flask_app.debug:
        return logging.DEBUG
    if os.environ.get('FLASK_DEBUG', '').lower() in {'1', 'true', 'yes', 'on'}:
        return logging.DEBUG
    return logging.INFO


def _configure_logging(flask_app: Flask) -> None:
    log_level = _determine_log_level(flask_app)
    log_path = Path(LOG_FILE)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass

    for handler in list(flask_app.logger.handlers):
        flask_app.logger.removeHandler(handler)

    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {
                    'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
                    'datefmt': '%Y-%m-%d %H:%M:%S',
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'standard',
                    'level': log_level,
                    'stream': 'ext://sys.stdout',
                },
                'file': {
                    'class': 'logging.handlers.RotatingFileHandler',
                    'formatter': 'standard',
                    'level': logging.DEBUG,
                    'filename': os.fspath(log_path),
                    'maxBytes': 5 * 1024 * 1024,
                    'backupCount': 5,
                    'encoding': 'utf-8',
                },
            },
            'root': {
                'level': log_level,
                'handlers': ['console', 'file'],
            },
        }
    )

    flask_app.logger = logging.getLogger(flask_app.import_name)
    flask_app.logger.setLevel(log_level)
    logger.setLevel(log_level)


app = Flask(__name__)

_configure_logging(app)


def get_releases(mode: Any = None) -> list[dict[str, Any]]:
    """Return the JSON-ready release rows for ``mode``."""

    return release_service.get_release_payload(mode)


def exchange_twitch_credentials(*, force_refresh: bool = False) -> tuple[str, str]:
    """Compatibility wrapper that proxies to :mod:`igdb.client`."""

    return igdb_api_client.exchange_twitch_credentials(force_refresh=force_refresh)


_blueprints_configured = False


def configure_blueprints(flask_app: Flask) -> None:
    global _blueprints_configured
    if _blueprints_configured:
        return

    routes_releases.configure({
        'release_service': release_service,
    })

    routes_web.configure({
        'window_modes': [
            {'value': mode, 'label': MODE_LABELS[mode]} for mode in WINDOW_MODES
        ],
        'default_mode': DEFAULT_MODE,
    })

    if 'releases' not in flask_app.blueprints:
        flask_app.register_blueprint(routes_releases.releases_blueprint)
    if 'web' not in flask_app.blueprints:
        flask_app.register_blueprint(routes_web.web_blueprint)

    _blueprints_configured = True


def _require_settings_or_exit() -> None:
    """Stop the process before serving when catalog credentials are missing."""
    try:
        require_igdb_credentials()
    except ConfigurationError as exc:
        print(f"{exc}", file=sys.stderr)
        raise SystemExit(1)


def main() -> None:
    create_app(
        app,
        configure_blueprints=configure_blueprints,
        validate_settings=_require_settings_or_exit,
    )

    logger.info("Server running at http://localhost:%s", PORT)
    app.run(port=PORT)


from web.app_factory import create_app

app = create_app(
    app,
    configure_blueprints=configure_blueprints,
    validate_settings=_require_settings_or_exit,
)


if __name__ == '__main__':
    main()
