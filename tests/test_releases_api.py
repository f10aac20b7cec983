from __future__ import annotations

import http.client
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from config import CLIENT_ID_ENV_VARS, CLIENT_SECRET_ENV_VARS, ConfigurationError
from igdb.client import IGDBClient
from releases.window import resolve_window_mode

from tests.app_helpers import (
    FakeOpener,
    build_service,
    http_error,
    json_response,
    load_app,
    token_response,
)


class RecordingService:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.modes = []

    @staticmethod
    def resolve_mode(mode):
        return resolve_window_mode(mode)

    def get_releases(self, mode=None):
        self.modes.append(mode)
        if self.error is not None:
            raise self.error
        return self.rows


def _install(app_module, service):
    app_module.routes_releases.configure({'release_service': service})


def test_releases_endpoint_returns_rows(tmp_path, fixed_now):
    app_module = load_app(tmp_path)
    released = int(datetime(2026, 1, 5, 18, 0, tzinfo=timezone.utc).timestamp())
    opener = FakeOpener(
        token_response(),
        json_response(
            [
                {
                    'id': 1,
                    'name': 'Alpha',
                    'slug': 'alpha',
                    'first_release_date': released,
                    'platforms': [{'name': 'PlayStation 5', 'abbreviation': 'PS5'}],
                    'cover': {'image_id': 'abc123'},
                },
                {'id': 2, 'name': 'Undated', 'slug': 'undated'},
            ]
        ),
    )
    _install(app_module, build_service(opener, now=fixed_now))
    client = app_module.app.test_client()

    response = client.get('/api/releases/next-month')

    assert response.status_code == 200
    assert response.get_json() == [
        {
            'date': '2026-01-05',
            'humanDate': 'Jan 5, 2026',
            'name': 'Alpha',
            'slug': 'alpha',
            'platforms': 'PS5',
            'coverUrl': 'https://images.igdb.com/igdb/image/upload/t_cover_big/abc123.jpg',
        }
    ]


@pytest.mark.parametrize(
    'query, expected_mode',
    [
        ('', 'month'),
        ('?mode=month', 'month'),
        ('?mode=30days', '30days'),
        ('?mode=bogus', 'month'),
    ],
)
def test_releases_endpoint_normalizes_mode(tmp_path, query, expected_mode):
    app_module = load_app(tmp_path)
    service = RecordingService()
    _install(app_module, service)
    client = app_module.app.test_client()

    response = client.get(f'/api/releases/next-month{query}')

    assert response.status_code == 200
    assert response.get_json() == []
    assert service.modes == [expected_mode]


def test_token_failure_returns_generic_error(tmp_path, fixed_now):
    app_module = load_app(tmp_path)
    secret_body = '{"status":403,"message":"invalid client secret xyz"}'
    opener = FakeOpener(http_error(IGDBClient.TOKEN_URL, 403, secret_body))
    _install(app_module, build_service(opener, now=fixed_now))
    client = app_module.app.test_client()

    response = client.get('/api/releases/next-month')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to fetch IGDB data'}
    assert b'invalid client secret' not in response.data
    assert b'403' not in response.data


def test_catalog_failure_returns_generic_error(tmp_path, fixed_now):
    app_module = load_app(tmp_path)
    opener = FakeOpener(
        token_response(),
        http_error(f'{IGDBClient.BASE_URL}/games', 429, 'Too Many Requests'),
    )
    _install(app_module, build_service(opener, now=fixed_now))
    client = app_module.app.test_client()

    response = client.get('/api/releases/next-month?mode=30days')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to fetch IGDB data'}


def test_dropped_connection_returns_generic_error(tmp_path, fixed_now):
    app_module = load_app(tmp_path)
    opener = FakeOpener(
        token_response(),
        http.client.RemoteDisconnected('Remote end closed connection without response'),
    )
    _install(app_module, build_service(opener, now=fixed_now))
    client = app_module.app.test_client()

    response = client.get('/api/releases/next-month')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to fetch IGDB data'}
    assert b'Remote end closed' not in response.data


def test_unexpected_errors_return_internal_server_error(tmp_path):
    app_module = load_app(tmp_path)
    _install(app_module, RecordingService(error=KeyError('boom')))
    client = app_module.app.test_client()

    response = client.get('/api/releases/next-month')

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Internal server error'}


def test_index_page_renders_mode_switcher(tmp_path):
    app_module = load_app(tmp_path)
    client = app_module.app.test_client()

    response = client.get('/')

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'value="month" checked' in html
    assert 'value="30days"' in html
    assert 'Next 30 days' in html
    assert 'id="platformFilter"' in html


def test_static_script_is_served(tmp_path):
    app_module = load_app(tmp_path)
    client = app_module.app.test_client()

    response = client.get('/static/app.js')

    assert response.status_code == 200
    assert b'/api/releases/next-month' in response.data
    response.close()


def test_main_exits_when_credentials_missing(tmp_path, capsys):
    app_module = load_app(tmp_path)

    with patch.object(
        app_module,
        'require_igdb_credentials',
        side_effect=ConfigurationError('Missing TWITCH_CLIENT_ID in environment or .env'),
    ), patch.object(app_module.app, 'run') as run:
        with pytest.raises(SystemExit) as excinfo:
            app_module.main()

    assert excinfo.value.code == 1
    run.assert_not_called()
    assert 'Missing TWITCH_CLIENT_ID' in capsys.readouterr().err


def test_main_starts_server_when_configured(tmp_path):
    app_module = load_app(tmp_path)

    with patch.object(
        app_module, 'require_igdb_credentials', return_value=('client', 'secret')
    ), patch.object(app_module.app, 'run') as run:
        app_module.main()

    run.assert_called_once_with(port=app_module.PORT)


def test_app_refuses_to_load_without_credentials(tmp_path, monkeypatch, capsys):
    for name in CLIENT_ID_ENV_VARS + CLIENT_SECRET_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit) as excinfo:
        load_app(tmp_path)

    assert excinfo.value.code == 1
    assert 'Missing TWITCH_CLIENT_ID or TWITCH_CLIENT_SECRET' in capsys.readouterr().err
