"""Pytest fixtures shared across the test suite."""

import os
import tempfile

os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='release-logs-'))
os.environ['TWITCH_CLIENT_ID'] = 'test-client'
os.environ['TWITCH_CLIENT_SECRET'] = 'test-secret'
os.environ['IGDB_TOKEN_CACHE'] = '0'

import logging
from datetime import datetime

import pytest


@pytest.fixture(autouse=True)
def reset_app_log_handlers():
    """Drop handlers installed by the app so they never outlive a test's streams."""

    yield

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() in {'console', 'file'}:
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def fixed_now():
    """A mid-December local timestamp, so month windows cross a year boundary."""

    return datetime(2025, 12, 10, 12, 0, 0)


@pytest.fixture
def release_rows():
    return [
        {
            'date': '2025-01-05',
            'humanDate': 'Jan 5, 2025',
            'name': 'Alpha',
            'slug': 'alpha',
            'platforms': 'PS5',
            'coverUrl': None,
        },
        {
            'date': '2025-01-05',
            'humanDate': 'Jan 5, 2025',
            'name': 'Beta',
            'slug': 'beta',
            'platforms': 'Xbox, PC',
            'coverUrl': 'https://images.igdb.com/igdb/image/upload/t_cover_big/beta.jpg',
        },
        {
            'date': '2025-01-07',
            'humanDate': 'Jan 7, 2025',
            'name': 'Gamma',
            'slug': 'gamma',
            'platforms': 'Switch',
            'coverUrl': None,
        },
    ]
