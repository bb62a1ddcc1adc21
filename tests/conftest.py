"""
Pytest fixtures and configuration for CineLog tests
"""
import os
import sys
import tempfile
from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
from flask import g
from flask.testing import FlaskClient

# Add app directory to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'app'))

# Keep settings.yaml and the secret key out of the source tree
os.environ.setdefault('CINELOG_CONFIG_DIR', tempfile.mkdtemp(prefix='cinelog-tests-'))
os.environ.pop('TMDB_API_KEY', None)
os.environ.pop('TMDB_READ_ACCESS_TOKEN', None)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


class SessionIsolatedClient(FlaskClient):
    """Test client that never reuses another client's cached login

    Requests share the app context pushed by the `app` fixture, so the user
    Flask-Login caches on `g` must be dropped around every request.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        try:
            return super().open(*args, **kwargs)
        finally:
            g.pop("_login_user", None)


@pytest.fixture
def app():
    """Flask app backed by an in-memory SQLite database"""
    from app import create_app
    from db import db

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SECRET_KEY': 'test-secret-key',
        'RATELIMIT_ENABLED': False,
    })
    app.test_client_class = SessionIsolatedClient

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_user(app):
    """Factory creating an account plus its profile"""
    from auth import create_user

    def _make_user(username, email=None, password='secret123', full_name=None):
        return create_user(email or f'{username}@example.com', password, username=username, full_name=full_name)

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user('alice', full_name='Alice Liddell')


@pytest.fixture
def bob(make_user):
    return make_user('bob', full_name='Bob Parr')


@pytest.fixture
def carol(make_user):
    return make_user('carol', full_name='Carol Danvers')


@pytest.fixture
def login(app):
    """Return a test client logged in as the given user"""

    def _login(user, password='secret123'):
        client = app.test_client()
        response = client.post('/api/auth/login', json={'email': user.email, 'password': password})
        assert response.status_code == 200
        return client

    return _login


@pytest.fixture
def make_entry():
    """Factory for analytics WatchLogEntry values with sensible defaults"""
    from services.analytics import WatchLogEntry

    counter = {'id': 0}

    def _make_entry(**overrides):
        counter['id'] += 1
        fields = {
            'id': counter['id'],
            'user_id': 1,
            'title': f'Title {counter["id"]}',
            'media_type': 'movie',
            'rating': 3.0,
            'created_at': datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return WatchLogEntry(**fields)

    return _make_entry


@pytest.fixture
def today():
    return date(2024, 6, 15)


@pytest.fixture
def snapshots():
    """Enrichment snapshots keyed by (tmdb_id, media_type)"""
    from services.enrichment import TmdbDetailSnapshot

    return {
        (1, 'movie'): TmdbDetailSnapshot(
            tmdb_id=1, media_type='movie', runtime=148, genres=('Action', 'Science Fiction'),
            directors=('Christopher Nolan',), cast=('Leonardo DiCaprio', 'Elliot Page'),
            vote_average=8.4, release_year=2010,
        ),
        (2, 'movie'): TmdbDetailSnapshot(
            tmdb_id=2, media_type='movie', runtime=87, genres=('Comedy',),
            directors=('Edgar Wright',), cast=('Simon Pegg',),
            vote_average=5.0, release_year=1994,
        ),
        (3, 'series'): TmdbDetailSnapshot(
            tmdb_id=3, media_type='series', runtime=50, genres=('Drama', 'Action'),
            directors=('Vince Gilligan',), cast=('Bryan Cranston',),
            vote_average=9.0, release_year=2008,
        ),
    }


@pytest.fixture
def fake_lookup(snapshots):
    """Enrichment lookup serving the snapshots fixture; unknown ids raise"""
    calls = []

    def _lookup(tmdb_id, media_type):
        calls.append((tmdb_id, media_type))
        if (tmdb_id, media_type) not in snapshots:
            raise LookupError(f'no snapshot for {media_type} {tmdb_id}')
        return snapshots[(tmdb_id, media_type)]

    _lookup.calls = calls
    return _lookup
