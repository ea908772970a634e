import threading
from urllib.parse import urlparse

import pytest

from playlist_creator.config import Settings
from playlist_creator.flask_app import create_app
from playlist_creator.models import PlaylistResult
from playlist_creator.session import SESSION_ID_KEY, TOKEN_KEY


class FakeBackend:
    """In-memory stand-in for the playlist backend."""

    def __init__(self):
        self.token = "tok-from-backend"
        self.register_error = None
        self.register_calls = []
        self.result = PlaylistResult.model_validate(
            {"name": "Chill 45", "external_urls": {"spotify": "https://open.spotify.com/playlist/abc123"}}
        )
        self.generate_error = None
        self.generate_calls = []
        self.release = threading.Event()
        self.release.set()

    def register(self, code):
        self.register_calls.append(code)
        if self.register_error is not None:
            raise self.register_error
        return self.token

    def generate_playlist(self, token, request):
        self.generate_calls.append((token, request))
        self.release.wait(5)
        if self.generate_error is not None:
            raise self.generate_error
        return self.result


@pytest.fixture
def settings():
    return Settings(
        client_id="test-client",
        redirect_uri="http://localhost:5000/callback",
        api_uri="http://backend.test/",
        secret_key="test-secret",
        status_interval_seconds=0.05,
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def app(settings, backend):
    app = create_app(settings, backend=backend)
    app.config["TESTING"] = True
    yield app
    backend.release.set()
    app.extensions["playlist_jobs"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    with client.session_transaction() as sess:
        sess[TOKEN_KEY] = "stored-token"
    return client


def location_path(response):
    return urlparse(response.headers["Location"]).path


def current_job(app, client):
    with client.session_transaction() as sess:
        sid = sess.get(SESSION_ID_KEY)
    if sid is None:
        return None
    return app.extensions["playlist_jobs"].get(sid)
