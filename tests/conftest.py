import pytest

import firebase_listener
from app import create_app
from db import db
from helpers import TEST_CONFIG, FakeRealtimeStore, sign_up


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def realtime(app, monkeypatch):
    """Marks the realtime store as ready and backs it with an in-memory fake."""
    store = FakeRealtimeStore()
    monkeypatch.setattr(firebase_listener.firebase_db, "reference", store.reference)
    app.config["FIREBASE_READY"] = True
    return store


@pytest.fixture
def auth_headers(client):
    response = sign_up(client)
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}


@pytest.fixture
def other_auth_headers(client):
    response = sign_up(client, email="neighbour@example.com")
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}
