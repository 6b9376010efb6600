import json
from types import SimpleNamespace

import requests

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "JWT_SECRET_KEY": "test-jwt-secret-key-that-is-long-enough",
    "API_KEY": "device-test-key",
    "FIREBASE_ENABLED": False,
    "SOIL_LISTENER_ENABLED": False,
    "SCHEDULER_ENABLED": False,
    "WEATHER_API_KEY": None,
    "ML_API_URL": "http://ml.test",
    "YIELD_API_URL": None,
    "DISEASE_API_URL": "http://disease.test/api/analyze",
    "DEFAULT_DEVICE_ID": "Device_0001",
    "HTTP_TIMEOUT": 1,
}

SOIL_RECORD = {
    "humidity": 71.0,
    "temperature": 24.5,
    "soil_ph": 6.5,
    "soil_moisture": 38.0,
    "nitrogen_level": 52.0,
    "phosphorus_level": 31.0,
    "potassium_level": 44.0,
    "last_updated": "2026-10-18T09:30:00Z",
    "crop": "Rice",
    "location": {"latitude": 12.97, "longitude": 77.59},
}


def json_response(status_code=200, payload=None, text=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    body = json.dumps(payload) if payload is not None else (text or "")
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response


def route_posts(routes):
    """side_effect for requests.post answering by URL suffix; a value may be an exception to raise."""
    calls = []

    def fake_post(url, *args, **kwargs):
        calls.append((url, kwargs))
        for suffix, answer in routes.items():
            if url.endswith(suffix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.ConnectionError(f"no route for {url}")

    fake_post.calls = calls
    return fake_post


class FakeRegistration:

    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeReference:

    def __init__(self, store, path):
        self.store = store
        self.path = path

    def get(self):
        return self.store.data.get(self.path)

    def set(self, value):
        self.store.data[self.path] = value

    def update(self, values):
        self.store.data.setdefault(self.path, {}).update(values)

    def listen(self, callback):
        registration = FakeRegistration()
        self.store.listeners.append((self.path, callback, registration))
        return registration


class FakeRealtimeStore:
    """Stands in for firebase_admin.db in tests."""

    def __init__(self):
        self.data = {}
        self.listeners = []

    def reference(self, path):
        return FakeReference(self, path)

    def active_listeners(self, path):
        return [entry for entry in self.listeners if entry[0] == path and not entry[2].closed]

    def fire(self, path, data, event_path="/", event_type="put"):
        event = SimpleNamespace(event_type=event_type, path=event_path, data=data)
        for _, callback, _ in self.active_listeners(path):
            callback(event)


def sign_up(client, email="farmer@example.com", password="secret123"):
    return client.post("/auth/signup", data={"email": email, "password": password})
