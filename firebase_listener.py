import traceback
from datetime import datetime

import firebase_admin
import pytz
from firebase_admin import credentials, db as firebase_db
from firebase_admin import exceptions as firebase_exceptions

from callbacks import soil_update_callback
from extensions import socketio

SOIL_CONDITIONS_PATH = "soil_conditions"

SOIL_FIELDS = (
    "humidity", "temperature", "soil_ph", "soil_moisture",
    "nitrogen_level", "phosphorus_level", "potassium_level",
    "rainfall", "last_updated", "crop", "location",
)


class RealtimeStoreUnavailable(Exception):
    pass


class SoilDataNotFound(Exception):
    pass


def parse_soil_condition(data):
    """Returns the known soil snapshot fields, or None for an empty/absent record."""
    if not data or not isinstance(data, dict):
        return None
    return {field: data.get(field) for field in SOIL_FIELDS}


def init_firebase(app):
    """Initializes the Firebase Admin SDK once. Returns True when the realtime store is usable."""
    if app.config.get("FIREBASE_READY"):
        return True

    if not firebase_admin._apps:
        credentials_path = app.config.get("FIREBASE_CREDENTIALS")
        database_url = app.config.get("FIREBASE_DATABASE_URL")
        try:
            if not database_url:
                raise ValueError("FIREBASE_DATABASE_URL environment variable not set.")
            cred_object = credentials.Certificate(credentials_path)
            firebase_admin.initialize_app(cred_object, {'databaseURL': database_url})
            app.logger.info("Firebase app initialized successfully.")
        except Exception as e:
            error_message = f"Firebase initialization failed: {e}"
            app.logger.error(error_message)
            # Realtime routes report this as 503
            app.config['FIREBASE_INIT_ERROR'] = error_message
            app.config['FIREBASE_INIT_TRACEBACK'] = traceback.format_exc()
            return False

    app.config.pop("FIREBASE_INIT_ERROR", None)
    app.config.pop("FIREBASE_INIT_TRACEBACK", None)
    app.config["FIREBASE_READY"] = True
    return True


def ensure_realtime_store(app):
    if 'FIREBASE_INIT_ERROR' in app.config:
        raise RealtimeStoreUnavailable(app.config['FIREBASE_INIT_ERROR'])
    if not app.config.get("FIREBASE_READY"):
        raise RealtimeStoreUnavailable("Firebase service is not properly initialized.")


def soil_reference(device_id):
    return firebase_db.reference(f"{SOIL_CONDITIONS_PATH}/{device_id}")


class SoilSubscription:
    """
    Listener on soil_conditions/<device_id>. Every remote change calls
    callback(record) with the whole record, or callback(None) when the path is empty.

    Usable as a context manager; leaving the block always detaches the listener.
    """

    def __init__(self, device_id, callback):
        self.device_id = device_id
        self.callback = callback
        self._ref = None
        self._registration = None

    @property
    def active(self):
        return self._registration is not None

    def open(self):
        if self._registration is None:
            self._ref = soil_reference(self.device_id)
            self._registration = self._ref.listen(self._on_event)
        return self

    def close(self):
        if self._registration is not None:
            self._registration.close()
            self._registration = None

    def _on_event(self, event):
        # Child-path events carry only the changed leaf
        if event.path == "/":
            data = event.data
        else:
            data = self._ref.get()
        self.callback(parse_soil_condition(data))

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_value, tb):
        self.close()
        return False


def subscribe(device_id, callback):
    """Attaches a soil listener and returns the function that detaches it."""
    return SoilSubscription(device_id, callback).open().close


def get_soil_condition(device_id):
    try:
        data = soil_reference(device_id).get()
    except firebase_exceptions.FirebaseError as fb_err:
        raise RealtimeStoreUnavailable(f"Firebase specific error: {fb_err}") from fb_err

    soil = parse_soil_condition(data)
    if soil is None:
        raise SoilDataNotFound(f"No soil data found for device {device_id}")
    return soil


def get_saved_crop(device_id):
    try:
        data = soil_reference(device_id).get()
    except firebase_exceptions.FirebaseError as fb_err:
        raise RealtimeStoreUnavailable(f"Firebase specific error: {fb_err}") from fb_err

    if not data or not isinstance(data, dict) or not data.get("crop"):
        return None
    return {"crop": data.get("crop"), "saved_at": data.get("saved_at")}


def save_crop(device_id, crop_name):
    """Stores the chosen crop on the device's realtime record, overwriting the previous choice."""
    crop_data = {
        "crop": crop_name,
        "saved_at": datetime.now(pytz.utc).isoformat(),
    }
    try:
        soil_reference(device_id).update(crop_data)
    except firebase_exceptions.FirebaseError as fb_err:
        raise RealtimeStoreUnavailable(f"Firebase specific error: {fb_err}") from fb_err
    return crop_data


def init_soil_listener(app):
    """Starts the soil listener for DEFAULT_DEVICE_ID and pushes updates to Socket.IO clients."""
    if not app.config.get("FIREBASE_READY"):
        app.logger.warning("Soil listener not started: realtime store unavailable.")
        return None

    device_id = app.config["DEFAULT_DEVICE_ID"]

    def on_soil_update(soil):
        with app.app_context():
            soil_update_callback(device_id, soil, socketio)

    unsubscribe = subscribe(device_id, on_soil_update)
    app.extensions["soil_listener"] = unsubscribe
    app.logger.info(f"Soil listener started for {SOIL_CONDITIONS_PATH}/{device_id}.")
    return unsubscribe
