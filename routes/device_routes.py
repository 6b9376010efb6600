from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from db import db
from firebase_listener import RealtimeStoreUnavailable, SoilDataNotFound, ensure_realtime_store, get_soil_condition
from forms import DeviceDataForm
from functions import check_api_key, format_datetime, request_data, utc_now
from models import DeviceData, IotDevice
from routes.auth_routes import current_user_id, validation_error
from routes.settings_routes import device_summary

device_api = Blueprint("device_api", __name__)

READINGS_LIMIT = 20
HIGHLIGHT_TYPES = ("temperature", "humidity", "soil_moisture")

# Snapshot field -> unit stored with the reading
SOIL_READING_UNITS = {
    "soil_ph": "pH",
    "soil_moisture": "%",
    "nitrogen_level": "mg/kg",
    "phosphorus_level": "mg/kg",
    "potassium_level": "mg/kg",
    "temperature": "°C",
    "humidity": "%",
}


def reading_dict(reading):
    return {
        "id": reading.id,
        "data_type": reading.data_type,
        "value": reading.value,
        "unit": reading.unit,
        "metadata": reading.reading_metadata,
        "timestamp": format_datetime(reading.timestamp),
    }


@device_api.get("/device/<int:device_id>")
@jwt_required()
def device_details(device_id):
    try:
        device = IotDevice.query.filter_by(id=device_id, user_id=current_user_id()).first()
        if device is None:
            return jsonify(error={"message": "Failed to fetch device details"}, redirect="/dashboard"), 404

        readings = DeviceData.query.filter_by(device_id=device.id) \
            .order_by(DeviceData.timestamp.desc(), DeviceData.id.desc()) \
            .limit(READINGS_LIMIT).all()

        latest = {}
        for data_type in HIGHLIGHT_TYPES:
            match = next((r for r in readings if r.data_type == data_type), None)
            latest[data_type] = reading_dict(match) if match else None

        return jsonify(
            device=device_summary(device),
            readings=[reading_dict(r) for r in readings],
            latest=latest
        ), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching device {device_id}: {e}", exc_info=True)
        return jsonify(error={"message": "An internal server error occurred."}), 500


@device_api.post("/device/<int:device_id>/data")
def add_device_reading(device_id):
    """Sensor push. Authenticated with the x-api-key header, not a user session."""
    try:
        api_key_error = check_api_key(request)
        if api_key_error: return api_key_error

        device = db.session.get(IotDevice, device_id)
        if device is None:
            return jsonify(error={"message": f"Device with ID {device_id} not found"}), 404

        form = DeviceDataForm()
        if not form.validate_on_submit():
            return validation_error(form)

        metadata = request_data(request).get("metadata") if request.is_json else None
        new_reading = DeviceData(
            device_id=device.id,
            data_type=form.data_type.data,
            value=form.value.data,
            unit=form.unit.data or None,
            reading_metadata=metadata,
        )
        device.last_data_received = utc_now()
        db.session.add(new_reading)
        db.session.commit()

        current_app.logger.info(f"New reading {new_reading.id} stored for device {device.id}")
        return jsonify(message="Reading stored successfully.", reading=reading_dict(new_reading)), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error storing reading for device {device_id}: {e}", exc_info=True)
        return jsonify(error={"message": "An internal server error occurred while storing the reading."}), 500


# --- Scheduled Task Function (Outside the Blueprint) ---
def fetch_and_store_soil_readings(app):
    """
    Copies the latest realtime soil snapshot of every active device into device_data.
    Run by the background scheduler. Returns the number of readings stored.
    """
    with app.app_context():
        logger = current_app.logger
        try:
            ensure_realtime_store(current_app)
        except RealtimeStoreUnavailable as e:
            logger.error(f"Scheduled task: realtime store unavailable: {e}")
            return 0

        added_count = 0
        try:
            for device in IotDevice.query.filter_by(is_active=True).all():
                try:
                    soil = get_soil_condition(device.device_id)
                except SoilDataNotFound:
                    logger.warning(f"Scheduled task: no soil snapshot for {device.device_id}.")
                    continue
                except RealtimeStoreUnavailable as e:
                    logger.error(f"Scheduled task: Firebase error for {device.device_id}: {e}")
                    continue

                for data_type, unit in SOIL_READING_UNITS.items():
                    value = soil.get(data_type)
                    if value is None:
                        continue
                    db.session.add(DeviceData(device_id=device.id, data_type=data_type,
                                              value=float(value), unit=unit))
                    added_count += 1
                device.last_data_received = utc_now()

            if added_count > 0:
                db.session.commit()
                logger.info(f"Scheduled task: Successfully stored {added_count} soil reading(s).")
            else:
                logger.info("Scheduled task: No new soil data to store.")
            return added_count

        except Exception as e:
            db.session.rollback()
            logger.error(f"Scheduled task: Error storing soil readings: {e}", exc_info=True)
            return 0
