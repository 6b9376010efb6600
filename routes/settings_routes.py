from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import jwt_required

from db import db
from forms import DeviceForm
from functions import format_datetime
from models import IotDevice
from routes.auth_routes import current_user_id, validation_error

settings_api = Blueprint("settings_api", __name__)


def device_summary(device):
    return {
        "id": device.id,
        "device_id": device.device_id,
        "device_name": device.device_name,
        "device_type": device.device_type,
        "location": device.location,
        "is_active": device.is_active,
        "last_data_received": format_datetime(device.last_data_received),
        "metadata": device.device_metadata,
        "created_at": format_datetime(device.created_at),
    }


@settings_api.get("/settings/devices")
@jwt_required()
def list_devices():
    try:
        devices = IotDevice.query.filter_by(user_id=current_user_id()) \
            .order_by(IotDevice.created_at.desc(), IotDevice.id.desc()).all()
        return jsonify(devices=[device_summary(device) for device in devices]), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching devices: {e}", exc_info=True)
        return jsonify(error={"message": str(e)}), 500


@settings_api.post("/settings/devices")
@jwt_required()
def add_device():
    try:
        form = DeviceForm()
        if not form.validate_on_submit():
            return validation_error(form)

        new_device = IotDevice(
            user_id=current_user_id(),
            device_id=form.device_id.data,
            device_name=form.device_name.data,
            device_type=form.device_type.data or "sensor",
            location=form.location.data or None,
        )
        db.session.add(new_device)
        db.session.commit()

        current_app.logger.info(f"Device {new_device.device_id} registered as {new_device.id}")
        return jsonify(message="Device added successfully", device=device_summary(new_device)), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding device: {e}", exc_info=True)
        return jsonify(error={"message": str(e)}), 500


@settings_api.delete("/settings/devices/<int:device_id>")
@jwt_required()
def remove_device(device_id):
    try:
        device = IotDevice.query.filter_by(id=device_id, user_id=current_user_id()).first()
        if device is None:
            return jsonify(error={"message": f"Device with ID {device_id} not found"}), 404

        db.session.delete(device)
        db.session.commit()
        return jsonify(message="Device removed successfully"), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error removing device {device_id}: {e}", exc_info=True)
        return jsonify(error={"message": str(e)}), 500
