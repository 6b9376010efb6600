from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from firebase_listener import (
    RealtimeStoreUnavailable, SoilDataNotFound, ensure_realtime_store, get_saved_crop, save_crop
)
from forms import SaveCropForm
from recommendations import recommend_for_device
from routes.auth_routes import validation_error
from weather import WeatherServiceError

crop_recommendation_api = Blueprint("crop_recommendation_api", __name__)


def requested_device_id():
    return request.args.get("device_id") or current_app.config["DEFAULT_DEVICE_ID"]


# Public page
@crop_recommendation_api.get("/crop-recommendation")
def crop_recommendation():
    device_id = requested_device_id()
    try:
        recommendation = recommend_for_device(device_id)
        recommendation["saved_crop"] = get_saved_crop(device_id)
        return jsonify(recommendation), 200

    except SoilDataNotFound:
        return jsonify(error={"message": "No soil data found for this device"}), 404
    except RealtimeStoreUnavailable as e:
        current_app.logger.error(f"Realtime store unavailable: {e}")
        return jsonify(error={"message": "Realtime sensor data is unavailable."}), 503
    except WeatherServiceError as e:
        return jsonify(error={"message": str(e)}), 502
    except Exception as e:
        current_app.logger.error(f"Error loading crop recommendation: {e}", exc_info=True)
        return jsonify(error={"message": "Failed to load data"}), 500


@crop_recommendation_api.post("/crop-recommendation/save")
@jwt_required()
def save_recommended_crop():
    device_id = requested_device_id()
    try:
        form = SaveCropForm()
        if not form.validate_on_submit():
            return validation_error(form)

        ensure_realtime_store(current_app)
        saved_crop = save_crop(device_id, form.crop.data)
        current_app.logger.info(f"Saved crop {form.crop.data} for device {device_id}")
        return jsonify(message=f"Saved {form.crop.data} as your current crop", saved_crop=saved_crop), 200

    except RealtimeStoreUnavailable as e:
        current_app.logger.error(f"Error saving crop: {e}")
        return jsonify(error={"message": "Failed to save crop"}), 503
    except Exception as e:
        current_app.logger.error(f"Error saving crop: {e}", exc_info=True)
        return jsonify(error={"message": "Failed to save crop"}), 500
