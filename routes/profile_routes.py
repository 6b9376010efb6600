from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from db import db
from forms import ProfileForm
from functions import format_datetime, request_data
from models import IotDevice, Profile
from routes.auth_routes import current_user_id, validation_error
from routes.settings_routes import device_summary

profile_api = Blueprint("profile_api", __name__)


def parse_primary_crops(value):
    """Accepts a list or a comma separated string."""
    if isinstance(value, list):
        return [str(crop).strip() for crop in value if str(crop).strip()]
    if isinstance(value, str):
        return [crop.strip() for crop in value.split(",") if crop.strip()]
    return []


def profile_dict(profile):
    if profile is None:
        return None
    return {
        "full_name": profile.full_name or "",
        "farm_name": profile.farm_name or "",
        "location": profile.location or "",
        "phone_number": profile.phone_number or "",
        "primary_crops": profile.primary_crops or [],
        "farm_size": profile.farm_size or 0,
        "updated_at": format_datetime(profile.updated_at),
    }


@profile_api.get("/profile")
@jwt_required()
def get_profile():
    try:
        user_id = current_user_id()
        profile = Profile.query.filter_by(user_id=user_id).first()
        devices = IotDevice.query.filter_by(user_id=user_id).all()

        return jsonify(
            profile=profile_dict(profile),
            devices=[device_summary(device) for device in devices]
        ), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching profile: {e}", exc_info=True)
        return jsonify(error={"message": "Failed to fetch profile data"}), 500


@profile_api.put("/profile")
@jwt_required()
def upsert_profile():
    try:
        form = ProfileForm()
        if not form.validate_on_submit():
            return validation_error(form)

        data = request_data(request)
        if request.is_json:
            primary_crops = data.get("primary_crops")
        else:
            primary_crops = data.getlist("primary_crops")
            if len(primary_crops) == 1:
                primary_crops = primary_crops[0]

        user_id = current_user_id()
        profile = Profile.query.filter_by(user_id=user_id).first()
        if profile is None:
            profile = Profile(user_id=user_id)
            db.session.add(profile)

        profile.full_name = form.full_name.data
        profile.farm_name = form.farm_name.data
        profile.location = form.location.data
        profile.phone_number = form.phone_number.data
        profile.primary_crops = parse_primary_crops(primary_crops)
        profile.farm_size = form.farm_size.data
        db.session.commit()

        return jsonify(message="Profile updated successfully", profile=profile_dict(profile)), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating profile: {e}", exc_info=True)
        return jsonify(error={"message": str(e)}), 500
