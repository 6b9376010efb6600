from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from callbacks import prediction_created_callback
from db import db
from extensions import socketio
from forms import PredictionForm
from functions import average, confidence_label, format_datetime
from models import CropPrediction
from predictions import predict, yield_policy
from routes.auth_routes import current_user_id, validation_error

prediction_api = Blueprint("prediction_api", __name__)

SORT_OPTIONS = ("newest", "oldest", "yield-high", "yield-low", "confidence")


def prediction_summary(prediction):
    return {
        "id": prediction.id,
        "crop_type": prediction.crop_type,
        "field_area": prediction.field_area,
        "predicted_yield": prediction.predicted_yield,
        "confidence_score": prediction.confidence_score,
        "created_at": format_datetime(prediction.created_at),
    }


def prediction_detail(prediction):
    data = prediction_summary(prediction)
    data.update({
        "soil_ph": prediction.soil_ph,
        "soil_moisture": prediction.soil_moisture,
        "nitrogen_level": prediction.nitrogen_level,
        "phosphorus_level": prediction.phosphorus_level,
        "potassium_level": prediction.potassium_level,
        "temperature": prediction.temperature,
        "rainfall": prediction.rainfall,
        "humidity": prediction.humidity,
        "irrigation_method": prediction.irrigation_method,
        "fertilizer_used": prediction.fertilizer_used,
        "recommendations": prediction.recommendations,
        "recommendation_items": [{
            "id": item.id,
            "title": item.title,
            "category": item.category,
            "priority": item.priority,
            "description": item.description,
            "expected_impact": item.expected_impact,
            "implementation_cost": item.implementation_cost,
        } for item in prediction.recommendation_items],
        "confidence_label": confidence_label(prediction.confidence_score),
        "total_production": round((prediction.predicted_yield or 0) * (prediction.field_area or 0)),
    })
    return data


def filter_and_sort_predictions(predictions, search="", crop="all", sort_by="newest"):
    """History filters: case-insensitive crop search, exact crop filter, one of SORT_OPTIONS."""
    search = (search or "").lower()
    filtered = [
        p for p in predictions
        if search in p.crop_type.lower() and (crop in (None, "", "all") or p.crop_type == crop)
    ]

    if sort_by == "oldest":
        filtered.sort(key=lambda p: p.created_at)
    elif sort_by == "yield-high":
        filtered.sort(key=lambda p: p.predicted_yield or 0, reverse=True)
    elif sort_by == "yield-low":
        filtered.sort(key=lambda p: p.predicted_yield or 0)
    elif sort_by == "confidence":
        filtered.sort(key=lambda p: p.confidence_score or 0, reverse=True)
    else:
        filtered.sort(key=lambda p: p.created_at, reverse=True)
    return filtered


@prediction_api.post("/prediction")
@jwt_required()
def create_prediction():
    try:
        form = PredictionForm()
        if not form.validate_on_submit():
            return validation_error(form)

        inputs = {
            "crop_type": form.crop_type.data,
            "field_area": form.field_area.data,
            "device_id": current_app.config["DEFAULT_DEVICE_ID"],
        }
        result = predict(yield_policy(), inputs)
        if not result.ok:
            return jsonify(error={"message": "Failed to generate prediction"}), 500
        prediction = result.value

        new_prediction = CropPrediction(
            user_id=current_user_id(),
            crop_type=form.crop_type.data,
            field_area=form.field_area.data,
            soil_ph=form.soil_ph.data,
            soil_moisture=form.soil_moisture.data,
            nitrogen_level=form.nitrogen_level.data,
            phosphorus_level=form.phosphorus_level.data,
            potassium_level=form.potassium_level.data,
            temperature=form.temperature.data,
            rainfall=form.rainfall.data,
            humidity=form.humidity.data,
            irrigation_method=form.irrigation_method.data or None,
            fertilizer_used=form.fertilizer_used.data or None,
            predicted_yield=prediction["predicted_yield"],
            confidence_score=prediction["confidence_score"],
            recommendations=prediction["recommendations"],
        )
        db.session.add(new_prediction)
        db.session.commit()

        current_app.logger.info(
            f"Prediction {new_prediction.id} created from {result.source} strategy "
            f"(yield {new_prediction.predicted_yield} kg/ha)")
        prediction_created_callback(new_prediction, socketio)

        return jsonify(
            message="Prediction Generated Successfully!",
            id=new_prediction.id,
            predicted_yield=new_prediction.predicted_yield,
            confidence_score=new_prediction.confidence_score,
            source=result.source,
            degraded=result.degraded,
            redirect=f"/prediction-result/{new_prediction.id}"
        ), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating prediction: {e}", exc_info=True)
        return jsonify(error={"message": str(e) or "Failed to generate prediction"}), 500


@prediction_api.get("/prediction-result/<int:prediction_id>")
@jwt_required()
def prediction_result(prediction_id):
    try:
        prediction = CropPrediction.query.filter_by(id=prediction_id, user_id=current_user_id()).first()
        if prediction is None:
            return jsonify(error={"message": "Prediction not found"}), 404

        return jsonify(prediction=prediction_detail(prediction)), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching prediction {prediction_id}: {e}", exc_info=True)
        return jsonify(error={"message": "An internal server error occurred."}), 500


@prediction_api.get("/history")
@jwt_required()
def history():
    try:
        sort_by = request.args.get("sort", "newest")
        if sort_by not in SORT_OPTIONS:
            return jsonify(error={"message": f"Invalid sort option. Use one of: {', '.join(SORT_OPTIONS)}."}), 400

        predictions = CropPrediction.query.filter_by(user_id=current_user_id()) \
            .order_by(CropPrediction.created_at.desc()).all()
        filtered = filter_and_sort_predictions(
            predictions,
            search=request.args.get("search", ""),
            crop=request.args.get("crop", "all"),
            sort_by=sort_by,
        )

        return jsonify(
            predictions=[dict(prediction_summary(p), confidence_label=confidence_label(p.confidence_score))
                         for p in filtered],
            crops=sorted({p.crop_type for p in predictions}),
            showing=len(filtered),
            total_predictions=len(predictions),
            average_yield=average([p.predicted_yield for p in predictions]),
            average_confidence=average([p.confidence_score for p in predictions])
        ), 200

    except Exception as e:
        # Empty state for the page
        current_app.logger.error(f"Error fetching predictions: {e}", exc_info=True)
        return jsonify(error={"message": "An internal server error occurred."}), 500
