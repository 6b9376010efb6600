from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from firebase_listener import RealtimeStoreUnavailable, SoilDataNotFound
from functions import average
from models import CropPrediction
from recommendations import recommend_for_device
from routes.auth_routes import current_user_id
from routes.prediction_routes import prediction_summary
from weather import WeatherServiceError

dashboard_api = Blueprint("dashboard_api", __name__)

RECENT_LIMIT = 10
CHART_POINTS = 7


@dashboard_api.get("/dashboard")
@jwt_required()
def dashboard():
    try:
        predictions = CropPrediction.query.filter_by(user_id=current_user_id()) \
            .order_by(CropPrediction.created_at.desc()) \
            .limit(RECENT_LIMIT).all()

        # Oldest first on the chart
        chart_data = [{
            "name": f"Prediction {index + 1}",
            "yield": p.predicted_yield or 0,
            "confidence": (p.confidence_score or 0) * 100,
        } for index, p in enumerate(reversed(predictions[:CHART_POINTS]))]

        return jsonify(
            total_predictions=len(predictions),
            average_yield=average([p.predicted_yield for p in predictions]),
            average_confidence=average([p.confidence_score for p in predictions]),
            chart_data=chart_data,
            recent_predictions=[prediction_summary(p) for p in predictions[:5]]
        ), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching predictions: {e}", exc_info=True)
        return jsonify(
            total_predictions=0, average_yield=0, average_confidence=0,
            chart_data=[], recent_predictions=[],
            error={"message": "Failed to load predictions."}
        ), 500


@dashboard_api.get("/dashboard1")
@jwt_required()
def soil_monitoring():
    device_id = request.args.get("device_id") or current_app.config["DEFAULT_DEVICE_ID"]
    try:
        return jsonify(recommend_for_device(device_id, include_analysis=True)), 200

    except SoilDataNotFound:
        return jsonify(error={"message": "No soil data found for this device"}), 404
    except RealtimeStoreUnavailable as e:
        current_app.logger.error(f"Realtime store unavailable: {e}")
        return jsonify(error={"message": "Realtime sensor data is unavailable."}), 503
    except WeatherServiceError as e:
        return jsonify(error={"message": str(e)}), 502
    except Exception as e:
        current_app.logger.error(f"Error loading soil monitoring data: {e}", exc_info=True)
        return jsonify(error={"message": "Failed to load data"}), 500
