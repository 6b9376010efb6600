"""
HTTP client for the external crop services: crop prediction, fertilizer
recommendation, crop-health analysis and yield prediction.

All endpoints take and return JSON. Any network failure or non-2xx answer
raises PredictionServiceError; callers decide whether to fall back.
"""
import requests
from flask import current_app


class PredictionServiceError(Exception):
    pass


def build_features(soil, weather):
    """Feature vector shared by the crop endpoints."""
    return {
        "nitrogen": soil.get("nitrogen_level"),
        "phosphorus": soil.get("phosphorus_level"),
        "potassium": soil.get("potassium_level"),
        "temperature": soil.get("temperature"),
        "humidity": soil.get("humidity"),
        "ph": soil.get("soil_ph"),
        "rainfall": weather.get("rainfall"),
    }


def _post_json(url, payload, label):
    try:
        response = requests.post(url, json=payload, timeout=current_app.config["HTTP_TIMEOUT"])
    except requests.RequestException as e:
        raise PredictionServiceError(f"{label} unreachable: {e}") from e

    if not response.ok:
        raise PredictionServiceError(f"{label} Error: {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise PredictionServiceError(f"{label} returned invalid JSON") from e


def _ml_url(path):
    return f"{current_app.config['ML_API_URL'].rstrip('/')}/{path}"


def predict_crop(features):
    data = _post_json(_ml_url("predict-crop"), features, "API")
    crops = data.get("recommended_crops") if isinstance(data, dict) else None
    if not crops:
        raise PredictionServiceError("API returned no recommended crops")
    return {
        "recommended_crops": list(crops),
        "confidence": list(data.get("confidence") or []),
    }


def recommend_fertilizer(crop, features):
    payload = dict(features, crop=crop.lower())
    data = _post_json(_ml_url("recommend-fertilizer"), payload, "Fertilizer API")
    return data.get("recommended_fertilizer") if isinstance(data, dict) else None


def analyze_crop(crop, features):
    payload = dict(features, crop=crop)
    return _post_json(_ml_url("analyze-crop"), payload, "Analysis API")


def predict_yield(payload):
    url = current_app.config.get("YIELD_API_URL") or _ml_url("predict-yield")
    data = _post_json(url, payload, "Yield API")
    if not isinstance(data, dict) or data.get("predicted_yield") is None:
        raise PredictionServiceError("Yield API returned no predicted_yield")
    return data["predicted_yield"]
