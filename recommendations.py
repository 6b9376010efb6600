from flask import current_app

from firebase_listener import ensure_realtime_store, get_soil_condition
from ml_client import PredictionServiceError, analyze_crop, build_features
from predictions import crop_policy, predict
from weather import get_weather_for


def recommend_for_device(device_id, include_analysis=False):
    """
    Soil snapshot + weather -> crop recommendation -> fertilizer for the top crop.

    The crop API calls fall back to the rule-based guess; soil and weather
    errors propagate to the caller.
    """
    ensure_realtime_store(current_app)
    soil = get_soil_condition(device_id)
    weather = get_weather_for(soil)

    result = predict(crop_policy(), {"soil": soil, "weather": weather})
    if not result.ok:
        raise result.error

    recommendation = {
        "device_id": device_id,
        "soil": soil,
        "weather": weather,
        "recommended_crops": result.value["recommended_crops"],
        "confidence": result.value["confidence"],
        "recommended_fertilizer": result.value["recommended_fertilizer"],
        "source": result.source,
        "degraded": result.degraded,
    }

    if include_analysis:
        recommendation["crop_analysis"] = None
        crop = soil.get("crop")
        if crop:
            try:
                recommendation["crop_analysis"] = analyze_crop(crop, build_features(soil, weather))
            except PredictionServiceError as e:
                current_app.logger.error(f"Analysis API failed: {e}")

    return recommendation
