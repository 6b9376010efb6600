"""
Prediction strategies and the fallback policy that combines them.

A strategy has a ``name`` and a ``run(inputs)`` method that returns a value or
raises. ``FallbackPolicy`` tries its primary strategy and, when that raises a
recoverable error, runs its fallback exactly once. ``predict()`` wraps the
outcome in a ``PredictionResult`` so callers can tell a remote answer from a
locally computed one.
"""
import random

from flask import current_app

from firebase_listener import (
    RealtimeStoreUnavailable, SoilDataNotFound, ensure_realtime_store, get_soil_condition
)
from ml_client import PredictionServiceError, build_features, predict_crop, predict_yield, recommend_fertilizer

REMOTE = "remote"
FALLBACK = "fallback"

UNKNOWN_CROP = "Unable to determine optimal crop"
FALLBACK_CROP_CONFIDENCE = 0.6
REMOTE_YIELD_CONFIDENCE = 0.9  # the yield API does not return one

# kg/ha
BASE_YIELDS = {
    'Wheat': 3000,
    'Rice': 4500,
    'Corn': 5500,
    'Soybeans': 2800,
    'Cotton': 800,
    'Tomatoes': 25000,
}
DEFAULT_BASE_YIELD = 3000

REMOTE_RECOMMENDATIONS = {
    "irrigation": "Follow local irrigation guidelines",
    "fertilizer": "Use balanced NPK based on soil report",
    "pest_control": "Monitor crop regularly for pests",
    "general": "Ensure timely sowing and harvesting",
}

RECOVERABLE_ERRORS = (PredictionServiceError, SoilDataNotFound, RealtimeStoreUnavailable)


class PredictionResult:
    """Outcome of predict(): either a value or an error, plus where the value came from."""

    def __init__(self, value=None, error=None, source=None, degraded=False, cause=None):
        self.value = value
        self.error = error
        self.source = source
        self.degraded = degraded
        # The primary strategy's error when the fallback answered
        self.cause = cause

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        state = "ok" if self.ok else f"error={self.error!r}"
        return f"<PredictionResult({state}, source='{self.source}', degraded={self.degraded})>"


def _between(value, low, high):
    return value is not None and low <= value <= high


def _at_least(value, minimum):
    return value is not None and value >= minimum


def fallback_crop_logic(soil, weather=None):
    """Rule-of-thumb crop choice used when the crop prediction API is unavailable."""
    ph = soil.get("soil_ph")
    if _between(ph, 6.0, 7.0) and _at_least(soil.get("nitrogen_level"), 40) \
            and _at_least(soil.get("temperature"), 20):
        return "Rice"
    if _between(ph, 6.5, 7.5) and _at_least(soil.get("phosphorus_level"), 30):
        return "Wheat"
    return UNKNOWN_CROP


def generate_mock_prediction(crop_type, field_area=None):
    """Base yield for the crop with +/-20% noise and a confidence between 0.7 and 1.0."""
    base_yield = BASE_YIELDS.get(crop_type, DEFAULT_BASE_YIELD)
    variation = (random.random() - 0.5) * 0.4
    predicted_yield = round(base_yield * (1 + variation))
    confidence = random.random() * 0.3 + 0.7

    return {
        "predicted_yield": predicted_yield,
        "confidence_score": confidence,
        "recommendations": {
            "irrigation": "Optimal irrigation schedule" if confidence > 0.8
            else "Consider adjusting irrigation frequency",
            "fertilizer": "Apply balanced NPK fertilizer based on soil test results",
            "pest_control": "Monitor for common pests during growth stages",
            "general": "Maintain consistent field monitoring for best results",
        },
    }


class RemoteCropStrategy:
    """Crop prediction API, then fertilizer for the top crop."""
    name = REMOTE

    def run(self, inputs):
        features = build_features(inputs["soil"], inputs["weather"])
        crops = predict_crop(features)
        fertilizer = recommend_fertilizer(crops["recommended_crops"][0], features)
        return {
            "recommended_crops": crops["recommended_crops"],
            "confidence": crops["confidence"],
            "recommended_fertilizer": fertilizer,
        }


class RuleBasedCropStrategy:
    name = FALLBACK

    def run(self, inputs):
        return {
            "recommended_crops": [fallback_crop_logic(inputs["soil"], inputs.get("weather"))],
            "confidence": [FALLBACK_CROP_CONFIDENCE],
            "recommended_fertilizer": None,
        }


class RemoteYieldStrategy:
    """Yield prediction API fed from the device's latest soil snapshot."""
    name = REMOTE

    def run(self, inputs):
        ensure_realtime_store(current_app)
        soil = get_soil_condition(inputs["device_id"])
        payload = {
            "crop": inputs["crop_type"].lower(),
            "nitrogen": soil.get("nitrogen_level") or 0,
            "phosphorus": soil.get("phosphorus_level") or 0,
            "potassium": soil.get("potassium_level") or 0,
            "temperature": soil.get("temperature") or 0,
            "humidity": soil.get("humidity") or 0,
            "ph": soil.get("soil_ph") or 0,
            "rainfall": soil.get("rainfall") or 0,
        }
        return {
            "predicted_yield": predict_yield(payload),
            "confidence_score": REMOTE_YIELD_CONFIDENCE,
            "recommendations": dict(REMOTE_RECOMMENDATIONS),
        }


class MockYieldStrategy:
    name = FALLBACK

    def run(self, inputs):
        return generate_mock_prediction(inputs["crop_type"], inputs.get("field_area"))


class FallbackPolicy:
    """Runs ``primary``; on a recoverable error runs ``fallback`` once. Policies nest."""

    def __init__(self, primary, fallback, recoverable=RECOVERABLE_ERRORS):
        self.primary = primary
        self.fallback = fallback
        self.recoverable = recoverable

    @property
    def name(self):
        return self.primary.name

    def run(self, inputs):
        result = self.predict(inputs)
        if not result.ok:
            raise result.error
        return result.value

    def predict(self, inputs):
        try:
            return PredictionResult(value=self.primary.run(inputs), source=self.primary.name)
        except self.recoverable as e:
            current_app.logger.warning(f"{self.primary.name} prediction failed, using fallback: {e}")
            result = predict(self.fallback, inputs)
            result.degraded = result.ok
            result.cause = e
            return result


def crop_policy():
    return FallbackPolicy(RemoteCropStrategy(), RuleBasedCropStrategy())


def yield_policy():
    return FallbackPolicy(RemoteYieldStrategy(), MockYieldStrategy())


def predict(policy, inputs):
    """Runs a strategy or policy and always returns a PredictionResult."""
    try:
        if isinstance(policy, FallbackPolicy):
            return policy.predict(inputs)
        return PredictionResult(value=policy.run(inputs), source=policy.name)
    except Exception as e:
        current_app.logger.error(f"{policy.name} prediction failed: {e}", exc_info=True)
        return PredictionResult(error=e, source=policy.name)
