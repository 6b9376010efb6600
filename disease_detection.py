import requests
from flask import current_app

HEALTHY_LABELS = ("Healthy", "No disease")


class DiseaseAnalysisError(Exception):
    """Failed image analysis. ``code`` identifies the failure for the client."""

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self):
        return {"message": self.message, "code": self.code}


def _to_number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    # NaN
    if number != number:
        return 0
    return number


def map_disease_result(result):
    """Maps the analysis server response, whatever its field names, onto one result shape."""
    disease = result.get("disease")
    if result.get("severity"):
        severity = result["severity"]
    elif disease in HEALTHY_LABELS:
        severity = "None"
    else:
        severity = "Moderate"

    if result.get("prevention"):
        prevention = result["prevention"]
    elif result.get("cause"):
        prevention = f"Prevent by addressing: {result['cause']}"
    else:
        prevention = "Follow general plant care guidelines"

    return {
        "plant_name": result.get("plant_name") or result.get("plant") or "Unknown Plant",
        "disease": disease or "No disease detected",
        "confidence": _to_number(result.get("confidence")),
        "severity": severity,
        "treatment": result.get("treatment") or result.get("remedy") or "No treatment information available",
        "description": result.get("description") or result.get("details") or "No description available",
        "prevention": prevention,
    }


def analyze_plant_image(image, filename="plant.jpg", mimetype="image/jpeg"):
    """Posts the image (bytes or file object) as multipart field ``plantImage`` and maps the answer."""
    files = {"plantImage": (filename, image, mimetype)}
    try:
        response = requests.post(current_app.config["DISEASE_API_URL"], files=files,
                                 timeout=current_app.config["HTTP_TIMEOUT"])
    except requests.RequestException as e:
        current_app.logger.error(f"Disease detection error: {e}", exc_info=True)
        raise DiseaseAnalysisError(str(e) or "Unable to reach the analysis server", code=type(e).__name__) from e

    if not response.ok:
        error_text = response.text or response.reason or ""
        current_app.logger.error(f"Disease detection failed with status {response.status_code}: {error_text}")
        raise DiseaseAnalysisError(f"Backend Server Error {response.status_code}: {error_text}",
                                   code=f"HTTP_{response.status_code}")

    try:
        result = response.json()
    except ValueError:
        result = None

    if not isinstance(result, dict) or not (result.get("plant") or result.get("plant_name")):
        raise DiseaseAnalysisError("Invalid response from backend server", code="INVALID_RESPONSE")

    return map_disease_result(result)
