from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from camera import CameraCapture, CameraError
from disease_detection import DiseaseAnalysisError, analyze_plant_image

disease_api = Blueprint("disease_api", __name__)


def get_camera():
    """One camera session per app."""
    camera = current_app.extensions.get("camera")
    if camera is None:
        camera = CameraCapture(device_index=current_app.config["CAMERA_INDEX"])
        current_app.extensions["camera"] = camera
    return camera


@disease_api.post("/disease-detection/analyze")
@jwt_required()
def analyze_uploaded_image():
    image = request.files.get("plantImage")
    if image is None or not image.filename:
        return jsonify(error={"message": "An image file is required in the 'plantImage' field."}), 400

    try:
        result = analyze_plant_image(image.stream, image.filename, image.mimetype or "image/jpeg")
        return jsonify(result=result), 200

    except DiseaseAnalysisError as e:
        return jsonify(error=e.to_dict()), 502
    except Exception as e:
        current_app.logger.error(f"Disease detection error: {e}", exc_info=True)
        return jsonify(error={"message": "An unexpected error occurred during disease analysis",
                              "code": "UNKNOWN_ERROR"}), 500


@disease_api.get("/disease-detection/camera")
@jwt_required()
def camera_status():
    return jsonify(camera=get_camera().to_dict()), 200


@disease_api.post("/disease-detection/camera/start")
@jwt_required()
def start_camera():
    camera = get_camera()
    try:
        camera.start()
        return jsonify(camera=camera.to_dict()), 200
    except CameraError as e:
        current_app.logger.error(f"Error accessing camera: {e}")
        return jsonify(error=e.to_dict(), camera=camera.to_dict()), 503


@disease_api.post("/disease-detection/camera/capture")
@jwt_required()
def capture_photo():
    camera = get_camera()
    image = camera.capture()
    if image is None:
        message = camera.error.message if camera.error else "Camera is not streaming."
        return jsonify(error={"message": message}, camera=camera.to_dict()), 409
    return jsonify(message="Photo captured.", size=len(image), camera=camera.to_dict()), 200


@disease_api.post("/disease-detection/camera/stop")
@jwt_required()
def stop_camera():
    camera = get_camera()
    camera.stop()
    return jsonify(camera=camera.to_dict()), 200


@disease_api.post("/disease-detection/camera/reset")
@jwt_required()
def reset_camera():
    camera = get_camera()
    camera.reset()
    return jsonify(camera=camera.to_dict()), 200


@disease_api.post("/disease-detection/camera/analyze")
@jwt_required()
def analyze_captured_photo():
    camera = get_camera()
    if camera.image is None:
        return jsonify(error={"message": "No photo captured."}, camera=camera.to_dict()), 409

    try:
        result = camera.analyze()
    except Exception as e:
        current_app.logger.error(f"Disease detection error: {e}", exc_info=True)
        return jsonify(error={"message": "An unexpected error occurred during disease analysis",
                              "code": "UNKNOWN_ERROR"}), 500

    if result is None:
        return jsonify(error=camera.error.to_dict() if camera.error else None, camera=camera.to_dict()), 502
    return jsonify(result=result, camera=camera.to_dict()), 200
