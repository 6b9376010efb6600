import io
from unittest.mock import patch

import pytest

from disease_detection import DiseaseAnalysisError, analyze_plant_image, map_disease_result
from helpers import json_response, route_posts

ANALYSIS = {
    "plant_name": "Tomato",
    "disease": "Early Blight",
    "confidence": "0.91",
    "severity": "High",
    "treatment": "Copper fungicide",
    "description": "Dark concentric spots on older leaves",
    "prevention": "Rotate crops",
}


def test_maps_complete_response():
    result = map_disease_result(ANALYSIS)

    assert result == dict(ANALYSIS, confidence=0.91)


def test_maps_alternate_field_names():
    result = map_disease_result({
        "plant": "Potato",
        "disease": "Late Blight",
        "remedy": "Remove infected plants",
        "details": "Water-soaked lesions",
        "cause": "Phytophthora infestans",
    })

    assert result["plant_name"] == "Potato"
    assert result["treatment"] == "Remove infected plants"
    assert result["description"] == "Water-soaked lesions"
    assert result["prevention"] == "Prevent by addressing: Phytophthora infestans"
    assert result["severity"] == "Moderate"
    assert result["confidence"] == 0


@pytest.mark.parametrize("disease", ["Healthy", "No disease"])
def test_healthy_plants_have_no_severity(disease):
    assert map_disease_result({"plant": "Corn", "disease": disease})["severity"] == "None"


def test_defaults_for_sparse_response():
    result = map_disease_result({"plant": "Corn", "confidence": "not-a-number"})

    assert result["disease"] == "No disease detected"
    assert result["confidence"] == 0
    assert result["treatment"] == "No treatment information available"
    assert result["description"] == "No description available"
    assert result["prevention"] == "Follow general plant care guidelines"


def test_nan_confidence_becomes_zero():
    assert map_disease_result({"plant": "Corn", "confidence": "nan"})["confidence"] == 0


def test_analyze_posts_multipart_image(app):
    fake_post = route_posts({"/api/analyze": json_response(200, ANALYSIS)})

    with app.app_context(), patch("disease_detection.requests.post", side_effect=fake_post):
        result = analyze_plant_image(b"\xff\xd8jpeg", "leaf.jpg", "image/jpeg")

    assert result["plant_name"] == "Tomato"
    url, kwargs = fake_post.calls[0]
    assert url == "http://disease.test/api/analyze"
    assert kwargs["files"]["plantImage"] == ("leaf.jpg", b"\xff\xd8jpeg", "image/jpeg")


def test_server_error_carries_status_and_body(app):
    fake_post = route_posts({"/api/analyze": json_response(500, text="model not loaded")})

    with app.app_context(), patch("disease_detection.requests.post", side_effect=fake_post):
        with pytest.raises(DiseaseAnalysisError) as excinfo:
            analyze_plant_image(b"jpeg")

    assert excinfo.value.message == "Backend Server Error 500: model not loaded"
    assert excinfo.value.code == "HTTP_500"


def test_response_without_plant_is_invalid(app):
    fake_post = route_posts({"/api/analyze": json_response(200, {"disease": "Rust"})})

    with app.app_context(), patch("disease_detection.requests.post", side_effect=fake_post):
        with pytest.raises(DiseaseAnalysisError) as excinfo:
            analyze_plant_image(b"jpeg")

    assert excinfo.value.code == "INVALID_RESPONSE"


def test_unreachable_server_has_a_message(app):
    fake_post = route_posts({})

    with app.app_context(), patch("disease_detection.requests.post", side_effect=fake_post):
        with pytest.raises(DiseaseAnalysisError) as excinfo:
            analyze_plant_image(b"jpeg")

    assert excinfo.value.message
    assert excinfo.value.code == "ConnectionError"


def test_upload_route_returns_result(client, auth_headers):
    fake_post = route_posts({"/api/analyze": json_response(200, ANALYSIS)})
    upload = {"plantImage": (io.BytesIO(b"\xff\xd8jpeg"), "leaf.jpg", "image/jpeg")}

    with patch("disease_detection.requests.post", side_effect=fake_post):
        response = client.post("/disease-detection/analyze", data=upload, headers=auth_headers,
                               content_type="multipart/form-data")

    assert response.status_code == 200
    assert response.get_json()["result"]["disease"] == "Early Blight"


def test_upload_route_reports_backend_error(client, auth_headers):
    fake_post = route_posts({"/api/analyze": json_response(502, text="Bad Gateway")})
    upload = {"plantImage": (io.BytesIO(b"jpeg"), "leaf.jpg", "image/jpeg")}

    with patch("disease_detection.requests.post", side_effect=fake_post):
        response = client.post("/disease-detection/analyze", data=upload, headers=auth_headers,
                               content_type="multipart/form-data")

    assert response.status_code == 502
    error = response.get_json()["error"]
    assert error["message"].startswith("Backend Server Error 502")
    assert error["code"] == "HTTP_502"


def test_upload_route_requires_image(client, auth_headers):
    response = client.post("/disease-detection/analyze", data={}, headers=auth_headers,
                           content_type="multipart/form-data")

    assert response.status_code == 400
