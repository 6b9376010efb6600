from unittest.mock import patch

from db import db
from helpers import SOIL_RECORD
from models import DeviceData, IotDevice
from routes.device_routes import fetch_and_store_soil_readings

API_HEADERS = {"x-api-key": "device-test-key"}


def add_device(client, headers, device_id="Device_0001", **fields):
    form = dict({"device_id": device_id, "device_name": "North field probe"}, **fields)
    return client.post("/settings/devices", json=form, headers=headers)


def test_add_and_list_devices(client, auth_headers):
    response = add_device(client, auth_headers, location="North field")

    assert response.status_code == 201
    device = response.get_json()["device"]
    assert device["device_type"] == "sensor"
    assert device["is_active"] is True

    devices = client.get("/settings/devices", headers=auth_headers).get_json()["devices"]
    assert [d["device_id"] for d in devices] == ["Device_0001"]
    assert devices[0]["location"] == "North field"


def test_device_requires_name(client, auth_headers):
    response = client.post("/settings/devices", json={"device_id": "Device_0002"}, headers=auth_headers)

    assert response.status_code == 400
    assert "device_name" in response.get_json()["error"]["details"]


def test_devices_are_scoped_to_user(client, auth_headers, other_auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]

    assert client.get("/settings/devices", headers=other_auth_headers).get_json()["devices"] == []
    assert client.get(f"/device/{device_id}", headers=other_auth_headers).status_code == 404
    assert client.delete(f"/settings/devices/{device_id}", headers=other_auth_headers).status_code == 404


def test_remove_device_deletes_readings(app, client, auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]
    client.post(f"/device/{device_id}/data", json={"data_type": "temperature", "value": 21.5}, headers=API_HEADERS)

    response = client.delete(f"/settings/devices/{device_id}", headers=auth_headers)

    assert response.status_code == 200
    with app.app_context():
        assert IotDevice.query.count() == 0
        assert DeviceData.query.count() == 0


def test_push_reading_requires_api_key(client, auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]

    response = client.post(f"/device/{device_id}/data", json={"data_type": "humidity", "value": 70},
                           headers={"x-api-key": "wrong"})

    assert response.status_code == 403


def test_push_reading_to_unknown_device(client):
    response = client.post("/device/999/data", json={"data_type": "humidity", "value": 70}, headers=API_HEADERS)

    assert response.status_code == 404


def test_push_reading_validates_value(client, auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]

    response = client.post(f"/device/{device_id}/data", json={"data_type": "humidity"}, headers=API_HEADERS)

    assert response.status_code == 400
    assert "value" in response.get_json()["error"]["details"]


def test_device_details_show_latest_reading_per_type(client, auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]
    readings = [
        {"data_type": "temperature", "value": 19.0, "unit": "°C"},
        {"data_type": "humidity", "value": 0, "unit": "%", "metadata": {"probe": 2}},
        {"data_type": "temperature", "value": 23.5, "unit": "°C"},
    ]
    for reading in readings:
        assert client.post(f"/device/{device_id}/data", json=reading, headers=API_HEADERS).status_code == 201

    response = client.get(f"/device/{device_id}", headers=auth_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert len(body["readings"]) == 3
    assert body["latest"]["temperature"]["value"] == 23.5
    assert body["latest"]["humidity"]["value"] == 0
    assert body["latest"]["humidity"]["metadata"] == {"probe": 2}
    assert body["latest"]["soil_moisture"] is None
    assert body["device"]["last_data_received"] is not None


def test_device_details_limit_readings(client, auth_headers):
    device_id = add_device(client, auth_headers).get_json()["device"]["id"]
    for value in range(25):
        client.post(f"/device/{device_id}/data", json={"data_type": "soil_moisture", "value": value},
                    headers=API_HEADERS)

    body = client.get(f"/device/{device_id}", headers=auth_headers).get_json()

    assert len(body["readings"]) == 20
    assert body["latest"]["soil_moisture"]["value"] == 24


def test_scheduled_sync_copies_soil_snapshot(app, client, auth_headers, realtime):
    add_device(client, auth_headers)
    add_device(client, auth_headers, device_id="Device_0404", device_name="Spare probe")
    realtime.data["soil_conditions/Device_0001"] = dict(SOIL_RECORD)

    stored = fetch_and_store_soil_readings(app)

    assert stored == 7
    with app.app_context():
        readings = {r.data_type: r for r in DeviceData.query.all()}
        assert readings["soil_ph"].value == 6.5
        assert readings["soil_ph"].unit == "pH"
        assert readings["nitrogen_level"].unit == "mg/kg"
        assert "crop" not in readings


def test_scheduled_sync_without_realtime_store(app, client, auth_headers):
    add_device(client, auth_headers)

    assert fetch_and_store_soil_readings(app) == 0


def test_scheduler_registers_sync_job(app):
    from app import start_scheduler

    with patch("app.BackgroundScheduler") as scheduler_class:
        scheduler = start_scheduler(app)

    job = scheduler_class.return_value.add_job.call_args.kwargs
    assert job["trigger"] == "interval"
    assert job["minutes"] == app.config["SYNC_INTERVAL_MINUTES"]
    scheduler.start.assert_called_once()
    assert app.extensions["scheduler"] is scheduler


def test_profile_upsert_accepts_comma_separated_crops(client, auth_headers):
    assert client.get("/profile", headers=auth_headers).get_json()["profile"] is None

    response = client.put("/profile", data={
        "full_name": "Asha Rao",
        "farm_name": "Green Acres",
        "farm_size": "12.5",
        "primary_crops": "Rice, Wheat, ,Maize",
    }, headers=auth_headers)

    assert response.status_code == 200
    profile = response.get_json()["profile"]
    assert profile["primary_crops"] == ["Rice", "Wheat", "Maize"]
    assert profile["farm_size"] == 12.5

    response = client.put("/profile", json={"farm_name": "Green Acres II", "primary_crops": ["Cotton"]},
                          headers=auth_headers)
    profile = response.get_json()["profile"]
    assert profile["farm_name"] == "Green Acres II"
    assert profile["primary_crops"] == ["Cotton"]
    assert profile["full_name"] == ""


def test_profile_lists_own_devices(app, client, auth_headers, other_auth_headers):
    add_device(client, auth_headers)

    assert len(client.get("/profile", headers=auth_headers).get_json()["devices"]) == 1
    assert client.get("/profile", headers=other_auth_headers).get_json()["devices"] == []
    with app.app_context():
        assert db.session.query(IotDevice).count() == 1
