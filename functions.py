from datetime import datetime

import pytz
from flask import current_app, jsonify


def check_api_key(request):
    """Checks if the provided API key in the header is valid."""
    api_key_header = request.headers.get("x-api-key")
    expected_key = current_app.config.get("API_KEY")
    if not expected_key or api_key_header != expected_key:
        current_app.logger.warning(f"Unauthorized device push with key: {api_key_header}")
        return jsonify(error={"Not Authorised": "Incorrect api_key."}), 403
    return None


def format_datetime(dt):
    """Formats a naive UTC datetime in the configured timezone (YYYY-MM-DD hh:mm:ss AM/PM)."""
    if not dt or not isinstance(dt, datetime):
        return None
    tz = pytz.timezone(current_app.config.get("APP_TIMEZONE", "UTC"))
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(tz).strftime("%Y-%m-%d %I:%M:%S %p")


def utc_now():
    """Naive UTC timestamp, the way the tables store it."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def confidence_label(score):
    if score is None:
        return "Low"
    if score >= 0.8:
        return "High"
    if score >= 0.6:
        return "Medium"
    return "Low"


def average(values):
    values = [v or 0 for v in values]
    if not values:
        return 0
    return sum(values) / len(values)


def request_data(request):
    """Form fields, or the JSON body when the client posts JSON."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form
