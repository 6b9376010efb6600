import requests
from flask import current_app

DEFAULT_WEATHER = {
    "temperature": 20.9,
    "rainfall": 0.0,
    "humidity": 82,
}


class WeatherServiceError(Exception):
    pass


def get_default_weather():
    """Fixed weather used when no weather API is configured."""
    return dict(DEFAULT_WEATHER)


def get_weather_data(latitude, longitude):
    """Current temperature, rainfall and humidity at the given coordinates from WeatherAPI."""
    params = {
        "key": current_app.config.get("WEATHER_API_KEY"),
        "q": f"{latitude},{longitude}",
        "aqi": "no",
    }
    try:
        response = requests.get(current_app.config["WEATHER_API_URL"], params=params,
                                timeout=current_app.config["HTTP_TIMEOUT"])
        response.raise_for_status()
        current = response.json()["current"]
        return {
            "temperature": current["temp_c"],
            "rainfall": current["precip_mm"],
            "humidity": current["humidity"],
        }
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        current_app.logger.error(f"Error fetching weather data: {e}", exc_info=True)
        raise WeatherServiceError("Failed to fetch weather data") from e


def get_weather_for(soil):
    """Live weather at the device location when possible, the fixed values otherwise."""
    location = (soil or {}).get("location")
    # Sensors may store a plain place name
    if not isinstance(location, dict):
        return get_default_weather()
    latitude = location.get("latitude")
    longitude = location.get("longitude")
    if current_app.config.get("WEATHER_API_KEY") and latitude is not None and longitude is not None:
        return get_weather_data(latitude, longitude)
    return get_default_weather()
