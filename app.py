import os

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import find_dotenv, load_dotenv
from flask import Flask, jsonify

from db import db
from extensions import jwt, migrate, socketio
from firebase_listener import init_firebase, init_soil_listener

load_dotenv(find_dotenv())


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(app):
    app.config['SECRET_KEY'] = os.environ.get("FLASK_KEY", "dev")
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get("DB_URI", "sqlite:///farm_advisor.db")
    app.config["JWT_SECRET_KEY"] = os.environ.get("JWT_SECRET_KEY", "dev-jwt-secret")
    app.config["API_KEY"] = os.environ.get("API_KEY")
    # JSON API, no browser forms
    app.config["WTF_CSRF_ENABLED"] = False

    # --- Realtime store ---
    app.config["FIREBASE_ENABLED"] = _env_flag("FIREBASE_ENABLED", True)
    app.config["FIREBASE_CREDENTIALS"] = os.environ.get(
        "FIREBASE_CREDENTIALS", os.path.join(os.path.dirname(__file__), "serviceAccountKey.json"))
    app.config["FIREBASE_DATABASE_URL"] = os.environ.get("FIREBASE_DATABASE_URL")
    app.config["DEFAULT_DEVICE_ID"] = os.environ.get("DEFAULT_DEVICE_ID", "Device_0001")
    app.config["SOIL_LISTENER_ENABLED"] = _env_flag("SOIL_LISTENER_ENABLED", True)

    # --- External services ---
    app.config["WEATHER_API_KEY"] = os.environ.get("WEATHER_API_KEY")
    app.config["WEATHER_API_URL"] = os.environ.get("WEATHER_API_URL", "http://api.weatherapi.com/v1/current.json")
    app.config["ML_API_URL"] = os.environ.get("ML_API_URL", "http://127.0.0.1:5000")
    app.config["YIELD_API_URL"] = os.environ.get("YIELD_API_URL")
    app.config["DISEASE_API_URL"] = os.environ.get("DISEASE_API_URL", "http://localhost:5000/api/analyze")
    app.config["HTTP_TIMEOUT"] = float(os.environ.get("HTTP_TIMEOUT", 10))
    app.config["CAMERA_INDEX"] = int(os.environ.get("CAMERA_INDEX", 0))

    # --- Scheduler ---
    app.config["SCHEDULER_ENABLED"] = _env_flag("SCHEDULER_ENABLED", True)
    app.config["SYNC_INTERVAL_MINUTES"] = int(os.environ.get("SYNC_INTERVAL_MINUTES", 120))

    app.config["APP_TIMEZONE"] = os.environ.get("APP_TIMEZONE", "UTC")
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")


def start_scheduler(app):
    from routes.device_routes import fetch_and_store_soil_readings

    scheduler = BackgroundScheduler()
    # The job opens its own app context
    scheduler.add_job(func=lambda: fetch_and_store_soil_readings(app), trigger="interval",
                      minutes=app.config["SYNC_INTERVAL_MINUTES"])
    scheduler.start()
    app.extensions["scheduler"] = scheduler
    return scheduler


def create_app(test_config=None):
    app = Flask(__name__)
    load_config(app)
    if test_config:
        app.config.update(test_config)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # --- Route Blueprints ---
    from routes.auth_routes import auth_api
    from routes.dashboard_routes import dashboard_api
    from routes.prediction_routes import prediction_api
    from routes.crop_recommendation_routes import crop_recommendation_api
    from routes.profile_routes import profile_api
    from routes.settings_routes import settings_api
    from routes.device_routes import device_api
    from routes.disease_routes import disease_api

    app.register_blueprint(auth_api)
    app.register_blueprint(dashboard_api)
    app.register_blueprint(prediction_api)
    app.register_blueprint(crop_recommendation_api)
    app.register_blueprint(profile_api)
    app.register_blueprint(settings_api)
    app.register_blueprint(device_api)
    app.register_blueprint(disease_api)

    # --- Extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    socketio.init_app(app)

    with app.app_context():
        import models  # noqa: F401  registers the tables
        db.create_all()

    # --- Basic Routes ---
    @app.route('/')
    def index():
        return jsonify(message="Welcome to the Farm Advisor API!"), 200

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify(error={"message": "Page not found."}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error={"message": "Method not allowed."}), 405

    if app.config["FIREBASE_ENABLED"]:
        if init_firebase(app) and app.config["SOIL_LISTENER_ENABLED"]:
            init_soil_listener(app)

    if app.config["SCHEDULER_ENABLED"]:
        start_scheduler(app)

    return app


# --- Run Application ---
if __name__ == "__main__":
    app = create_app()
    socketio.run(app, debug=True, port=5028, use_reloader=False, allow_unsafe_werkzeug=True)
