from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required
from passlib.hash import pbkdf2_sha256
from sqlalchemy.exc import IntegrityError

from db import db
from extensions import jwt
from forms import AuthForm
from models import TokenBlocklist, Users

auth_api = Blueprint("auth_api", __name__)

DASHBOARD_ROUTE = "/dashboard"


# --- Token handling ---
@jwt.token_in_blocklist_loader
def check_if_token_revoked(jwt_header, jwt_payload):
    jti = jwt_payload["jti"]
    return db.session.query(TokenBlocklist.id).filter_by(jti=jti).first() is not None


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify(error={"message": reason}), 401


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return jsonify(error={"message": reason}), 401


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify(error={"message": "Session expired. Please sign in again."}), 401


@jwt.revoked_token_loader
def revoked_token_callback(jwt_header, jwt_payload):
    return jsonify(error={"message": "Session ended. Please sign in again."}), 401


def current_user_id():
    return int(get_jwt_identity())


def get_current_user():
    return db.session.get(Users, current_user_id())


def session_response(user, message, status):
    access_token = create_access_token(identity=str(user.user_id))
    return jsonify(
        message=message,
        access_token=access_token,
        user=user.to_dict(),
        redirect=DASHBOARD_ROUTE
    ), status


def validation_error(form):
    current_app.logger.warning(f"Validation errors: {form.errors}")
    return jsonify(error={"message": "Validation failed.", "details": form.errors}), 400


@auth_api.post("/auth/signup")
def sign_up():
    try:
        form = AuthForm()
        if not form.validate_on_submit():
            return validation_error(form)

        email = form.email.data.strip().lower()
        if Users.query.filter_by(email=email).first():
            return jsonify(error={"message": "User already registered"}), 400

        new_user = Users(email=email, password=pbkdf2_sha256.hash(form.password.data))
        db.session.add(new_user)
        db.session.commit()

        current_app.logger.info(f"New user signed up: {new_user.user_id}")
        return session_response(new_user, "Account created successfully!", 201)

    except IntegrityError:
        db.session.rollback()
        return jsonify(error={"message": "User already registered"}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error during sign up: {e}", exc_info=True)
        return jsonify(error={"message": "An error occurred during authentication."}), 500


@auth_api.post("/auth/signin")
def sign_in():
    try:
        form = AuthForm()
        if not form.validate_on_submit():
            return validation_error(form)

        user = Users.query.filter_by(email=form.email.data.strip().lower()).first()
        if not user or not pbkdf2_sha256.verify(form.password.data, user.password):
            return jsonify(error={"message": "Invalid login credentials"}), 401

        return session_response(user, "You have been signed in successfully.", 200)

    except Exception as e:
        current_app.logger.error(f"Error during sign in: {e}", exc_info=True)
        return jsonify(error={"message": "An error occurred during authentication."}), 500


@auth_api.post("/auth/signout")
@jwt_required()
def sign_out():
    try:
        db.session.add(TokenBlocklist(jti=get_jwt()["jti"]))
        db.session.commit()
        return jsonify(message="Signed out successfully."), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error during sign out: {e}", exc_info=True)
        return jsonify(error={"message": "Failed to sign out."}), 500


@auth_api.get("/auth/user")
@jwt_required(optional=True)
def auth_user():
    if get_jwt_identity() is None:
        return jsonify(user=None), 200

    user = get_current_user()
    return jsonify(user=user.to_dict() if user else None), 200
