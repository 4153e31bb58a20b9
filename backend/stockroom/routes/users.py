# Overview: Flask API routes for user accounts; signup, login, logout, current user.

# backend/stockroom/routes/users.py
from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import AuthenticationError
from ..validation import ServiceError
from ..decorators import require_auth


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.post("/signup")
def signup_route():
    """Self-service operator registration."""
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.create_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
        )
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "User signed up successfully", "user": user.to_dict()}), 201


@users_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username") or data.get("email")
    password = data.get("password")

    if not all([username, password]):
        return jsonify({
            "error": "username and password required",
            "errors": {k: f"{k} is required" for k, v in (("username", username), ("password", password)) if not v},
        }), 400

    try:
        user = auth_service.authenticate(username, password)
        _, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except AuthenticationError as e:
        return jsonify({"error": str(e), "errors": {e.field: str(e)}}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "message": "User logged in successfully",
        "user": user.to_dict(),
        "token": token,
    }), 200


@users_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.token)
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "User logged out successfully"}), 200


@users_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
