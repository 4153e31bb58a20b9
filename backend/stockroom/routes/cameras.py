# Overview: Flask API routes for the camera registry.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services.camera_service import CameraRegistry
from ..validation import ServiceError
from ..decorators import require_auth


cameras_bp = Blueprint("cameras", __name__, url_prefix="/api/cameras")


@cameras_bp.post("")
@require_auth
def register_camera_route():
    data = request.get_json(silent=True) or {}

    try:
        camera = CameraRegistry(db.session).register(data.get("camera_id"), data.get("location"))
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to register camera")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"camera": camera.to_dict()}), 201


@cameras_bp.get("")
@require_auth
def list_cameras_route():
    try:
        cameras = CameraRegistry(db.session).list()
    except Exception:
        current_app.logger.exception("Failed to list cameras")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"count": len(cameras), "cameras": [c.to_dict() for c in cameras]}), 200
