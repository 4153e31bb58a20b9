# Overview: Flask API routes for RFID reader log records.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services.log_service import LogLibrary
from ..validation import ServiceError
from ..decorators import require_auth


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.post("")
@require_auth
def create_log_route():
    """
    Record an uploaded reader log.

    Body: filename, original_filename, size_bytes, format (MIME, default text/plain)
    """
    data = request.get_json(silent=True) or {}

    try:
        log = LogLibrary(db.session).create(
            filename=data.get("filename"),
            original_filename=data.get("original_filename"),
            size_bytes=data.get("size_bytes"),
            format=data.get("format"),
        )
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to record log file")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Log file uploaded successfully", "log": log.to_dict()}), 201


@logs_bp.get("")
@require_auth
def list_logs_route():
    try:
        result = LogLibrary(db.session).list(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except Exception:
        current_app.logger.exception("Failed to list log files")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@logs_bp.get("/<int:log_id>")
@require_auth
def get_log_route(log_id: int):
    try:
        log = LogLibrary(db.session).get(log_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to load log file")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"log": log.to_dict()}), 200


@logs_bp.delete("/<int:log_id>")
@require_auth
def delete_log_route(log_id: int):
    try:
        deleted = LogLibrary(db.session).delete(log_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to delete log file")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Log file deleted successfully", "id": deleted}), 200
