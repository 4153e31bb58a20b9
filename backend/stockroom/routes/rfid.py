# Overview: Flask API routes for RFID tags; parses input and returns JSON responses.

# backend/stockroom/routes/rfid.py
"""
RFID tag API routes

SECURITY: All routes require authentication.
Tags are registered here and bound to items through /api/items; the
`used` flag is never writable from this API.
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services.tag_service import TagRegistry
from ..validation import ServiceError
from ..decorators import require_auth


rfid_bp = Blueprint("rfid", __name__, url_prefix="/api/rfid")


@rfid_bp.post("/register")
@require_auth
def register_tag_route():
    """Register a new RFID tag with used=false."""
    data = request.get_json(silent=True) or {}

    try:
        tag = TagRegistry(db.session).register(data.get("rfid"))
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to register RFID tag")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "RFID tag registered successfully", "rfid": tag.to_dict()}), 201


@rfid_bp.get("")
@require_auth
def list_tags_route():
    """All tags, ordered by rfid."""
    try:
        tags = TagRegistry(db.session).list()
    except Exception:
        current_app.logger.exception("Failed to list RFID tags")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"count": len(tags), "rfid_tags": [t.to_dict() for t in tags]}), 200


@rfid_bp.get("/<rfid>")
@require_auth
def get_tag_route(rfid: str):
    try:
        tag = TagRegistry(db.session).get(rfid)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to load RFID tag")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"rfid": tag.to_dict()}), 200


@rfid_bp.delete("/<rfid>")
@require_auth
def delete_tag_route(rfid: str):
    """
    Delete a tag that is not bound to an in-stock item.

    Returns 409 while the tag is in use.
    """
    try:
        deleted = TagRegistry(db.session).delete(rfid)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to delete RFID tag")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "RFID tag deleted successfully", "rfid": deleted}), 200
