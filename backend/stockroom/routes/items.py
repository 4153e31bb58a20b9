# Overview: Flask API routes for items; registration, listing, updates, checkout, deletion.

# backend/stockroom/routes/items.py
"""
Item API routes

SECURITY: All routes require authentication.

Lifecycle:
- POST /api/items claims the item's RFID tag
- PUT /api/items/<id> with {"timestamp_out": true}, or PUT /api/items/<id>/checkout,
  checks the item out and releases its tag
- DELETE /api/items/<id> releases the tag of an in-stock item

Query params for GET /api/items:
- category, perishable (true/false), expired (true/false), in_stock (true/false)
- page (default 1), limit (default 10, max 100)
- sort_by (id, category, weight, timestamp_in, expiry_date), sort_order (asc/desc)
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services.item_service import ItemLedger
from ..validation import ServiceError
from ..decorators import require_auth


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


def _ledger() -> ItemLedger:
    return ItemLedger(db.session)


def _bool_arg(name: str) -> bool | None:
    value = request.args.get(name)
    if value is None:
        return None
    value = value.strip().lower()
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    return None


@items_bp.post("")
@require_auth
def register_item_route():
    payload = request.get_json(silent=True) or {}

    try:
        item = _ledger().register(payload)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to register item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Item registered successfully", "item": item.to_dict()}), 201


@items_bp.get("")
@require_auth
def list_items_route():
    try:
        result = _ledger().list(
            category=request.args.get("category") or None,
            perishable=_bool_arg("perishable"),
            expired=_bool_arg("expired"),
            in_stock=_bool_arg("in_stock"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            sort_by=request.args.get("sort_by"),
            sort_order=request.args.get("sort_order"),
        )
    except Exception:
        current_app.logger.exception("Failed to list items")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@items_bp.get("/expired")
@require_auth
def expired_items_route():
    """Perishable in-stock items past expiry, soonest first."""
    try:
        items = _ledger().list_expired()
    except Exception:
        current_app.logger.exception("Failed to list expired items")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"count": len(items), "items": [i.to_dict() for i in items]}), 200


@items_bp.get("/summary")
@require_auth
def items_summary_route():
    try:
        summary = _ledger().summary()
    except Exception:
        current_app.logger.exception("Failed to build item summary")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(summary), 200


@items_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    try:
        item = _ledger().get(item_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to load item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"item": item.to_dict()}), 200


@items_bp.put("/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    """
    Partial update. Only supplied fields change.

    {"timestamp_out": true} checks the item out (409 if it already left).
    """
    payload = request.get_json(silent=True) or {}

    try:
        item = _ledger().update(item_id, payload)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Item updated successfully", "item": item.to_dict()}), 200


@items_bp.put("/<int:item_id>/checkout")
@require_auth
def checkout_item_route(item_id: int):
    try:
        item = _ledger().checkout(item_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to check out item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Item checked out successfully", "item": item.to_dict()}), 200


@items_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        deleted = _ledger().delete(item_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Item deleted successfully", "id": deleted}), 200
