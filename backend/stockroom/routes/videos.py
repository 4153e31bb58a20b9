# Overview: Flask API routes for video records and their processing status.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services.video_service import VideoLibrary
from ..validation import ServiceError
from ..decorators import require_auth


videos_bp = Blueprint("videos", __name__, url_prefix="/api/videos")


@videos_bp.post("")
@require_auth
def create_video_route():
    """
    Record an uploaded video.

    Body: filename, original_filename, size_bytes, format (MIME), camera_id
    """
    data = request.get_json(silent=True) or {}

    try:
        video = VideoLibrary(db.session).create(
            filename=data.get("filename"),
            original_filename=data.get("original_filename"),
            size_bytes=data.get("size_bytes"),
            format=data.get("format"),
            camera_id=data.get("camera_id"),
        )
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to record video")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Video uploaded successfully", "video": video.to_dict()}), 201


@videos_bp.get("")
@require_auth
def list_videos_route():
    try:
        result = VideoLibrary(db.session).list(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except Exception:
        current_app.logger.exception("Failed to list videos")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@videos_bp.get("/<int:video_id>")
@require_auth
def get_video_route(video_id: int):
    try:
        video = VideoLibrary(db.session).get(video_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to load video")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"video": video.to_dict()}), 200


@videos_bp.put("/<int:video_id>")
@require_auth
def update_video_status_route(video_id: int):
    """Called by the processing worker: {"status": ..., "results": {...}}."""
    data = request.get_json(silent=True) or {}

    try:
        video = VideoLibrary(db.session).update_status(video_id, data.get("status"), data.get("results"))
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to update video status")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Video status updated", "video": video.to_dict()}), 200


@videos_bp.delete("/<int:video_id>")
@require_auth
def delete_video_route(video_id: int):
    try:
        deleted = VideoLibrary(db.session).delete(video_id)
    except ServiceError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to delete video")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Video deleted successfully", "id": deleted}), 200
