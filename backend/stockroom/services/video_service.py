# Overview: Video metadata records and their externally driven processing status.

"""
Video records

Bytes live outside this service; a row records what was uploaded and from
which camera. The processing worker reports progress through
update_status(), which stamps processed_date once a terminal status is
reached.
"""

from __future__ import annotations

import logging
import math
import os

from sqlalchemy.exc import IntegrityError

from ..models import Video
from ..validation import ValidationError, NotFoundError, DuplicateError, coerce_positive_int
from stockroom.time_utils import utcnow
from .camera_service import CameraRegistry, CameraNotFound
from .concurrency import atomic

logger = logging.getLogger(__name__)

VIDEO_FORMATS = ("mp4", "avi", "mov", "mkv", "webm")
VIDEO_STATUSES = ("pending", "processing", "completed", "failed")
TERMINAL_STATUSES = ("completed", "failed")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class VideoNotFound(NotFoundError):
    """Raised when a video id does not exist."""


class DuplicateVideo(DuplicateError):
    """Raised when a stored filename is already recorded."""


def is_video_format(filename: str, mimetype: str | None) -> bool:
    """Both the extension and (when given) the MIME type must name a video container."""
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    if ext not in VIDEO_FORMATS:
        return False
    if mimetype:
        return any(fmt in mimetype.lower() for fmt in VIDEO_FORMATS) or mimetype.lower() in (
            "video/quicktime", "video/x-msvideo", "video/x-matroska",
        )
    return True


class VideoLibrary:
    def __init__(self, session, cameras: CameraRegistry | None = None):
        self.session = session
        self.cameras = cameras if cameras is not None else CameraRegistry(session)

    def get(self, video_id) -> Video:
        try:
            video_id = coerce_positive_int(video_id, "id", "Invalid video id")
        except ValidationError:
            raise VideoNotFound("Video not found", field="id")
        video = self.session.get(Video, video_id)
        if video is None:
            raise VideoNotFound("Video not found", field="id")
        return video

    def create(
        self,
        *,
        filename: str,
        original_filename: str,
        size_bytes,
        format: str | None = None,
        camera_id=None,
    ) -> Video:
        if not filename or not original_filename:
            raise ValidationError("No video file uploaded", field="video")
        if not is_video_format(original_filename, format):
            raise ValidationError("Only video files are allowed", field="video")

        if isinstance(size_bytes, bool) or not isinstance(size_bytes, int) or size_bytes < 0:
            raise ValidationError("size_bytes must be a non-negative integer", field="size_bytes")

        if camera_id is not None:
            camera_id = coerce_positive_int(camera_id, "camera_id", "Invalid camera ID")
            if not self.cameras.exists(camera_id):
                raise CameraNotFound("Camera ID does not exist in the system", field="camera_id")

        try:
            with atomic(self.session):
                if self.session.query(Video).filter_by(filename=filename).first() is not None:
                    raise DuplicateVideo("Video file already recorded", field="filename")
                video = Video(
                    filename=filename,
                    original_filename=original_filename,
                    size_bytes=size_bytes,
                    format=format or os.path.splitext(original_filename)[1].lstrip(".").lower(),
                    camera_id=camera_id,
                    status="pending",
                )
                self.session.add(video)
                self.session.flush()
                video_id = video.id
        except IntegrityError as exc:
            raise DuplicateVideo("Video file already recorded", field="filename") from exc

        logger.info("Recorded video %s (%s)", video_id, original_filename)
        return video

    def list(self, *, page: int | None = None, limit: int | None = None) -> dict:
        page = max(page or 1, 1)
        limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

        q = self.session.query(Video).order_by(Video.upload_date.desc(), Video.id.desc())
        total = q.count()
        videos = q.offset((page - 1) * limit).limit(limit).all()

        return {
            "videos": [v.to_dict() for v in videos],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def update_status(self, video_id, status: str, results=None) -> Video:
        if status not in VIDEO_STATUSES:
            raise ValidationError(
                f"status must be one of: {', '.join(VIDEO_STATUSES)}", field="status"
            )

        with atomic(self.session):
            video = self.get(video_id)
            video.status = status
            video.results = results
            if status in TERMINAL_STATUSES:
                video.processed_date = utcnow()
            video_id = video.id

        logger.info("Video %s status -> %s", video_id, status)
        return video

    def delete(self, video_id) -> int:
        with atomic(self.session):
            video = self.get(video_id)
            deleted_id = video.id
            self.session.delete(video)
        return deleted_id
