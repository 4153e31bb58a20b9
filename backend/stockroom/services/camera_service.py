# Overview: Camera registry; validates camera references for items and videos.

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..models import Camera
from ..validation import NotFoundError, DuplicateError, coerce_positive_int
from .concurrency import atomic

logger = logging.getLogger(__name__)


class CameraNotFound(NotFoundError):
    """Raised when a camera_id does not exist in the registry."""


class DuplicateCamera(DuplicateError):
    """Raised when registering a camera_id that already exists."""


class CameraRegistry:
    """Cameras installed in the warehouse, keyed by installer-assigned id."""

    def __init__(self, session):
        self.session = session

    def exists(self, camera_id) -> bool:
        if camera_id is None:
            return False
        return self.session.get(Camera, camera_id) is not None

    def get(self, camera_id) -> Camera:
        camera_id = coerce_positive_int(camera_id, "camera_id", "Invalid camera ID")
        camera = self.session.get(Camera, camera_id)
        if camera is None:
            raise CameraNotFound("Camera ID not found", field="camera_id")
        return camera

    def register(self, camera_id, location: str | None = None) -> Camera:
        camera_id = coerce_positive_int(camera_id, "camera_id", "Invalid camera ID")
        if location is not None:
            location = str(location).strip() or None

        try:
            with atomic(self.session):
                if self.session.get(Camera, camera_id) is not None:
                    raise DuplicateCamera("Camera already registered", field="camera_id")
                camera = Camera(camera_id=camera_id, location=location)
                self.session.add(camera)
                self.session.flush()
        except IntegrityError as exc:
            raise DuplicateCamera("Camera already registered", field="camera_id") from exc

        logger.info("Registered camera %s", camera_id)
        return camera

    def list(self) -> list[Camera]:
        return self.session.query(Camera).order_by(Camera.camera_id.asc()).all()
