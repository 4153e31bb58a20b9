# Overview: RFID reader log records; metadata for uploaded text/CSV/JSON/XML logs.

from __future__ import annotations

import logging
import math
import os

from sqlalchemy.exc import IntegrityError

from ..models import LogFile
from ..validation import ValidationError, NotFoundError, DuplicateError, coerce_positive_int
from .concurrency import atomic

logger = logging.getLogger(__name__)

LOG_FORMATS = ("txt", "log", "csv", "json", "xml")

# 50 MB upload ceiling
MAX_LOG_BYTES = 50 * 1024 * 1024

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class LogNotFound(NotFoundError):
    """Raised when a log id does not exist."""


class DuplicateLog(DuplicateError):
    """Raised when a stored log filename is already recorded."""


def is_log_format(filename: str) -> bool:
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    return ext in LOG_FORMATS


class LogLibrary:
    def __init__(self, session):
        self.session = session

    def get(self, log_id) -> LogFile:
        try:
            log_id = coerce_positive_int(log_id, "id", "Invalid log id")
        except ValidationError:
            raise LogNotFound("Log file not found", field="id")
        log = self.session.get(LogFile, log_id)
        if log is None:
            raise LogNotFound("Log file not found", field="id")
        return log

    def create(self, *, filename: str, original_filename: str, size_bytes, format: str | None = None) -> LogFile:
        if not filename or not original_filename:
            raise ValidationError("No log file uploaded", field="log")
        if not is_log_format(original_filename):
            raise ValidationError(
                f"Only log files ({', '.join(LOG_FORMATS)}) are allowed", field="log"
            )
        if isinstance(size_bytes, bool) or not isinstance(size_bytes, int) or size_bytes < 0:
            raise ValidationError("size_bytes must be a non-negative integer", field="size_bytes")
        if size_bytes > MAX_LOG_BYTES:
            raise ValidationError("Log file exceeds the 50 MB limit", field="size_bytes")

        try:
            with atomic(self.session):
                if self.session.query(LogFile).filter_by(filename=filename).first() is not None:
                    raise DuplicateLog("Log file already recorded", field="filename")
                log = LogFile(
                    filename=filename,
                    original_filename=original_filename,
                    size_bytes=size_bytes,
                    format=format or "text/plain",
                )
                self.session.add(log)
                self.session.flush()
                log_id = log.id
        except IntegrityError as exc:
            raise DuplicateLog("Log file already recorded", field="filename") from exc

        logger.info("Recorded log %s (%s)", log_id, original_filename)
        return log

    def list(self, *, page: int | None = None, limit: int | None = None) -> dict:
        page = max(page or 1, 1)
        limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

        q = self.session.query(LogFile).order_by(LogFile.upload_date.desc(), LogFile.id.desc())
        total = q.count()
        logs = q.offset((page - 1) * limit).limit(limit).all()

        return {
            "logs": [log.to_dict() for log in logs],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def delete(self, log_id) -> int:
        with atomic(self.session):
            log = self.get(log_id)
            deleted_id = log.id
            self.session.delete(log)

        logger.info("Deleted log %s", deleted_id)
        return deleted_id
