from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Video(db.Model):
    """
    Uploaded camera footage, tracked as metadata only.

    status is advanced by the external processing worker:
    pending -> processing -> completed | failed
    """
    __tablename__ = "videos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_filename = db.Column(db.String(255), nullable=False)
    size_bytes = db.Column(db.BigInteger, nullable=False)
    format = db.Column(db.String(64), nullable=False)

    camera_id = db.Column(db.Integer, db.ForeignKey("cameras.camera_id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    results = db.Column(db.JSON, nullable=True)

    upload_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    processed_date = db.Column(db.DateTime(timezone=True), nullable=True)

    camera = db.relationship("Camera", backref=db.backref("videos", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "original_filename": self.original_filename,
            "size_bytes": self.size_bytes,
            "format": self.format,
            "camera_id": self.camera_id,
            "status": self.status,
            "results": self.results,
            "upload_date": to_utc_z(self.upload_date),
            "processed_date": to_utc_z(self.processed_date),
        }


class LogFile(db.Model):
    """
    Uploaded RFID reader log, tracked as metadata only.

    filename is the stored name; original_filename is what the operator
    uploaded.
    """
    __tablename__ = "rfid_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_filename = db.Column(db.String(255), nullable=False)
    size_bytes = db.Column(db.BigInteger, nullable=False)
    format = db.Column(db.String(64), nullable=False, default="text/plain")

    upload_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "original_filename": self.original_filename,
            "size_bytes": self.size_bytes,
            "format": self.format,
            "upload_date": to_utc_z(self.upload_date),
        }
