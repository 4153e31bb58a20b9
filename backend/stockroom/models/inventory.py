from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, to_iso_date


class Camera(db.Model):
    """
    Camera registry entry.

    Camera ids are assigned by the site installer, not by the database.
    Items and videos reference a camera by camera_id.
    """
    __tablename__ = "cameras"

    camera_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    location = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Camera camera_id={self.camera_id} location={self.location!r}>"

    def to_dict(self) -> dict:
        return {
            "camera_id": self.camera_id,
            "location": self.location,
            "created_at": to_utc_z(self.created_at),
        }


class RfidTag(db.Model):
    """
    Physical RFID tag known to the warehouse.

    INVARIANT: used=True iff exactly one in-stock item (timestamp_out IS NULL)
    references this tag. Only the item ledger flips `used`.
    """
    __tablename__ = "rfid_tags"

    rfid = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    used = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<RfidTag rfid={self.rfid} used={self.used}>"

    def to_dict(self) -> dict:
        return {
            "rfid": self.rfid,
            "used": self.used,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    Stocked item bound to an RFID tag.

    LIFECYCLE:
    - InStock: timestamp_out IS NULL (initial)
    - CheckedOut: timestamp_out set (terminal, set exactly once)

    rfid is required when the item is registered. It becomes NULL only when
    an admin deletes a tag that is referenced solely by checked-out items.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_category", "category"),
        db.Index("ix_items_perishable_expiry", "perishable", "expiry_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    category = db.Column(db.String(64), nullable=False)
    perishable = db.Column(db.Boolean, nullable=False, default=False)
    weight = db.Column(db.Float, nullable=False)
    dry = db.Column(db.Boolean, nullable=False, default=False)
    fragile = db.Column(db.Boolean, nullable=False, default=False)

    # Reorder point
    threshold = db.Column(db.Float, nullable=False)

    expiry_date = db.Column(db.Date, nullable=True)

    timestamp_in = db.Column(db.DateTime(timezone=True), nullable=False)
    timestamp_out = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    camera_id = db.Column(db.Integer, db.ForeignKey("cameras.camera_id"), nullable=False, index=True)
    rfid = db.Column(db.BigInteger, db.ForeignKey("rfid_tags.rfid"), nullable=True, index=True)

    camera = db.relationship("Camera", backref=db.backref("items", lazy=True))
    tag = db.relationship("RfidTag", backref=db.backref("items", lazy=True))

    @property
    def is_checked_out(self) -> bool:
        return self.timestamp_out is not None

    def __repr__(self) -> str:
        return f"<Item id={self.id} category={self.category!r} rfid={self.rfid}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "perishable": self.perishable,
            "weight": self.weight,
            "dry": self.dry,
            "fragile": self.fragile,
            "threshold": self.threshold,
            "expiry_date": to_iso_date(self.expiry_date),
            "timestamp_in": to_utc_z(self.timestamp_in),
            "timestamp_out": to_utc_z(self.timestamp_out),
            "camera_id": self.camera_id,
            "rfid": self.rfid,
        }
