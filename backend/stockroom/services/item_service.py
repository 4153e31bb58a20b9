# Overview: Item ledger; item registration, partial updates, checkout, and the item/tag binding.

"""
Item Ledger

Lifecycle per item:
- InStock (initial): timestamp_out IS NULL
- CheckedOut (terminal): timestamp_out set exactly once, never cleared

Every mutation that touches both an item and its tag runs in one unit of
work (see concurrency.atomic), with the tag row locked FOR UPDATE:
- register: insert item + claim tag
- checkout: stamp timestamp_out + release tag
- delete:   delete item + release tag (only if it was still in stock)

Item ids come from the database autoincrement, so concurrent registrations
never collide on id.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy import func, or_

from ..models import Item
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item,
    coerce_positive_int,
    NotFoundError,
    ConflictError,
    ValidationError,
)
from stockroom.time_utils import utcnow, utctoday
from .concurrency import atomic, lock_for_update
from .camera_service import CameraRegistry, CameraNotFound
from .tag_service import TagRegistry, TagAlreadyInUse

logger = logging.getLogger(__name__)


ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "category", "perishable", "weight", "dry", "fragile",
        "threshold", "expiry_date", "camera_id", "rfid",
    },
    required_on_create={"category", "weight", "threshold", "camera_id", "rfid"},
    ignore_unknown=True,
)

# rfid is bound at registration and only changes through the lifecycle
ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "category", "perishable", "weight", "dry", "fragile",
        "threshold", "expiry_date", "camera_id",
    },
    ignore_unknown=True,
)

# Allow-list for ORDER BY; anything else falls back to id
SORTABLE_FIELDS = ("id", "category", "weight", "timestamp_in", "expiry_date")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class ItemNotFound(NotFoundError):
    """Raised when an item id does not exist."""


class ItemAlreadyCheckedOut(ConflictError):
    """Raised when checking out an item whose timestamp_out is already set."""


class ItemLedger:
    def __init__(self, session, tags: TagRegistry | None = None, cameras: CameraRegistry | None = None):
        self.session = session
        self.tags = tags if tags is not None else TagRegistry(session)
        self.cameras = cameras if cameras is not None else CameraRegistry(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self, item_id, *, lock: bool = False) -> Item:
        try:
            item_id = coerce_positive_int(item_id, "id", "Invalid item id")
        except ValidationError:
            raise ItemNotFound("Item not found", field="id")
        query = self.session.query(Item).filter_by(id=item_id)
        if lock:
            query = lock_for_update(query)
        item = query.first()
        if item is None:
            raise ItemNotFound("Item not found", field="id")
        return item

    def get(self, item_id) -> Item:
        return self._load(item_id)

    def list(
        self,
        *,
        category: str | None = None,
        perishable: bool | None = None,
        expired: bool | None = None,
        in_stock: bool | None = None,
        page: int | None = None,
        limit: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> dict:
        """
        Filtered, sorted, paginated item listing.

        expired=True:  perishable AND expiry_date < today AND still in stock
        expired=False: NOT perishable OR expiry_date IS NULL OR expiry_date >= today
        """
        q = self.session.query(Item)

        if category:
            q = q.filter(Item.category == category)
        if perishable is not None:
            q = q.filter(Item.perishable.is_(perishable))

        today = utctoday()
        if expired is True:
            q = q.filter(
                Item.perishable.is_(True),
                Item.expiry_date < today,
                Item.timestamp_out.is_(None),
            )
        elif expired is False:
            q = q.filter(or_(
                Item.perishable.is_(False),
                Item.expiry_date.is_(None),
                Item.expiry_date >= today,
            ))

        if in_stock is True:
            q = q.filter(Item.timestamp_out.is_(None))
        elif in_stock is False:
            q = q.filter(Item.timestamp_out.isnot(None))

        sort_field = sort_by if sort_by in SORTABLE_FIELDS else "id"
        column = getattr(Item, sort_field)
        descending = (sort_order or "asc").lower() == "desc"
        q = q.order_by(column.desc() if descending else column.asc(), Item.id.asc())

        page = max(page or 1, 1)
        limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

        total = q.count()
        items = q.offset((page - 1) * limit).limit(limit).all()

        return {
            "items": [item.to_dict() for item in items],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def list_expired(self) -> list[Item]:
        """Perishable in-stock items past their expiry date, soonest first."""
        return (
            self.session.query(Item)
            .filter(
                Item.perishable.is_(True),
                Item.expiry_date < utctoday(),
                Item.timestamp_out.is_(None),
            )
            .order_by(Item.expiry_date.asc(), Item.id.asc())
            .all()
        )

    def summary(self) -> dict:
        """Stock overview for the analytics dashboard."""
        in_stock = self.session.query(Item).filter(Item.timestamp_out.is_(None))

        by_category = (
            self.session.query(Item.category, func.count(Item.id))
            .filter(Item.timestamp_out.is_(None))
            .group_by(Item.category)
            .order_by(Item.category.asc())
            .all()
        )

        return {
            "in_stock": in_stock.count(),
            "checked_out": self.session.query(Item).filter(Item.timestamp_out.isnot(None)).count(),
            "perishable": in_stock.filter(Item.perishable.is_(True)).count(),
            "dry": in_stock.filter(Item.dry.is_(True)).count(),
            "fragile": in_stock.filter(Item.fragile.is_(True)).count(),
            "expired": len(self.list_expired()),
            "by_category": {category: count for category, count in by_category},
            "tags": self.tags.counts(),
        }

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    def register(self, fields: dict) -> Item:
        """
        Register an item and claim its tag.

        Order of checks: field validation, tag lookup (TagNotFound /
        TagAlreadyInUse), camera lookup (CameraNotFound).
        """
        patch = validate_payload(model=Item, payload=fields, policy=ITEM_CREATE_POLICY, partial=False)
        enforce_rules_item(patch)

        with atomic(self.session):
            tag = self.tags.get(patch["rfid"], lock=True)
            if tag.used:
                raise TagAlreadyInUse(
                    "This RFID tag is already associated with another item", field="rfid"
                )

            if not self.cameras.exists(patch["camera_id"]):
                raise CameraNotFound("Camera ID does not exist in the system", field="camera_id")

            item = Item(timestamp_in=utcnow(), **patch)
            self.session.add(item)
            self.tags.claim(tag.rfid)
            self.session.flush()
            item_id = item.id

        logger.info("Registered item %s with RFID tag %s", item_id, patch["rfid"])
        return item

    def update(self, item_id, fields: dict | None) -> Item:
        """
        Apply a partial update.

        `timestamp_out: true` is a flag, not a value: it checks the item out
        now and releases its tag. Unknown keys are ignored; a payload with no
        recognized keys returns the item unchanged.
        """
        if fields is None:
            fields = {}
        if not isinstance(fields, dict):
            raise ValidationError("Invalid JSON payload")
        fields = dict(fields)
        check_out = fields.pop("timestamp_out", None) is True

        with atomic(self.session):
            item = self._load(item_id, lock=True)

            patch = validate_payload(model=Item, payload=fields, policy=ITEM_UPDATE_POLICY, partial=True)
            if not patch and not check_out:
                return item

            enforce_rules_item(patch, current=item)

            if "camera_id" in patch and patch["camera_id"] != item.camera_id:
                if not self.cameras.exists(patch["camera_id"]):
                    raise CameraNotFound("Camera ID does not exist in the system", field="camera_id")

            for key, value in patch.items():
                setattr(item, key, value)

            if check_out:
                self._check_out(item)

            item_id = item.id

        logger.info("Updated item %s (checkout=%s)", item_id, check_out)
        return item

    def checkout(self, item_id) -> Item:
        return self.update(item_id, {"timestamp_out": True})

    def _check_out(self, item: Item) -> None:
        if item.timestamp_out is not None:
            raise ItemAlreadyCheckedOut("Item has already been checked out", field="timestamp_out")

        item.timestamp_out = utcnow()
        if item.rfid is not None:
            self.tags.get(item.rfid, lock=True)
            self.tags.release(item.rfid)

    def delete(self, item_id) -> int:
        """Delete an item; an in-stock item's tag is released in the same transaction."""
        with atomic(self.session):
            item = self._load(item_id, lock=True)
            deleted_id = item.id
            rfid = item.rfid
            was_in_stock = item.timestamp_out is None

            if rfid is not None and was_in_stock:
                self.tags.get(rfid, lock=True)

            self.session.delete(item)
            self.session.flush()

            if rfid is not None and was_in_stock:
                self.tags.release(rfid)

        logger.info("Deleted item %s", deleted_id)
        return deleted_id
