# Overview: RFID tag registry; owns tag existence and the `used` flag.

"""
Tag Registry

A tag is registered on its own, claimed when an item is registered against
it, and released when that item is checked out or deleted.

INVARIANT: tag.used is True iff exactly one in-stock item references it.

claim() and release() never commit. They run inside the item ledger's unit
of work so the item write and the tag write land together or not at all.
"""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..models import RfidTag, Item
from ..validation import NotFoundError, DuplicateError, ConflictError, coerce_positive_int
from .concurrency import atomic, lock_for_update

logger = logging.getLogger(__name__)


class TagNotFound(NotFoundError):
    """Raised when an RFID value is not registered."""


class DuplicateTag(DuplicateError):
    """Raised when registering an RFID value that already exists."""


class TagInUse(ConflictError):
    """Raised when deleting a tag still bound to an in-stock item."""


class TagAlreadyInUse(ConflictError):
    """Raised when registering an item against a tag that is already bound."""


def parse_rfid(value) -> int:
    return coerce_positive_int(value, "rfid", "Invalid RFID value")


class TagRegistry:
    def __init__(self, session):
        self.session = session

    def get(self, rfid, *, lock: bool = False) -> RfidTag:
        rfid = parse_rfid(rfid)
        query = self.session.query(RfidTag).filter_by(rfid=rfid)
        if lock:
            query = lock_for_update(query)
        tag = query.first()
        if tag is None:
            raise TagNotFound("RFID tag not found", field="rfid")
        return tag

    def register(self, rfid) -> RfidTag:
        """Register a new tag with used=False. DuplicateTag if it exists."""
        rfid = parse_rfid(rfid)

        try:
            with atomic(self.session):
                if self.session.get(RfidTag, rfid) is not None:
                    raise DuplicateTag("RFID tag already exists", field="rfid")
                tag = RfidTag(rfid=rfid, used=False)
                self.session.add(tag)
                self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same value
            raise DuplicateTag("RFID tag already exists", field="rfid") from exc

        logger.info("Registered RFID tag %s", rfid)
        return tag

    def claim(self, rfid) -> RfidTag:
        """Mark a tag as bound. Caller has already checked it exists and is free."""
        tag = self.get(rfid)
        tag.used = True
        logger.info("Claimed RFID tag %s", tag.rfid)
        return tag

    def release(self, rfid) -> RfidTag:
        """Mark a tag as free. Releasing a free tag is a no-op."""
        tag = self.get(rfid)
        tag.used = False
        logger.info("Released RFID tag %s", tag.rfid)
        return tag

    def delete(self, rfid) -> int:
        """
        Delete a free tag.

        Checked-out items may still point at the tag; their rfid is cleared
        so no dangling reference survives the delete.
        """
        with atomic(self.session):
            tag = self.get(rfid, lock=True)
            if tag.used:
                raise TagInUse("RFID tag is currently associated with an item", field="rfid")

            self.session.query(Item).filter(Item.rfid == tag.rfid).update(
                {"rfid": None}, synchronize_session="fetch"
            )
            self.session.delete(tag)
            deleted = tag.rfid

        logger.info("Deleted RFID tag %s", deleted)
        return deleted

    def list(self) -> list[RfidTag]:
        return self.session.query(RfidTag).order_by(RfidTag.rfid.asc()).all()

    def counts(self) -> dict:
        total = self.session.query(func.count(RfidTag.rfid)).scalar() or 0
        used = self.session.query(func.count(RfidTag.rfid)).filter(RfidTag.used.is_(True)).scalar() or 0
        return {"total": total, "used": used, "free": total - used}
