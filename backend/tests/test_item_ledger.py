# Overview: Pytest coverage for the item ledger and the item/tag binding.

"""
Item Ledger Tests

The ledger owns the only writes to RfidTag.used. Each lifecycle transition
(register, checkout, delete) must leave the tag flag consistent with the
items that reference it, or change nothing at all.
"""

from datetime import date

import pytest

from stockroom.models import Item, RfidTag
from stockroom.services.camera_service import CameraNotFound
from stockroom.services.item_service import ItemNotFound, ItemAlreadyCheckedOut, MAX_PAGE_SIZE
from stockroom.services.tag_service import TagNotFound, TagAlreadyInUse
from stockroom.validation import ValidationError


def _tag_used(db_session, rfid):
    db_session.expire_all()
    return db_session.get(RfidTag, rfid).used


class TestRegister:
    def test_register_claims_tag(self, db_session, ledger, camera, tag, item_payload, tag_invariant):
        item = ledger.register(item_payload())

        assert item.id is not None
        assert item.timestamp_in is not None
        assert item.timestamp_out is None
        assert item.weight == 5.0
        assert _tag_used(db_session, 1001) is True
        tag_invariant()

    def test_register_perishable_with_expiry(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload(
            category="Food", perishable=True, weight=10.5, fragile=True,
            threshold=5, expiry_date="2024-01-01",
        ))

        assert item.expiry_date == date(2024, 1, 1)
        assert item.to_dict()["expiry_date"] == "2024-01-01"

    def test_register_accepts_slash_dates(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload(perishable=True, expiry_date="2024/03/05"))
        assert item.expiry_date == date(2024, 3, 5)

    def test_unknown_fields_ignored(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload(id=999, used=True, colour="red"))
        assert item.id != 999

    def test_ids_are_unique(self, db_session, ledger, camera, seed_tags, item_payload):
        seed_tags(1, 2, 3)
        ids = [ledger.register(item_payload(rfid=r)).id for r in (1, 2, 3)]
        assert len(set(ids)) == 3

    def test_unknown_tag(self, db_session, ledger, camera, item_payload):
        with pytest.raises(TagNotFound) as exc:
            ledger.register(item_payload(rfid=5555))

        assert exc.value.status_code == 404
        assert db_session.query(Item).count() == 0

    def test_tag_already_in_use(self, db_session, ledger, camera, tag, item_payload, tag_invariant):
        ledger.register(item_payload())

        with pytest.raises(TagAlreadyInUse) as exc:
            ledger.register(item_payload(category="Spares"))

        assert exc.value.status_code == 409
        assert str(exc.value) == "This RFID tag is already associated with another item"
        assert db_session.query(Item).count() == 1
        tag_invariant()

    def test_unknown_camera(self, db_session, ledger, tag, item_payload):
        with pytest.raises(CameraNotFound) as exc:
            ledger.register(item_payload(camera_id=777))

        assert str(exc.value) == "Camera ID does not exist in the system"
        assert db_session.query(Item).count() == 0
        assert _tag_used(db_session, 1001) is False

    def test_tag_checked_before_camera(self, db_session, ledger, item_payload):
        with pytest.raises(TagNotFound):
            ledger.register(item_payload(rfid=5555, camera_id=777))

    def test_missing_required_fields(self, db_session, ledger, camera, tag):
        with pytest.raises(ValidationError) as exc:
            ledger.register({"category": "Tools"})

        assert set(exc.value.errors) == {"weight", "threshold", "camera_id", "rfid"}
        assert db_session.query(Item).count() == 0

    def test_perishable_requires_expiry(self, db_session, ledger, camera, tag, item_payload):
        with pytest.raises(ValidationError) as exc:
            ledger.register(item_payload(perishable=True))

        assert exc.value.field == "expiry_date"
        assert "expiry_date" in exc.value.to_dict()["errors"]
        assert _tag_used(db_session, 1001) is False

    @pytest.mark.parametrize("field,value", [
        ("weight", 0), ("weight", -1), ("weight", "heavy"), ("weight", True),
        ("threshold", 0), ("threshold", "nan"), ("threshold", [2]),
    ])
    def test_invalid_numbers(self, db_session, ledger, camera, tag, item_payload, field, value):
        with pytest.raises(ValidationError) as exc:
            ledger.register(item_payload(**{field: value}))

        assert exc.value.field == field
        assert str(exc.value) == f"Invalid {field} value"

    def test_invalid_expiry_format(self, db_session, ledger, camera, tag, item_payload):
        with pytest.raises(ValidationError) as exc:
            ledger.register(item_payload(perishable=True, expiry_date="01-02-2024"))

        assert exc.value.field == "expiry_date"
        assert str(exc.value) == "Invalid expiry date format"

    def test_claim_failure_rolls_back_item(
        self, db_session, ledger, camera, tag, item_payload, monkeypatch, tag_invariant
    ):
        def boom(rfid):
            raise RuntimeError("tag write failed")

        monkeypatch.setattr(ledger.tags, "claim", boom)

        with pytest.raises(RuntimeError):
            ledger.register(item_payload())

        assert db_session.query(Item).count() == 0
        assert _tag_used(db_session, 1001) is False
        tag_invariant()


class TestUpdate:
    def test_partial_update(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        updated = ledger.update(item.id, {"weight": "7.25", "fragile": True})

        assert updated.weight == 7.25
        assert updated.fragile is True
        assert updated.category == "Tools"
        assert updated.timestamp_out is None

    def test_no_recognized_fields_is_noop(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())
        before = item.to_dict()

        after = ledger.update(item.id, {"colour": "red", "timestamp_out": "2024-01-01"})

        assert after.to_dict() == before
        assert _tag_used(db_session, 1001) is True

    def test_rfid_not_writable(self, db_session, ledger, camera, seed_tags, item_payload):
        seed_tags(1, 2)
        item = ledger.register(item_payload(rfid=1))

        ledger.update(item.id, {"rfid": 2})

        db_session.expire_all()
        assert db_session.get(Item, item.id).rfid == 1
        assert _tag_used(db_session, 2) is False

    def test_perishable_without_expiry_rejected(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        with pytest.raises(ValidationError) as exc:
            ledger.update(item.id, {"perishable": True})

        assert exc.value.field == "expiry_date"
        db_session.expire_all()
        assert db_session.get(Item, item.id).perishable is False

    def test_clearing_expiry_on_perishable_rejected(
        self, db_session, ledger, camera, tag, item_payload, future_date
    ):
        item = ledger.register(item_payload(perishable=True, expiry_date=future_date))

        with pytest.raises(ValidationError):
            ledger.update(item.id, {"expiry_date": None})

    def test_invalid_weight_rejected(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        with pytest.raises(ValidationError):
            ledger.update(item.id, {"weight": -3})

    def test_non_numeric_weight_rejected(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        with pytest.raises(ValidationError) as exc:
            ledger.update(item.id, {"weight": "heavy"})

        assert exc.value.field == "weight"
        db_session.expire_all()
        assert db_session.get(Item, item.id).weight == 5.0

    def test_non_object_payload_rejected(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        with pytest.raises(ValidationError) as exc:
            ledger.update(item.id, [1, 2])

        assert str(exc.value) == "Invalid JSON payload"

    def test_move_to_unknown_camera(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        with pytest.raises(CameraNotFound):
            ledger.update(item.id, {"camera_id": 999})

    def test_missing_item(self, db_session, ledger):
        with pytest.raises(ItemNotFound):
            ledger.update(12345, {"weight": 1})


class TestCheckout:
    def test_checkout_releases_tag(self, db_session, ledger, camera, tag, item_payload, tag_invariant):
        item = ledger.register(item_payload())

        out = ledger.update(item.id, {"timestamp_out": True})

        assert out.timestamp_out is not None
        assert out.is_checked_out
        assert _tag_used(db_session, 1001) is False
        tag_invariant()

    def test_checkout_with_field_changes(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())

        out = ledger.update(item.id, {"timestamp_out": True, "weight": 4})

        assert out.weight == 4.0
        assert out.timestamp_out is not None

    def test_second_checkout_conflicts(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())
        first = ledger.checkout(item.id)
        stamped = first.timestamp_out

        with pytest.raises(ItemAlreadyCheckedOut) as exc:
            ledger.checkout(item.id)

        assert exc.value.status_code == 409
        db_session.expire_all()
        assert db_session.get(Item, item.id).timestamp_out == stamped

    def test_second_checkout_does_not_touch_reused_tag(
        self, db_session, ledger, camera, tag, item_payload, tag_invariant
    ):
        first = ledger.register(item_payload())
        ledger.checkout(first.id)
        ledger.register(item_payload(category="Spares"))

        with pytest.raises(ItemAlreadyCheckedOut):
            ledger.checkout(first.id)

        assert _tag_used(db_session, 1001) is True
        tag_invariant()

    def test_tag_reusable_after_checkout(self, db_session, ledger, camera, tag, item_payload, tag_invariant):
        first = ledger.register(item_payload())
        ledger.checkout(first.id)

        second = ledger.register(item_payload(category="Spares"))

        assert second.id != first.id
        assert second.rfid == 1001
        tag_invariant()

    def test_release_failure_rolls_back_checkout(
        self, db_session, ledger, camera, tag, item_payload, monkeypatch, tag_invariant
    ):
        item = ledger.register(item_payload())

        def boom(rfid):
            raise RuntimeError("tag write failed")

        monkeypatch.setattr(ledger.tags, "release", boom)

        with pytest.raises(RuntimeError):
            ledger.checkout(item.id)

        db_session.expire_all()
        assert db_session.get(Item, item.id).timestamp_out is None
        assert _tag_used(db_session, 1001) is True
        tag_invariant()

    def test_checkout_missing_item(self, db_session, ledger):
        with pytest.raises(ItemNotFound):
            ledger.checkout(4040)


class TestDelete:
    def test_delete_in_stock_releases_tag(self, db_session, ledger, camera, tag, item_payload, tag_invariant):
        item = ledger.register(item_payload())
        item_id = item.id

        assert ledger.delete(item_id) == item_id
        assert db_session.query(Item).count() == 0
        assert _tag_used(db_session, 1001) is False
        tag_invariant()

    def test_delete_checked_out_leaves_reused_tag(
        self, db_session, ledger, camera, tag, item_payload, tag_invariant
    ):
        first = ledger.register(item_payload())
        first_id = first.id
        ledger.checkout(first_id)
        ledger.register(item_payload(category="Spares"))

        ledger.delete(first_id)

        assert _tag_used(db_session, 1001) is True
        tag_invariant()

    def test_delete_missing_item(self, db_session, ledger):
        with pytest.raises(ItemNotFound):
            ledger.delete(77)

    def test_get_after_delete(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload())
        item_id = item.id
        ledger.delete(item_id)

        with pytest.raises(ItemNotFound):
            ledger.get(item_id)


class TestQueries:
    @pytest.fixture
    def stocked(self, db_session, ledger, camera, seed_tags, item_payload, past_date, future_date):
        seed_tags(1, 2, 3, 4)
        old_milk = ledger.register(item_payload(
            rfid=1, category="Food", perishable=True, expiry_date=past_date, weight=2,
        ))
        fresh_milk = ledger.register(item_payload(
            rfid=2, category="Food", perishable=True, expiry_date=future_date, weight=3,
        ))
        hammer = ledger.register(item_payload(rfid=3, category="Tools", weight=9, fragile=False))
        vase = ledger.register(item_payload(rfid=4, category="Decor", weight=1, fragile=True, dry=False))
        ledger.checkout(vase.id)
        return {"old_milk": old_milk.id, "fresh_milk": fresh_milk.id, "hammer": hammer.id, "vase": vase.id}

    def test_get_round_trip(self, db_session, ledger, camera, tag, item_payload):
        item = ledger.register(item_payload(category="Food", perishable=True, expiry_date="2030-06-01"))

        loaded = ledger.get(item.id).to_dict()

        assert loaded["category"] == "Food"
        assert loaded["perishable"] is True
        assert loaded["weight"] == 5.0
        assert loaded["threshold"] == 2.0
        assert loaded["expiry_date"] == "2030-06-01"
        assert loaded["camera_id"] == 101
        assert loaded["rfid"] == 1001
        assert loaded["timestamp_out"] is None
        assert loaded["timestamp_in"].endswith("Z")

    def test_get_rejects_bad_id(self, db_session, ledger):
        with pytest.raises(ItemNotFound):
            ledger.get("abc")

    def test_list_all(self, db_session, ledger, stocked):
        result = ledger.list()

        assert [i["id"] for i in result["items"]] == sorted(stocked.values())
        assert result["pagination"] == {"total": 4, "page": 1, "limit": 10, "total_pages": 1}

    def test_filter_category(self, db_session, ledger, stocked):
        result = ledger.list(category="Food")
        assert {i["id"] for i in result["items"]} == {stocked["old_milk"], stocked["fresh_milk"]}

    def test_filter_perishable(self, db_session, ledger, stocked):
        result = ledger.list(perishable=False)
        assert {i["id"] for i in result["items"]} == {stocked["hammer"], stocked["vase"]}

    def test_filter_expired(self, db_session, ledger, stocked):
        expired = ledger.list(expired=True)
        assert [i["id"] for i in expired["items"]] == [stocked["old_milk"]]

        fresh = ledger.list(expired=False)
        assert {i["id"] for i in fresh["items"]} == {
            stocked["fresh_milk"], stocked["hammer"], stocked["vase"],
        }

    def test_filter_in_stock(self, db_session, ledger, stocked):
        in_stock = ledger.list(in_stock=True)
        out = ledger.list(in_stock=False)

        assert stocked["vase"] not in {i["id"] for i in in_stock["items"]}
        assert [i["id"] for i in out["items"]] == [stocked["vase"]]

    def test_sort_by_weight_desc(self, db_session, ledger, stocked):
        result = ledger.list(sort_by="weight", sort_order="desc")
        assert [i["weight"] for i in result["items"]] == [9.0, 3.0, 2.0, 1.0]

    def test_unknown_sort_field_falls_back_to_id(self, db_session, ledger, stocked):
        result = ledger.list(sort_by="id; DROP TABLE items", sort_order="sideways")
        assert [i["id"] for i in result["items"]] == sorted(stocked.values())

    def test_pagination(self, db_session, ledger, stocked):
        page2 = ledger.list(page=2, limit=3)

        assert len(page2["items"]) == 1
        assert page2["pagination"] == {"total": 4, "page": 2, "limit": 3, "total_pages": 2}

    def test_limit_clamped(self, db_session, ledger, stocked):
        assert ledger.list(limit=5000)["pagination"]["limit"] == MAX_PAGE_SIZE
        assert ledger.list(page=0)["pagination"]["page"] == 1

    def test_list_expired(self, db_session, ledger, stocked):
        expired = ledger.list_expired()
        assert [i.id for i in expired] == [stocked["old_milk"]]

    def test_checked_out_item_not_expired(self, db_session, ledger, stocked):
        ledger.checkout(stocked["old_milk"])
        assert ledger.list_expired() == []

    def test_checked_out_item_excluded_from_expired_filter(self, db_session, ledger, stocked):
        ledger.checkout(stocked["old_milk"])

        assert ledger.list(expired=True)["items"] == []
        assert stocked["old_milk"] not in {i["id"] for i in ledger.list(expired=False)["items"]}

    def test_summary(self, db_session, ledger, stocked):
        summary = ledger.summary()

        assert summary["in_stock"] == 3
        assert summary["checked_out"] == 1
        assert summary["perishable"] == 2
        assert summary["fragile"] == 0
        assert summary["expired"] == 1
        assert summary["by_category"] == {"Food": 2, "Tools": 1}
        assert summary["tags"] == {"total": 4, "used": 3, "free": 1}
