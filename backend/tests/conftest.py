"""
Pytest fixtures for Stockroom backend tests.

Provides an in-memory database, per-test table wipes, lifecycle service
instances, and authenticated client headers.
"""

from datetime import timedelta

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Camera, RfidTag, Item, User
from stockroom.services.auth_service import hash_password
from stockroom.services.camera_service import CameraRegistry
from stockroom.services.item_service import ItemLedger
from stockroom.services.session_service import create_session
from stockroom.services.tag_service import TagRegistry
from stockroom.time_utils import utctoday

TEST_PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cameras(db_session):
    return CameraRegistry(db_session)


@pytest.fixture(scope='function')
def tags(db_session):
    return TagRegistry(db_session)


@pytest.fixture(scope='function')
def ledger(db_session, tags, cameras):
    return ItemLedger(db_session, tags=tags, cameras=cameras)


@pytest.fixture(scope='function')
def camera(db_session):
    """Camera 101 at the loading dock."""
    cam = Camera(camera_id=101, location="Dock A")
    db_session.add(cam)
    db_session.commit()
    return cam


@pytest.fixture(scope='function')
def tag(db_session):
    """Free RFID tag 1001."""
    t = RfidTag(rfid=1001, used=False)
    db_session.add(t)
    db_session.commit()
    return t


@pytest.fixture(scope='function')
def item_payload():
    """Valid registration body for a non-perishable item on tag 1001 / camera 101."""
    def _payload(**overrides):
        payload = {
            "category": "Tools",
            "perishable": False,
            "weight": 5,
            "dry": True,
            "fragile": False,
            "threshold": 2,
            "camera_id": 101,
            "rfid": 1001,
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture(scope='function')
def past_date():
    return (utctoday() - timedelta(days=3)).isoformat()


@pytest.fixture(scope='function')
def future_date():
    return (utctoday() + timedelta(days=30)).isoformat()


@pytest.fixture(scope='function')
def user(db_session, password_hash):
    u = User(username="operator", email="operator@stockroom.local", password_hash=password_hash)
    db_session.add(u)
    db_session.commit()
    return u


@pytest.fixture(scope='function')
def auth_token(user):
    _, token = create_session(user_id=user.id)
    return token


@pytest.fixture(scope='function')
def auth_headers(auth_token):
    return {'Authorization': f'Bearer {auth_token}'}


@pytest.fixture(scope='function')
def seed_tags(db_session):
    """Seed several free tags at once."""
    def _seed(*rfids):
        for rfid in rfids:
            db_session.add(RfidTag(rfid=rfid, used=False))
        db_session.commit()
    return _seed


@pytest.fixture(scope='function')
def tag_invariant(db_session):
    """Returns a checker: used=True iff exactly one in-stock item references the tag."""
    def _check():
        db_session.expire_all()
        for t in db_session.query(RfidTag).all():
            in_stock = db_session.query(Item).filter(
                Item.rfid == t.rfid,
                Item.timestamp_out.is_(None),
            ).count()
            assert in_stock <= 1, f"tag {t.rfid} bound to {in_stock} in-stock items"
            assert t.used == (in_stock == 1), f"tag {t.rfid} used={t.used} but {in_stock} in-stock items"
    return _check
