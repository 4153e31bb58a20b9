# Overview: Service-layer operations for auth; signup, credential checks, password hashing.

"""
Authentication Service

Every inventory change is made by an authenticated operator.
Passwords are hashed with bcrypt; plaintext passwords never reach the DB.

RULES:
- username required, unique
- email must look like an address, unique
- password at least 6 characters
"""

import logging
import re

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..validation import ValidationError, DuplicateError
from .concurrency import atomic
from stockroom.time_utils import utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthenticationError(ValueError):
    """Raised on failed login; `field` names the credential that was wrong."""

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password length must be at least {MIN_PASSWORD_LENGTH}", field="password"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, email: str, password: str) -> User:
    """
    Create a new operator account.

    Raises:
        ValidationError: blank username, malformed email, short password
        DuplicateError: username or email already registered
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if not username:
        raise ValidationError("Username is required", field="username")
    if not EMAIL_RE.match(email):
        raise ValidationError("Enter a valid email", field="email")

    password_hash = hash_password(password)

    if db.session.query(User).filter_by(username=username).first():
        raise DuplicateError("Username already taken", field="username")
    if db.session.query(User).filter_by(email=email).first():
        raise DuplicateError("Email already registered", field="email")

    try:
        with atomic(db.session):
            user = User(username=username, email=email, password_hash=password_hash)
            db.session.add(user)
            db.session.flush()
    except IntegrityError as exc:
        raise DuplicateError("Username or email already registered", field="username") from exc

    logger.info("Created user %s", username)
    return user


def authenticate(username: str, password: str) -> User:
    """
    Check credentials. Accepts username or email as the identifier.

    Raises AuthenticationError naming the wrong field; updates last_login_at
    on success.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == username, User.email == username),
        User.is_active.is_(True),
    ).first()

    if not user:
        raise AuthenticationError("User not found", field="username")

    if not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid password", field="password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
