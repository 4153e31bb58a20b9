from __future__ import annotations
import math
from datetime import date, datetime
from stockroom.time_utils import parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Float, Numeric, String, Text, Date
from sqlalchemy.orm import DeclarativeMeta


class ServiceError(ValueError):
    """
    Base for errors surfaced to API callers.

    Carries a field-level hint so the frontend can highlight the offending
    input. Subclasses pick the HTTP status.
    """
    status_code = 400

    def __init__(self, message: str, field: str | None = None, errors: dict | None = None):
        super().__init__(message)
        self.field = field
        self._errors = errors

    @property
    def errors(self) -> dict:
        if self._errors:
            return dict(self._errors)
        if self.field:
            return {self.field: str(self)}
        return {}

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        errors = self.errors
        if errors:
            body["errors"] = errors
        return body

    def to_response(self) -> tuple[dict, int]:
        return self.to_dict(), self.status_code


class ValidationError(ServiceError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(ServiceError):
    """404-level lookup miss (tag, camera, item, video)."""
    status_code = 404


class ConflictError(ServiceError):
    """409-level business rule conflict (e.g., tag already bound to an item)."""
    status_code = 409


class DuplicateError(ServiceError):
    """409-level uniqueness violation (e.g., tag already registered)."""
    status_code = 409


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignore_unknown: drop non-writable keys instead of rejecting the payload
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    ignore_unknown: bool = False


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _label(key: str) -> str:
    return key.replace("_", " ")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Booleans (JSON true/false, or query-string style "true"/"false")
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
            return value.strip().lower() in ("true", "1")
        raise ValidationError(f"{col.key} must be a boolean", field=col.key)

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer", field=col.key)
            if 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be a plain integer", field=col.key)
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer", field=col.key)
        raise ValidationError(f"{col.key} must be an integer", field=col.key)

    # Floats / decimals (weight, threshold); Float and Numeric are siblings on newer SQLAlchemy
    if isinstance(coltype, (Numeric, Float)):
        if isinstance(value, bool):
            raise ValidationError(f"Invalid {_label(col.key)} value", field=col.key)
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValidationError(f"Invalid {_label(col.key)} value", field=col.key)
        else:
            raise ValidationError(f"Invalid {_label(col.key)} value", field=col.key)
        if not math.isfinite(number):
            raise ValidationError(f"Invalid {_label(col.key)} value", field=col.key)
        return number

    # Calendar dates (expiry_date); blank string clears the value
    if isinstance(coltype, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"Invalid {_label(col.key)} format", field=col.key)
        raise ValidationError(f"Invalid {_label(col.key)} format", field=col.key)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) is None)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                errors={f: f"{f} is required" for f in missing},
            )

    cols = _columns_by_key(model)

    # Reject (or drop) unknown / non-writable fields
    accepted = {}
    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            if policy.ignore_unknown:
                continue
            raise ValidationError(f"Field not allowed: {k}", field=k)
        accepted[k] = raw

    patch: dict = {}

    for k, raw in accepted.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", field=k)
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", field=k)

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", field=k)

        patch[k] = val

    return patch


def coerce_positive_int(value: Any, field: str, message: str) -> int:
    """Accept ints and digit strings > 0 (RFID values, camera ids, path params)."""
    if isinstance(value, bool):
        raise ValidationError(message, field=field)
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ValidationError(message, field=field)
    if number <= 0:
        raise ValidationError(message, field=field)
    return number


def enforce_rules_item(patch: dict, current=None) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.

    `current` is the stored Item for updates; the perishable/expiry pairing is
    checked against the record as it will look after the patch.
    """
    for key in ("weight", "threshold"):
        if key in patch:
            value = patch[key]
            if value is None or value <= 0:
                raise ValidationError(f"Invalid {key} value", field=key)

    perishable = patch["perishable"] if "perishable" in patch else (
        current.perishable if current is not None else False
    )
    expiry_date = patch["expiry_date"] if "expiry_date" in patch else (
        current.expiry_date if current is not None else None
    )
    if perishable and expiry_date is None:
        raise ValidationError("Expiry date is required for perishable items", field="expiry_date")
