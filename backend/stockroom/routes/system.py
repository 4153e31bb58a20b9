# backend/stockroom/routes/system.py
"""
System health endpoints.

Public; used by load balancers and by the frontend's connection check.
"""

import os
import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from stockroom.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Run a trivial query and report latency."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return {
        "status": "healthy" if healthy else "unhealthy",
        "environment": os.environ.get("FLASK_ENV", "development"),
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }, 200 if healthy else 503


@system_bp.get("/db-test")
def db_test():
    """Round-trip the database clock."""
    try:
        now = db.session.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    except Exception:
        current_app.logger.exception("Database connection test failed")
        return {"status": "error", "message": "Database connection failed"}, 500
    return {
        "status": "success",
        "message": "Database connection successful",
        "time": str(now),
    }, 200
