# Overview: Health endpoint for load balancers and deploy checks.

import time

from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Profile, SessionToken, Shop
from shopdesk.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Count a few core tables; any failure marks the database unhealthy."""
    start_time = time.time()
    try:
        shop_count = db.session.query(Shop).count()
        profile_count = db.session.query(Profile).count()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.revoked_at.is_(None),
            SessionToken.expires_at > utcnow(),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "shops": shop_count,
                "profiles": profile_count,
                "active_sessions": active_sessions,
            },
        }
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
    status = "healthy" if database["status"] == "healthy" else "unhealthy"
    return jsonify({
        "status": status,
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), 200 if status == "healthy" else 503
