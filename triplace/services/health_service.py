"""
triplace.services.health_service — Liveness & readiness probes
===============================================================

Two probes: a raw ``SELECT 1`` against the database, and a storage probe
that exercises the ORM by counting communities.  Zero failures is
``healthy``, one is ``degraded``, two is ``unhealthy``.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from triplace import __version__
from triplace.database.models import Community

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

STATUS_CODES = {"healthy": 200, "degraded": 202, "unhealthy": 503}


def _probe_database(engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.exception("Health check: database probe failed")
        return False


def _probe_storage(engine) -> bool:
    try:
        with Session(engine) as session:
            session.scalar(select(func.count()).select_from(Community))
        return True
    except SQLAlchemyError:
        logger.exception("Health check: storage probe failed")
        return False


def overall_status(checks: dict[str, str]) -> str:
    failed = sum(1 for v in checks.values() if v == "fail")
    if failed == 0:
        return "healthy"
    return "degraded" if failed == 1 else "unhealthy"


def perform_health_check(engine) -> dict:
    started = time.perf_counter()
    checks = {
        "database": "pass" if _probe_database(engine) else "fail",
        "storage": "pass" if _probe_storage(engine) else "fail",
    }
    status = overall_status(checks)
    if status != "healthy":
        logger.warning("Health check %s: %s", status, checks)
    return {
        "status": status,
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "checks": checks,
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }
