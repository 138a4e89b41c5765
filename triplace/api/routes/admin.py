"""
triplace.api.routes.admin — Admin-only operations (JWT bearer)
===============================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from triplace.api.deps import get_current_admin, get_engine
from triplace.database.seed import seed_sample_data
from triplace.services.log_buffer import (
    VALID_LEVELS,
    get_current_level,
    get_logs,
    set_capture_level,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class LevelChange(BaseModel):
    level: str


@router.get("/logs")
def get_live_logs(
    tail: int = Query(200, ge=1, le=2000),
    level: str | None = Query(None),
    logger_prefix: str | None = Query(None, alias="logger"),
    admin: dict = Depends(get_current_admin),
):
    """Recent log entries from the in-memory ring buffer."""
    entries = get_logs(tail=tail, level=level, logger_prefix=logger_prefix)
    return {
        "entries": entries,
        "total": len(entries),
        "capture_level": get_current_level(),
        "valid_levels": list(VALID_LEVELS),
    }


@router.put("/logs/level")
def change_log_level(body: LevelChange, admin: dict = Depends(get_current_admin)):
    try:
        new_level = set_capture_level(body.level)
    except ValueError:
        raise HTTPException(400, detail=f"Invalid level. Must be one of: {', '.join(VALID_LEVELS)}")
    logger.info("Admin %s set log capture level to %s", admin.get("sub"), new_level)
    return {"level": new_level}


@router.post("/seed")
def seed(
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    """Insert the sample communities and events if missing."""
    inserted = seed_sample_data(engine)
    logger.info("Admin %s ran the sample-data seeder: %s", admin.get("sub"), inserted)
    return {"inserted": inserted}
