"""
triplace.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn triplace.api.main:app --reload --port 8000

or ``python -m triplace.api``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from triplace import __version__  # noqa: E402
from triplace.api.deps import get_config, get_engine  # noqa: E402
from triplace.api.routes.admin import router as admin_router  # noqa: E402
from triplace.api.routes.communities import router as communities_router  # noqa: E402
from triplace.api.routes.events import router as events_router  # noqa: E402
from triplace.api.routes.kudos import router as kudos_router  # noqa: E402
from triplace.api.routes.messages import router as messages_router  # noqa: E402
from triplace.api.routes.users import router as users_router  # noqa: E402
from triplace.database.engine import init_db, run_db  # noqa: E402
from triplace.services.health_service import STATUS_CODES, perform_health_check  # noqa: E402
from triplace.services.log_buffer import install_handler  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Comma-separated ``CORS_ALLOW_ORIGINS``; empty means no cross-origin access."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — attach the log tail, create the schema."""
    # After Uvicorn has configured logging, or our handler gets dropped.
    install_handler()

    # Honour test overrides for the two cached singletons.
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    config = app.dependency_overrides.get(get_config, get_config)()

    await run_db(init_db, engine, seed_sample_data=config.seed_sample_data)
    logger.info("%s API started — engine ready (%s)", config.app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", config.app_name)


app = FastAPI(
    title="TriPlace API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Database error on %s %s", request.method, request.url.path, exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(users_router, prefix="/api")
app.include_router(communities_router, prefix="/api")
app.include_router(events_router, prefix="/api")
app.include_router(messages_router, prefix="/api")
app.include_router(kudos_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


# ---------------------------------------------------------------------------
# Ops
# ---------------------------------------------------------------------------
@app.get("/api/health")
def health(engine: Engine = Depends(get_engine)):
    report = perform_health_check(engine)
    return JSONResponse(
        status_code=STATUS_CODES[report["status"]],
        content={"status": report["status"], "timestamp": report["timestamp"]},
    )


@app.get("/api/health/detailed")
def health_detailed(engine: Engine = Depends(get_engine)):
    report = perform_health_check(engine)
    return JSONResponse(status_code=STATUS_CODES[report["status"]], content=report)


@app.get("/api/version")
def version():
    return {"version": __version__, "name": "TriPlace API"}
