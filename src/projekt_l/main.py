"""Main FastAPI application for Projekt L."""

import time

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .api import (
    achievements,
    activity,
    auth,
    contacts,
    currency,
    domains,
    export,
    factions,
    finance,
    geist,
    graph_views,
    habits,
    quests,
    reports,
    skills,
    streak_insurance,
)
from .api.middleware import (
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    install_exception_handlers,
)
from .config import get_config, validate_startup_security
from .db.database import SessionLocal
from .utils.logging_config import get_logger, initialize_logging

config = get_config()
logger = get_logger("main")

app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=config.app.version,
    docs_url="/docs",
    redoc_url="/redoc",
)

install_exception_handlers(app)

# Innermost first
app.add_middleware(
    RequestSizeLimitMiddleware,
    default_limit=config.app.max_request_bytes,
    import_limit=config.app.max_import_bytes,
)
app.add_middleware(SecurityHeadersMiddleware)

allowed_origins = config.app.cors_origins or [
    "http://127.0.0.1:8000",
    "http://localhost:8000",
]
if config.server.debug:
    allowed_origins = allowed_origins + [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(auth.router)
app.include_router(factions.router)
app.include_router(domains.router)
app.include_router(skills.router)
app.include_router(graph_views.router)
app.include_router(habits.router)
app.include_router(streak_insurance.router)
app.include_router(quests.router)
app.include_router(contacts.router)
app.include_router(geist.router)
app.include_router(currency.router)
app.include_router(activity.router)
app.include_router(finance.router)
app.include_router(achievements.router)
app.include_router(reports.router)
app.include_router(export.router)


@app.on_event("startup")
async def startup_event():
    initialize_logging(log_dir=config.app.log_dir if config.app.log_to_file else None, debug=config.server.debug)
    validate_startup_security()
    logger.info(f"{config.app.app_name} {config.app.version} started")


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "projekt-l", "version": config.app.version}


@app.get("/ready")
def readiness_check():
    """Readiness check that validates database connectivity."""
    start_time = time.time()
    checks = {"database": False, "config": config is not None}
    errors = []

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        errors.append(f"Database check failed: {e}")
    finally:
        db.close()

    all_ready = all(checks.values())
    response = {
        "status": "ready" if all_ready else "not_ready",
        "service": "projekt-l",
        "version": config.app.version,
        "checks": checks,
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }
    if errors:
        response["errors"] = errors

    return JSONResponse(content=response, status_code=200 if all_ready else 503)


def main() -> None:
    """Run the API server with the configured host and port."""
    uvicorn.run(
        "projekt_l.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.auto_reload,
        log_level=config.app.log_level.lower(),
    )
