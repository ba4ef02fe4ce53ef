"""
FastAPI application for ielts-center.

Provides REST API for:
- IELTS reading/listening tests, submissions and result review
- IELTS writing tasks with teacher and automated grading
- Points-based quizzes
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from ielts_center import __version__
from ielts_center.db.database import get_engine, init_db

settings = get_settings()


def _check_database_health() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting ielts-center service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down ielts-center service...")


app = FastAPI(
    title="IELTS Center",
    description="""
    Test delivery and scoring service for IELTS preparation.

    ## Features

    - **Reading / Listening**: Sectioned tests with grouped questions, band scoring
    - **Writing**: Task 1 / Task 2 essays, rubric grading, automated assessment
    - **Quizzes**: Points-based quizzes with deadlines

    ## Scoring

    ```
    test definition + answers
        ↓ grader (per question group)
    per-position verdicts
        ↓ aggregator
    band score + feedback + review
    ```

    The acting user is read from the `X-User-Id` header.
    """,
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "ielts-center",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round trip."""
    db_status, db_error = _check_database_health()

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
        "config": {"answer_matching": settings.answer_matching},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from ielts_center.api.routers import (
    ielts_router,
    quiz_router,
    writing_router,
)

app.include_router(ielts_router.router, prefix="/ielts", tags=["IELTS"])
app.include_router(writing_router.router, prefix="/writing", tags=["Writing"])
app.include_router(quiz_router.router, prefix="/quizzes", tags=["Quizzes"])
