"""API routers for ielts-center."""

from ielts_center.api.routers import (
    ielts_router,
    quiz_router,
    writing_router,
)

__all__ = [
    "ielts_router",
    "quiz_router",
    "writing_router",
]
