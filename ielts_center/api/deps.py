"""
Shared router dependencies.

The acting user comes from the X-User-Id header set by the upstream auth
gateway; this service does not verify identities itself.
"""
from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from fastapi import Depends, Header, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from config import get_settings
from ielts_center.db.database import get_session
from ielts_center.events import notifier
from ielts_center.exceptions import IeltsCenterError
from ielts_center.grading import MatchPolicy
from ielts_center.services import IeltsService, QuizService, WritingService


def get_current_user_id(x_user_id: int = Header(..., description="Acting user id")) -> int:
    return x_user_id


def get_match_policy() -> MatchPolicy:
    return MatchPolicy.from_name(get_settings().answer_matching)


def get_ielts_service(
    db: Session = Depends(get_session),
    policy: MatchPolicy = Depends(get_match_policy),
) -> IeltsService:
    return IeltsService(db, notifier=notifier, policy=policy)


def get_writing_service(db: Session = Depends(get_session)) -> WritingService:
    return WritingService(db, notifier=notifier)


def get_quiz_service(
    db: Session = Depends(get_session),
    policy: MatchPolicy = Depends(get_match_policy),
) -> QuizService:
    return QuizService(db, notifier=notifier, policy=policy)


@contextmanager
def domain_errors() -> Generator[None, None, None]:
    """Translate domain errors raised inside the block into HTTP errors."""
    try:
        yield
    except IeltsCenterError as e:
        logger.debug(f"{type(e).__name__}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
