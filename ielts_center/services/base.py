"""
Shared service plumbing: session, change notifier and time helpers.
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ielts_center.events import ChangeNotifier, notifier as default_notifier
from ielts_center.exceptions import PermissionDeniedError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseService:
    def __init__(self, db: Session, notifier: ChangeNotifier | None = None):
        self.db = db
        self.notifier = notifier or default_notifier

    @staticmethod
    def _require_owner(owner_id: int, user_id: int, action: str) -> None:
        if owner_id != user_id:
            raise PermissionDeniedError(f"Only the creator can {action}")
