"""Shared test fixtures for collabtrust."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from collabtrust.audit.logger import AuditLogger
from collabtrust.models import (
    AuditEvent,
    AuditEventType,
    CategoryRatings,
    Idea,
    IdeaStatus,
    MatchResult,
    Rating,
    User,
)
from collabtrust.recompute.manager import RecomputeManager
from collabtrust.store.db import CollabDB


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "collabtrust.db")


@pytest.fixture
def manager(db_path: str, tmp_path: Path):
    """Manager backed by a temp database with a real audit log."""
    mgr = RecomputeManager(
        CollabDB(db_path),
        audit_logger=AuditLogger(str(tmp_path / "audit.jsonl")),
    )
    yield mgr
    mgr.close()


# --- Factory functions for test data ---


def make_user(**kwargs: Any) -> User:
    """Factory for User with sensible defaults."""
    defaults: dict[str, Any] = {
        "id": "user-1",
        "name": "Ada",
        "skills": [],
        "interests": [],
    }
    defaults.update(kwargs)
    return User(**defaults)


def make_idea(**kwargs: Any) -> Idea:
    """Factory for Idea with sensible defaults."""
    defaults: dict[str, Any] = {
        "id": "idea-1",
        "owner_id": "owner",
        "title": "Test idea",
        "required_skills": [],
        "tags": [],
        "status": IdeaStatus.LOOKING_FOR_COLLABORATORS,
    }
    defaults.update(kwargs)
    return Idea(**defaults)


def make_rating(overall: int = 5, **kwargs: Any) -> Rating:
    """Factory for Rating; category scores may be passed as plain ints."""
    category_names = ("communication", "reliability", "skill", "professionalism")
    categories = {name: kwargs.pop(name) for name in category_names if name in kwargs}
    defaults: dict[str, Any] = {
        "rated_user_id": "rated",
        "rating_user_id": "rater",
        "overall": overall,
        "categories": CategoryRatings(**categories),
    }
    defaults.update(kwargs)
    return Rating(**defaults)


def make_match(subject_id: str, score: float) -> MatchResult:
    return MatchResult(subject_id=subject_id, score=score)


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.RATING_CREATED,
        "action": "rate:user-1",
        "result": "success",
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)
