"""Shared Pydantic data models for collabtrust."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    model_validator,
)

# --- Enums ---


class Badge(str, Enum):
    EMAIL_VERIFIED = "email_verified"
    RESUME_UPLOADED = "resume_uploaded"
    ACTIVE_COLLABORATOR = "active_collaborator"
    IDEA_CREATOR = "idea_creator"
    TOP_RATED = "top_rated"


class IdeaStatus(str, Enum):
    LOOKING_FOR_COLLABORATORS = "looking_for_collaborators"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReputationTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEW = "new"


class AuditEventType(str, Enum):
    RATING_CREATED = "rating_created"
    RATING_DELETED = "rating_deleted"
    AGGREGATES_RECOMPUTED = "aggregates_recomputed"
    IDEA_RATED = "idea_rated"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


# --- Users & Ideas ---


class User(BaseModel):
    """Snapshot of a user as seen by the scoring core.

    The aggregate fields (reputation_score, average_rating, total_ratings,
    trust_badges) are only ever produced by the recompute pipeline.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str = ""
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    reputation_score: int = Field(default=0, ge=0, le=100)
    average_rating: float = Field(default=0.0, ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    completed_collaborations: int = Field(default=0, ge=0)
    trust_badges: frozenset[Badge] = frozenset()
    email_verified: bool = False
    resume_url: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resume_uploaded(self) -> bool:
        return bool(self.resume_url)

    @field_serializer("trust_badges")
    def _serialize_badges(self, badges: frozenset[Badge]) -> list[str]:
        return sorted(b.value for b in badges)


class Idea(BaseModel):
    id: str = Field(default_factory=_new_id)
    owner_id: str
    title: str = ""
    required_skills: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: IdeaStatus = IdeaStatus.LOOKING_FOR_COLLABORATORS
    collaborator_ids: list[str] = Field(default_factory=list)
    average_rating: float = Field(default=0.0, ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    # Display cache for the best collaborator match; never persisted.
    match_score: float | None = Field(default=None, exclude=True)


# --- Ratings ---


class CategoryRatings(BaseModel):
    """Per-category scores attached to a rating. 0 means the rater left it unset."""

    model_config = ConfigDict(frozen=True)

    communication: int = Field(default=0, ge=0, le=5)
    reliability: int = Field(default=0, ge=0, le=5)
    skill: int = Field(default=0, ge=0, le=5)
    professionalism: int = Field(default=0, ge=0, le=5)


class Rating(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    rated_user_id: str
    rating_user_id: str
    collaboration_id: str | None = None
    overall: int = Field(ge=1, le=5)
    categories: CategoryRatings = Field(default_factory=CategoryRatings)
    comment: str | None = None
    created_at: str = Field(default_factory=_now_iso)

    @model_validator(mode="after")
    def _reject_self_rating(self) -> Rating:
        if self.rated_user_id == self.rating_user_id:
            raise ValueError("a user cannot rate themselves")
        return self


class IdeaRating(BaseModel):
    model_config = ConfigDict(frozen=True)

    idea_id: str
    user_id: str
    overall: int = Field(ge=1, le=5)
    comment: str | None = None
    created_at: str = Field(default_factory=_now_iso)


# --- Scoring outputs ---


class CategoryAverages(BaseModel):
    model_config = ConfigDict(frozen=True)

    communication: float = 0.0
    reliability: float = 0.0
    skill: float = 0.0
    professionalism: float = 0.0

    def mean(self) -> float:
        return (
            self.communication + self.reliability + self.skill + self.professionalism
        ) / 4


class RatingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_rating: float = Field(ge=0, le=5)
    total_ratings: int = Field(ge=0)
    category_averages: CategoryAverages


class ReputationBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating_base: float = Field(ge=0, le=50)
    volume_bonus: float = Field(ge=0, le=20)
    category_bonus: float = Field(ge=0, le=15)
    collaboration_bonus: float = Field(ge=0, le=15)
    score: int = Field(ge=0, le=100)


class UserAggregates(BaseModel):
    """Fields written back onto a user record after a recompute."""

    model_config = ConfigDict(frozen=True)

    average_rating: float = Field(ge=0, le=5)
    total_ratings: int = Field(ge=0)
    reputation_score: int = Field(ge=0, le=100)
    trust_badges: frozenset[Badge]

    @field_serializer("trust_badges")
    def _serialize_badges(self, badges: frozenset[Badge]) -> list[str]:
        return sorted(b.value for b in badges)


class MatchComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    skill: float = Field(ge=0, le=1)
    interest: float = Field(ge=0, le=1)
    reputation: float = Field(ge=0, le=1)
    experience: float = Field(ge=0, le=1)
    trust: float = Field(ge=0, le=1)


class MatchResult(BaseModel):
    """Ephemeral ranking entry; never persisted."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    score: float = Field(ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)
    matched_skills: list[str] = Field(default_factory=list)


# --- Audit Models ---


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    user_id: str | None = None
    actor_id: str | None = None
    action: str
    result: str  # "success" | "rejected"
    details: dict[str, object] | None = None
