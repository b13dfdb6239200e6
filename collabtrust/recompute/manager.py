"""Recompute manager: rating lifecycle and the user aggregate cascade.

Every event that can change a user's reputation or badges (rating created or
deleted, collaboration completed, idea created or deleted, email verified,
resume uploaded) ends in recompute_user_aggregates(), which rebuilds the
aggregate fields from the full current state under a per-user lock.
"""

from __future__ import annotations

import logging
import sqlite3
import threading

from collabtrust.audit.logger import AuditLogger
from collabtrust.config import Settings
from collabtrust.matching.ranker import DEFAULT_LIMIT, recommend_collaborators, recommend_ideas
from collabtrust.models import (
    AuditEventType,
    CategoryRatings,
    Idea,
    IdeaRating,
    IdeaStatus,
    MatchResult,
    Rating,
    User,
    UserAggregates,
)
from collabtrust.reputation.aggregator import aggregate_idea_ratings, aggregate_ratings
from collabtrust.reputation.badges import derive_badges
from collabtrust.reputation.scorer import compute_reputation
from collabtrust.store.db import CollabDB

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Raised when a user id has no record."""


class IdeaNotFoundError(Exception):
    """Raised when an idea id has no record."""


class RatingNotFoundError(Exception):
    """Raised when a rating id has no record."""


class SelfRatingError(Exception):
    """Raised when a user tries to rate themselves."""


class DuplicateRatingError(Exception):
    """Raised when the same rater already rated this user (or idea) for this collaboration."""


class RatingPermissionError(Exception):
    """Raised when someone other than the author tries to delete a rating."""


class RecomputeManager:
    """Owns writes to user aggregate fields and serves recommendations."""

    def __init__(
        self,
        db: CollabDB,
        audit_logger: AuditLogger | None = None,
        recommendation_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self.db = db
        self.audit_logger = audit_logger
        self.recommendation_limit = recommendation_limit
        self._user_locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> RecomputeManager:
        audit_logger = None
        if settings.audit_log_path:
            audit_logger = AuditLogger(
                settings.audit_log_path,
                max_bytes=settings.audit_log_max_bytes,
                backup_count=settings.audit_log_backup_count,
            )
        return cls(
            CollabDB(settings.db_path),
            audit_logger=audit_logger,
            recommendation_limit=settings.recommendation_limit,
        )

    def _lock_for(self, user_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._user_locks.setdefault(user_id, threading.RLock())

    def _audit(self, event_type: AuditEventType, action: str, **kwargs: object) -> None:
        if self.audit_logger:
            self.audit_logger.record(event_type, action, **kwargs)  # type: ignore[arg-type]

    # --- Reads ---

    def get_user(self, user_id: str) -> User:
        row = self.db.get_user(user_id)
        if row is None:
            raise UserNotFoundError(f"User not found: {user_id}")
        return User.model_validate(row)

    def list_users(self) -> list[User]:
        return [User.model_validate(r) for r in self.db.list_users()]

    def get_idea(self, idea_id: str) -> Idea:
        row = self.db.get_idea(idea_id)
        if row is None:
            raise IdeaNotFoundError(f"Idea not found: {idea_id}")
        return Idea.model_validate(row)

    def list_ideas(self, status: IdeaStatus | None = None) -> list[Idea]:
        rows = self.db.list_ideas(status.value if status else None)
        return [Idea.model_validate(r) for r in rows]

    def ratings_for(self, user_id: str) -> list[Rating]:
        """Ratings the user has received, newest first."""
        return [Rating.model_validate(r) for r in self.db.list_ratings_for(user_id)]

    # --- The recompute cascade ---

    def recompute_user_aggregates(self, user_id: str) -> UserAggregates:
        """Rebuild rating stats, reputation and badges for one user.

        Read-compute-write happens under the user's lock so two concurrent
        cascades for the same user cannot lose an update.
        """
        with self._lock_for(user_id):
            user = self.get_user(user_id)
            summary = aggregate_ratings(self.ratings_for(user_id))
            reputation = compute_reputation(
                summary.average_rating,
                summary.total_ratings,
                summary.category_averages,
                user.completed_collaborations,
            )
            refreshed = user.model_copy(update={
                "average_rating": summary.average_rating,
                "total_ratings": summary.total_ratings,
                "reputation_score": reputation,
            })
            badges = derive_badges(refreshed, self.db.count_ideas_owned_by(user_id))
            aggregates = UserAggregates(
                average_rating=summary.average_rating,
                total_ratings=summary.total_ratings,
                reputation_score=reputation,
                trust_badges=badges,
            )
            self.db.write_aggregates(
                user_id,
                aggregates.average_rating,
                aggregates.total_ratings,
                aggregates.reputation_score,
                sorted(b.value for b in badges),
            )

        logger.debug(
            "Recomputed user %s: avg=%.1f total=%d reputation=%d badges=%d",
            user_id, aggregates.average_rating, aggregates.total_ratings,
            aggregates.reputation_score, len(badges),
        )
        self._audit(
            AuditEventType.AGGREGATES_RECOMPUTED,
            f"recompute:{user_id}",
            user_id=user_id,
            details=aggregates.model_dump(mode="json"),
        )
        return aggregates

    # --- Users ---

    def register_user(self, user: User) -> UserAggregates:
        """Store a user's profile fields; aggregates are derived, never copied in."""
        self.db.insert_user(
            user.id,
            name=user.name,
            skills=list(user.skills),
            interests=list(user.interests),
            email_verified=user.email_verified,
            resume_url=user.resume_url,
            completed_collaborations=user.completed_collaborations,
        )
        return self.recompute_user_aggregates(user.id)

    def update_profile(self, user_id: str, **fields: object) -> UserAggregates:
        """Change profile fields (skills, interests, ...) and refresh derived state."""
        with self._lock_for(user_id):
            self.get_user(user_id)
            self.db.update_profile(user_id, **fields)
            return self.recompute_user_aggregates(user_id)

    def verify_email(self, user_id: str) -> UserAggregates:
        return self.update_profile(user_id, email_verified=True)

    def attach_resume(self, user_id: str, resume_url: str | None) -> UserAggregates:
        return self.update_profile(user_id, resume_url=resume_url)

    def complete_collaboration(self, user_id: str) -> UserAggregates:
        with self._lock_for(user_id):
            user = self.get_user(user_id)
            self.db.update_profile(
                user_id, completed_collaborations=user.completed_collaborations + 1,
            )
            return self.recompute_user_aggregates(user_id)

    # --- Ideas ---

    def create_idea(self, idea: Idea) -> Idea:
        self.get_user(idea.owner_id)
        self.db.insert_idea(
            idea.id,
            idea.owner_id,
            idea.status.value,
            title=idea.title,
            required_skills=list(idea.required_skills),
            tags=list(idea.tags),
            collaborator_ids=list(idea.collaborator_ids),
        )
        self.recompute_user_aggregates(idea.owner_id)
        return self.get_idea(idea.id)

    def delete_idea(self, idea_id: str) -> None:
        idea = self.get_idea(idea_id)
        self.db.delete_idea(idea_id)
        self.recompute_user_aggregates(idea.owner_id)

    def set_idea_status(self, idea_id: str, status: IdeaStatus) -> Idea:
        self.get_idea(idea_id)
        self.db.update_idea(idea_id, status=status.value)
        return self.get_idea(idea_id)

    def add_collaborator(self, idea_id: str, user_id: str) -> Idea:
        """Record an accepted collaboration request on the idea."""
        idea = self.get_idea(idea_id)
        self.get_user(user_id)
        if user_id not in idea.collaborator_ids:
            self.db.update_idea(idea_id, collaborator_ids=[*idea.collaborator_ids, user_id])
        return self.get_idea(idea_id)

    # --- Ratings ---

    def submit_rating(
        self,
        rated_user_id: str,
        rating_user_id: str,
        overall: int,
        collaboration_id: str | None = None,
        categories: CategoryRatings | None = None,
        comment: str | None = None,
    ) -> Rating:
        """Record a rating and recompute the rated user.

        Raises SelfRatingError, UserNotFoundError, IdeaNotFoundError,
        DuplicateRatingError, or pydantic.ValidationError for out-of-range values.
        """
        if rated_user_id == rating_user_id:
            raise SelfRatingError("Cannot rate yourself")
        self.get_user(rated_user_id)
        self.get_user(rating_user_id)
        if collaboration_id is not None:
            self.get_idea(collaboration_id)

        rating = Rating(
            rated_user_id=rated_user_id,
            rating_user_id=rating_user_id,
            collaboration_id=collaboration_id,
            overall=overall,
            categories=categories or CategoryRatings(),
            comment=comment,
        )
        try:
            self.db.insert_rating(
                rating.id,
                rating.rated_user_id,
                rating.rating_user_id,
                rating.collaboration_id,
                rating.overall,
                rating.categories.model_dump(),
                rating.comment,
                rating.created_at,
            )
        except sqlite3.IntegrityError as exc:
            self._audit(
                AuditEventType.RATING_CREATED,
                f"rate:{rated_user_id}",
                user_id=rated_user_id,
                actor_id=rating_user_id,
                result="rejected",
                details={"reason": "duplicate", "collaboration_id": collaboration_id},
            )
            raise DuplicateRatingError(
                "You have already rated this user for this collaboration"
            ) from exc

        self._audit(
            AuditEventType.RATING_CREATED,
            f"rate:{rated_user_id}",
            user_id=rated_user_id,
            actor_id=rating_user_id,
            details={"rating_id": rating.id, "overall": rating.overall},
        )
        self.recompute_user_aggregates(rated_user_id)
        return rating

    def delete_rating(self, rating_id: str, requester_id: str) -> UserAggregates:
        """Delete a rating on behalf of its author and recompute the rated user."""
        row = self.db.get_rating(rating_id)
        if row is None:
            raise RatingNotFoundError(f"Rating not found: {rating_id}")
        rating = Rating.model_validate(row)
        if rating.rating_user_id != requester_id:
            self._audit(
                AuditEventType.RATING_DELETED,
                f"unrate:{rating_id}",
                user_id=rating.rated_user_id,
                actor_id=requester_id,
                result="rejected",
                details={"reason": "not_author"},
            )
            raise RatingPermissionError("Only the author can delete a rating")

        self.db.delete_rating(rating_id)
        self._audit(
            AuditEventType.RATING_DELETED,
            f"unrate:{rating_id}",
            user_id=rating.rated_user_id,
            actor_id=requester_id,
        )
        return self.recompute_user_aggregates(rating.rated_user_id)

    def rate_idea(
        self, idea_id: str, user_id: str, overall: int, comment: str | None = None,
    ) -> Idea:
        """Leave a star rating on an idea and refresh its average."""
        self.get_idea(idea_id)
        self.get_user(user_id)
        rating = IdeaRating(idea_id=idea_id, user_id=user_id, overall=overall, comment=comment)
        try:
            self.db.insert_idea_rating(
                rating.idea_id, rating.user_id, rating.overall, rating.comment, rating.created_at,
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateRatingError("You have already rated this idea") from exc

        ratings = [IdeaRating.model_validate(r) for r in self.db.list_idea_ratings(idea_id)]
        average, total = aggregate_idea_ratings(ratings)
        self.db.write_idea_rating_aggregate(idea_id, average, total)
        self._audit(
            AuditEventType.IDEA_RATED,
            f"rate_idea:{idea_id}",
            actor_id=user_id,
            details={"idea_id": idea_id, "overall": overall, "average_rating": average},
        )
        return self.get_idea(idea_id)

    # --- Recommendations ---

    def recommend_collaborators(self, idea_id: str, limit: int | None = None) -> list[MatchResult]:
        idea = self.get_idea(idea_id)
        return recommend_collaborators(
            idea, self.list_users(), self.recommendation_limit if limit is None else limit,
        )

    def recommend_ideas(self, user_id: str, limit: int | None = None) -> list[MatchResult]:
        user = self.get_user(user_id)
        return recommend_ideas(
            user,
            self.list_ideas(IdeaStatus.LOOKING_FOR_COLLABORATORS),
            self.recommendation_limit if limit is None else limit,
        )

    def close(self) -> None:
        self.db.close()
