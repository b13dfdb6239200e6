"""Reputation score computation for users."""

from __future__ import annotations

from collabtrust.models import CategoryAverages, ReputationBreakdown, ReputationTier
from collabtrust.rounding import round_half_up

RATING_BASE_CAP = 50.0
VOLUME_BONUS_CAP = 20.0
CATEGORY_BONUS_CAP = 15.0
COLLABORATION_BONUS_CAP = 15.0

VOLUME_POINTS_PER_RATING = 1.5
COLLABORATION_POINTS_EACH = 1.5


def reputation_breakdown(
    average_rating: float = 0.0,
    total_ratings: int = 0,
    category_averages: CategoryAverages | None = None,
    completed_collaborations: int = 0,
) -> ReputationBreakdown:
    """Compute the 0-100 reputation score and each of its capped parts.

    Parts: rating quality (50), rating volume (20), category feedback (15),
    collaboration track record (15).
    """
    categories = category_averages or CategoryAverages()

    rating_base = min(max(average_rating, 0.0) * 10, RATING_BASE_CAP)
    volume_bonus = min(max(total_ratings, 0) * VOLUME_POINTS_PER_RATING, VOLUME_BONUS_CAP)
    category_bonus = min(max(categories.mean(), 0.0) / 5 * 15, CATEGORY_BONUS_CAP)
    collaboration_bonus = min(
        max(completed_collaborations, 0) * COLLABORATION_POINTS_EACH,
        COLLABORATION_BONUS_CAP,
    )

    total = rating_base + volume_bonus + category_bonus + collaboration_bonus
    score = int(round_half_up(total))
    score = max(0, min(100, score))

    return ReputationBreakdown(
        rating_base=rating_base,
        volume_bonus=volume_bonus,
        category_bonus=category_bonus,
        collaboration_bonus=collaboration_bonus,
        score=score,
    )


def compute_reputation(
    average_rating: float = 0.0,
    total_ratings: int = 0,
    category_averages: CategoryAverages | None = None,
    completed_collaborations: int = 0,
) -> int:
    return reputation_breakdown(
        average_rating, total_ratings, category_averages, completed_collaborations,
    ).score


def reputation_tier(score: int) -> ReputationTier:
    if score >= 80:
        return ReputationTier.EXCELLENT
    if score >= 60:
        return ReputationTier.GOOD
    if score >= 40:
        return ReputationTier.FAIR
    return ReputationTier.NEW
