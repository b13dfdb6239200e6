"""Reduce rating records into summary statistics."""

from __future__ import annotations

from collections.abc import Sequence

from collabtrust.models import CategoryAverages, IdeaRating, Rating, RatingSummary
from collabtrust.rounding import round_half_up


def aggregate_ratings(ratings: Sequence[Rating]) -> RatingSummary:
    """Summarize every rating a user has received.

    Category averages divide by the full rating count, so a category the rater
    left unset (0) pulls that average down.
    """
    total = len(ratings)
    if total == 0:
        return RatingSummary(
            average_rating=0.0,
            total_ratings=0,
            category_averages=CategoryAverages(),
        )

    average = round_half_up(sum(r.overall for r in ratings) / total, 1)
    categories = CategoryAverages(
        communication=sum(r.categories.communication for r in ratings) / total,
        reliability=sum(r.categories.reliability for r in ratings) / total,
        skill=sum(r.categories.skill for r in ratings) / total,
        professionalism=sum(r.categories.professionalism for r in ratings) / total,
    )
    return RatingSummary(
        average_rating=average,
        total_ratings=total,
        category_averages=categories,
    )


def aggregate_idea_ratings(ratings: Sequence[IdeaRating]) -> tuple[float, int]:
    """Return (average, count) for the star ratings left on an idea."""
    if not ratings:
        return 0.0, 0
    return round_half_up(sum(r.overall for r in ratings) / len(ratings), 1), len(ratings)
