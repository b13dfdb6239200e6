"""Reputation pipeline: rating aggregation, reputation scoring, trust badges."""

from collabtrust.reputation.aggregator import aggregate_idea_ratings, aggregate_ratings
from collabtrust.reputation.badges import BADGE_LABELS, badge_label, derive_badges
from collabtrust.reputation.scorer import (
    compute_reputation,
    reputation_breakdown,
    reputation_tier,
)

__all__ = [
    "BADGE_LABELS",
    "aggregate_idea_ratings",
    "aggregate_ratings",
    "badge_label",
    "compute_reputation",
    "derive_badges",
    "reputation_breakdown",
    "reputation_tier",
]
