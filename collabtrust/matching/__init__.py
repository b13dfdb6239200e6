"""User-to-idea matching and recommendation ranking."""

from collabtrust.matching.ranker import rank, recommend_collaborators, recommend_ideas
from collabtrust.matching.scorer import (
    WEIGHTS,
    interest_match,
    match_components,
    score_match,
    skill_match,
)

__all__ = [
    "WEIGHTS",
    "interest_match",
    "match_components",
    "rank",
    "recommend_collaborators",
    "recommend_ideas",
    "score_match",
    "skill_match",
]
