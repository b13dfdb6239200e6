"""Ranking of scored candidates and the two recommendation directions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from collabtrust.matching.scorer import score_match
from collabtrust.models import Idea, IdeaStatus, MatchResult, User

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def rank(
    candidates: Iterable[MatchResult],
    limit: int,
    tie_break_by_subject: bool = False,
) -> list[MatchResult]:
    """Order candidates by descending score and keep the first `limit`.

    Equal scores keep their input order (sorted() is stable). Input order
    usually comes from a database fetch and is not guaranteed across calls;
    pass tie_break_by_subject=True for a reproducible order.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if tie_break_by_subject:
        ordered = sorted(candidates, key=lambda m: (-m.score, m.subject_id))
    else:
        ordered = sorted(candidates, key=lambda m: m.score, reverse=True)
    return ordered[:limit]


def recommend_collaborators(
    idea: Idea,
    users: Sequence[User],
    limit: int = DEFAULT_LIMIT,
    tie_break_by_subject: bool = False,
) -> list[MatchResult]:
    """Rank users as potential collaborators on `idea`.

    The owner and current collaborators are never suggested. The best score is
    cached on idea.match_score for display only.
    """
    excluded = {idea.owner_id, *idea.collaborator_ids}
    matches = [score_match(u, idea) for u in users if u.id not in excluded]
    ranked = rank(matches, limit, tie_break_by_subject)
    if not matches:
        logger.warning("No eligible collaborators for idea %s; match_score not cached", idea.id)
    elif ranked:
        idea.match_score = ranked[0].score
    logger.debug(
        "Scored %d candidate(s) for idea %s, returning %d",
        len(matches), idea.id, len(ranked),
    )
    return ranked


def recommend_ideas(
    user: User,
    ideas: Sequence[Idea],
    limit: int = DEFAULT_LIMIT,
    tie_break_by_subject: bool = False,
) -> list[MatchResult]:
    """Rank open ideas the user does not own; subject_id is the idea id."""
    matches = [
        score_match(user, idea, subject_id=idea.id)
        for idea in ideas
        if idea.owner_id != user.id and idea.status == IdeaStatus.LOOKING_FOR_COLLABORATORS
    ]
    return rank(matches, limit, tie_break_by_subject)
