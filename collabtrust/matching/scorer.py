"""Compatibility scoring between a user and an idea."""

from __future__ import annotations

from collections.abc import Sequence

from collabtrust.models import Idea, MatchComponents, MatchResult, User
from collabtrust.rounding import round_half_up

WEIGHTS: dict[str, float] = {
    "skill": 0.40,
    "interest": 0.20,
    "reputation": 0.20,
    "experience": 0.10,
    "trust": 0.10,
}

NEUTRAL_INTEREST = 0.5
TRUST_PER_BADGE = 0.2
EXPERIENCE_SATURATION = 10

INTEREST_REASON_THRESHOLD = 0.3
HIGH_RATING_THRESHOLD = 4.0
EXPERIENCED_THRESHOLD = 5
MAX_NAMED_SKILLS = 3


def _lenient_matches(have: Sequence[str], wanted: Sequence[str]) -> list[str]:
    """Return the entries of `wanted` that some entry of `have` overlaps.

    Overlap is case-insensitive containment in either direction, so "react"
    matches "React Native" and "JS" matches "json". Matching is intentionally
    high-recall: an empty string is contained in every string, so an empty
    entry on either side matches anything on the other.
    """
    have_lower = [h.lower() for h in have]
    matched: list[str] = []
    for item in wanted:
        needle = item.lower()
        if any(needle in h or h in needle for h in have_lower):
            matched.append(item)
    return matched


def skill_match(user_skills: Sequence[str], required_skills: Sequence[str]) -> tuple[float, list[str]]:
    """Fraction of required skills covered, plus the covered names.

    An idea that requires nothing is fully satisfied by anyone.
    """
    if not required_skills:
        return 1.0, []
    matched = _lenient_matches(user_skills, required_skills)
    return len(matched) / len(required_skills), matched


def interest_match(user_interests: Sequence[str], tags: Sequence[str]) -> float:
    if not tags:
        return NEUTRAL_INTEREST
    return len(_lenient_matches(user_interests, tags)) / len(tags)


def match_components(user: User, idea: Idea) -> MatchComponents:
    skill, _ = skill_match(user.skills, idea.required_skills)
    return MatchComponents(
        skill=skill,
        interest=interest_match(user.interests, idea.tags),
        reputation=(
            0.5 * min(user.reputation_score / 100, 1.0) + 0.5 * (user.average_rating / 5)
        ),
        experience=min(user.completed_collaborations / EXPERIENCE_SATURATION, 1.0),
        trust=min(TRUST_PER_BADGE * len(user.trust_badges), 1.0),
    )


def score_match(user: User, idea: Idea, subject_id: str | None = None) -> MatchResult:
    """Score how well `user` fits `idea` on a 0-1 scale.

    `subject_id` names what is being ranked: the user id when recommending
    collaborators, the idea id when recommending ideas. Defaults to the user.
    """
    components = match_components(user, idea)
    _, matched = skill_match(user.skills, idea.required_skills)

    total = sum(getattr(components, name) * weight for name, weight in WEIGHTS.items())
    score = max(0.0, min(1.0, round_half_up(total, 2)))

    reasons: list[str] = []
    if matched:
        named = ", ".join(matched[:MAX_NAMED_SKILLS])
        reasons.append(f"Has {len(matched)} required skill(s): {named}")
    if components.interest > INTEREST_REASON_THRESHOLD:
        reasons.append("Interests align with idea tags")
    if user.average_rating >= HIGH_RATING_THRESHOLD:
        reasons.append("Highly rated collaborator")
    if user.completed_collaborations >= EXPERIENCED_THRESHOLD:
        reasons.append("Experienced collaborator")

    return MatchResult(
        subject_id=subject_id if subject_id is not None else user.id,
        score=score,
        reasons=reasons,
        matched_skills=matched,
    )
