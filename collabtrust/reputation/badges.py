"""Trust badge derivation.

Badges are recomputed from scratch on every trigger (rating change,
collaboration completion, idea creation or deletion, email verification,
resume upload). Nothing is ever added to or removed from an existing set.
"""

from __future__ import annotations

from collections.abc import Callable

from collabtrust.models import Badge, User

TOP_RATED_MIN_AVERAGE = 4.5
TOP_RATED_MIN_RATINGS = 3

BadgePredicate = Callable[[User, int], bool]

_PREDICATES: dict[Badge, BadgePredicate] = {
    Badge.EMAIL_VERIFIED: lambda user, _ideas: user.email_verified,
    Badge.RESUME_UPLOADED: lambda user, _ideas: user.resume_uploaded,
    Badge.ACTIVE_COLLABORATOR: lambda user, _ideas: user.completed_collaborations >= 1,
    Badge.IDEA_CREATOR: lambda _user, ideas: ideas >= 1,
    Badge.TOP_RATED: lambda user, _ideas: (
        user.average_rating >= TOP_RATED_MIN_AVERAGE
        and user.total_ratings >= TOP_RATED_MIN_RATINGS
    ),
}

_missing = set(Badge) - set(_PREDICATES)
if _missing:
    raise RuntimeError(f"No derivation rule for badges: {sorted(b.value for b in _missing)}")

BADGE_LABELS: dict[Badge, str] = {
    Badge.EMAIL_VERIFIED: "Email Verified",
    Badge.RESUME_UPLOADED: "Resume Uploaded",
    Badge.ACTIVE_COLLABORATOR: "Active Collaborator",
    Badge.IDEA_CREATOR: "Idea Creator",
    Badge.TOP_RATED: "Top Rated",
}


def derive_badges(user: User, owned_idea_count: int) -> frozenset[Badge]:
    """Evaluate every badge predicate against the user's current state."""
    return frozenset(
        badge for badge, earned in _PREDICATES.items() if earned(user, owned_idea_count)
    )


def badge_label(badge: Badge) -> str:
    return BADGE_LABELS[badge]
