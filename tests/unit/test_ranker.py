"""Tests for candidate ranking and recommendations."""

from __future__ import annotations

import logging

import pytest

from collabtrust.matching.ranker import rank, recommend_collaborators, recommend_ideas
from collabtrust.models import IdeaStatus
from tests.conftest import make_idea, make_match, make_user


def test_rank_orders_by_descending_score() -> None:
    ranked = rank([make_match("a", 0.2), make_match("b", 0.9), make_match("c", 0.5)], limit=10)
    assert [m.subject_id for m in ranked] == ["b", "c", "a"]


def test_ties_keep_input_order() -> None:
    candidates = [
        make_match("a", 0.5),
        make_match("b", 0.7),
        make_match("c", 0.5),
        make_match("d", 0.7),
    ]
    ranked = rank(candidates, limit=10)
    assert [m.subject_id for m in ranked] == ["b", "d", "a", "c"]


def test_tie_break_by_subject() -> None:
    candidates = [make_match("z", 0.5), make_match("m", 0.9), make_match("a", 0.5)]
    ranked = rank(candidates, limit=10, tie_break_by_subject=True)
    assert [m.subject_id for m in ranked] == ["m", "a", "z"]


@pytest.mark.parametrize("limit", [0, 1, 3, 50])
def test_rank_truncates_to_limit(limit: int) -> None:
    candidates = [make_match(f"u{i}", i / 10) for i in range(5)]
    ranked = rank(candidates, limit=limit)
    assert len(ranked) == min(limit, 5)
    scores = [m.score for m in ranked]
    assert scores == sorted(scores, reverse=True)


def test_negative_limit_rejected() -> None:
    with pytest.raises(ValueError):
        rank([], limit=-1)


def test_recommend_collaborators_excludes_owner_and_members() -> None:
    idea = make_idea(owner_id="owner", collaborator_ids=["member"], required_skills=["python"])
    users = [
        make_user(id="owner", skills=["python"]),
        make_user(id="member", skills=["python"]),
        make_user(id="fit", skills=["Python"]),
        make_user(id="other", skills=["cobol"]),
    ]
    ranked = recommend_collaborators(idea, users)
    assert [m.subject_id for m in ranked] == ["fit", "other"]


def test_recommend_collaborators_caches_top_score() -> None:
    idea = make_idea(required_skills=["python"])
    users = [make_user(id="a", skills=["java"]), make_user(id="b", skills=["python"])]
    ranked = recommend_collaborators(idea, users, limit=1)
    assert len(ranked) == 1
    assert idea.match_score == ranked[0].score


def test_recommend_collaborators_without_candidates_leaves_cache_unset(caplog) -> None:
    idea = make_idea(owner_id="owner")
    with caplog.at_level(logging.WARNING, logger="collabtrust.matching.ranker"):
        assert recommend_collaborators(idea, [make_user(id="owner")]) == []
    assert idea.match_score is None
    assert "No eligible collaborators for idea idea-1" in caplog.text


def test_zero_limit_skips_cache_without_warning(caplog) -> None:
    idea = make_idea(owner_id="owner")
    with caplog.at_level(logging.WARNING, logger="collabtrust.matching.ranker"):
        assert recommend_collaborators(idea, [make_user(id="u2")], limit=0) == []
    assert idea.match_score is None
    assert caplog.records == []


def test_match_score_cache_not_serialized() -> None:
    idea = make_idea(required_skills=["python"])
    recommend_collaborators(idea, [make_user(id="b", skills=["python"])])
    assert "match_score" not in idea.model_dump()


def test_recommend_ideas_filters_owned_and_closed() -> None:
    user = make_user(id="me", skills=["rust"])
    ideas = [
        make_idea(id="mine", owner_id="me", required_skills=["rust"]),
        make_idea(id="busy", owner_id="x", status=IdeaStatus.IN_PROGRESS),
        make_idea(id="done", owner_id="x", status=IdeaStatus.COMPLETED),
        make_idea(id="rusty", owner_id="x", required_skills=["Rust"]),
        make_idea(id="java", owner_id="y", required_skills=["java"]),
    ]
    ranked = recommend_ideas(user, ideas)
    assert [m.subject_id for m in ranked] == ["rusty", "java"]
