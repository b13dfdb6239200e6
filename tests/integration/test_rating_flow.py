"""End-to-end rating, badge and recommendation flow."""

from __future__ import annotations

from pathlib import Path

from collabtrust.audit.logger import AuditLogger, read_audit_events, validate_audit_chain
from collabtrust.config import Settings
from collabtrust.models import AuditEventType, Badge, CategoryRatings, IdeaStatus
from collabtrust.recompute.manager import RecomputeManager
from collabtrust.reputation.scorer import reputation_tier
from collabtrust.store.db import CollabDB
from tests.conftest import make_idea, make_user


def test_collaboration_lifecycle(tmp_path: Path) -> None:
    audit_path = tmp_path / "audit" / "audit.jsonl"
    manager = RecomputeManager.from_settings(Settings(
        db_path=str(tmp_path / "data" / "collabtrust.db"),
        audit_log_path=str(audit_path),
    ))

    manager.register_user(make_user(id="owner", skills=["python"], interests=["ai"]))
    for name in ("dev", "peer1", "peer2", "peer3"):
        manager.register_user(make_user(id=name, skills=["Python", "SQL"], interests=["AI"]))
    manager.verify_email("dev")
    manager.attach_resume("dev", "https://example.com/dev.pdf")

    manager.create_idea(make_idea(
        id="tutor", owner_id="owner", required_skills=["python", "sql"], tags=["ai"],
    ))
    assert Badge.IDEA_CREATOR in manager.get_user("owner").trust_badges

    # The developer joins, finishes the project and gets rated
    manager.add_collaborator("tutor", "dev")
    manager.set_idea_status("tutor", IdeaStatus.COMPLETED)
    manager.complete_collaboration("dev")
    for peer in ("owner", "peer1", "peer2"):
        manager.submit_rating(
            "dev", peer, 5, collaboration_id="tutor",
            categories=CategoryRatings(communication=5, reliability=5, skill=4, professionalism=5),
        )

    dev = manager.get_user("dev")
    assert dev.total_ratings == 3
    assert dev.average_rating == 5.0
    assert dev.trust_badges == frozenset({
        Badge.EMAIL_VERIFIED, Badge.RESUME_UPLOADED, Badge.ACTIVE_COLLABORATOR, Badge.TOP_RATED,
    })
    # 50 + 4.5 + 14.25 + 1.5 = 70.25
    assert dev.reputation_score == 70
    assert reputation_tier(dev.reputation_score).value == "good"

    # A new open idea ranks the rated developer first
    manager.create_idea(make_idea(
        id="next", owner_id="owner", required_skills=["python"], tags=["ai"],
    ))
    matches = manager.recommend_collaborators("next")
    assert matches[0].subject_id == "dev"
    assert "Highly rated collaborator" in matches[0].reasons
    assert manager.get_idea("next").match_score is None

    ideas = manager.recommend_ideas("dev")
    assert [m.subject_id for m in ideas] == ["next"]
    manager.close()

    events = read_audit_events(audit_path)
    assert sum(e.event_type == AuditEventType.RATING_CREATED for e in events) == 3
    assert validate_audit_chain(audit_path).valid


def test_state_survives_reopen(tmp_path: Path) -> None:
    db_path = str(tmp_path / "c.db")
    first = RecomputeManager(CollabDB(db_path))
    first.register_user(make_user(id="a"))
    first.register_user(make_user(id="b"))
    first.submit_rating("a", "b", 4)
    first.close()

    second = RecomputeManager(CollabDB(db_path), audit_logger=AuditLogger(str(tmp_path / "a.log")))
    aggregates = second.recompute_user_aggregates("a")
    assert aggregates.total_ratings == 1
    assert aggregates.average_rating == 4.0
    second.close()
