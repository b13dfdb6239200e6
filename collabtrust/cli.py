"""Click CLI for the reputation and matching engine."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError

from collabtrust.audit.logger import AuditLogger
from collabtrust.config import Settings
from collabtrust.models import CategoryRatings, Idea, IdeaRating, MatchResult, Rating, User
from collabtrust.recompute.manager import (
    DuplicateRatingError,
    IdeaNotFoundError,
    RatingNotFoundError,
    RatingPermissionError,
    RecomputeManager,
    SelfRatingError,
    UserNotFoundError,
)
from collabtrust.reputation.badges import badge_label
from collabtrust.reputation.scorer import reputation_tier
from collabtrust.store.db import CollabDB

_DOMAIN_ERRORS = (
    DuplicateRatingError,
    IdeaNotFoundError,
    RatingNotFoundError,
    RatingPermissionError,
    SelfRatingError,
    UserNotFoundError,
    ValidationError,
)


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except _DOMAIN_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc


def _dump_matches(matches: list[MatchResult]) -> str:
    return json.dumps([m.model_dump(mode="json") for m in matches], indent=2)


@click.group()
@click.option("--db", default=None, help="SQLite database path [env COLLABTRUST_DB_PATH].")
@click.option("--audit-log", default=None, help="Audit log file path [env AUDIT_LOG_PATH].")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level [env COLLABTRUST_LOG_LEVEL].",
)
@click.pass_context
def cli(ctx: click.Context, db: str | None, audit_log: str | None, log_level: str | None) -> None:
    """Reputation, trust badge and matching engine CLI."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    audit_path = audit_log or settings.audit_log_path
    audit_logger = None
    if audit_path:
        audit_logger = AuditLogger(
            audit_path,
            max_bytes=settings.audit_log_max_bytes,
            backup_count=settings.audit_log_backup_count,
        )
    manager = RecomputeManager(
        CollabDB(db or settings.db_path),
        audit_logger=audit_logger,
        recommendation_limit=settings.recommendation_limit,
    )
    ctx.ensure_object(dict)
    ctx.obj["manager"] = manager
    ctx.call_on_close(manager.close)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def load(ctx: click.Context, snapshot: Path) -> None:
    """Seed users, ideas and ratings from a JSON snapshot file."""
    manager: RecomputeManager = ctx.obj["manager"]
    try:
        data = json.loads(snapshot.read_text())
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise click.ClickException("Snapshot must be a JSON object")
    counts = {"users": 0, "ideas": 0, "ratings": 0, "idea_ratings": 0}
    with _domain_errors():
        for raw in data.get("users", []):
            manager.register_user(User.model_validate(raw))
            counts["users"] += 1
        for raw in data.get("ideas", []):
            manager.create_idea(Idea.model_validate(raw))
            counts["ideas"] += 1
        for raw in data.get("ratings", []):
            rating = Rating.model_validate(raw)
            manager.submit_rating(
                rating.rated_user_id,
                rating.rating_user_id,
                rating.overall,
                collaboration_id=rating.collaboration_id,
                categories=rating.categories,
                comment=rating.comment,
            )
            counts["ratings"] += 1
        for raw in data.get("idea_ratings", []):
            idea_rating = IdeaRating.model_validate(raw)
            manager.rate_idea(
                idea_rating.idea_id, idea_rating.user_id, idea_rating.overall, idea_rating.comment,
            )
            counts["idea_ratings"] += 1
    click.echo(json.dumps(counts))


@cli.command()
@click.argument("rated_user_id")
@click.argument("rating_user_id")
@click.option("--overall", type=int, required=True, help="Overall rating, 1-5.")
@click.option("--collaboration", default=None, help="Idea id of the collaboration.")
@click.option("--communication", type=int, default=0)
@click.option("--reliability", type=int, default=0)
@click.option("--skill", type=int, default=0)
@click.option("--professionalism", type=int, default=0)
@click.option("--comment", default=None)
@click.pass_context
def rate(
    ctx: click.Context,
    rated_user_id: str,
    rating_user_id: str,
    overall: int,
    collaboration: str | None,
    communication: int,
    reliability: int,
    skill: int,
    professionalism: int,
    comment: str | None,
) -> None:
    """Record RATING_USER_ID's rating of RATED_USER_ID."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        rating = manager.submit_rating(
            rated_user_id,
            rating_user_id,
            overall,
            collaboration_id=collaboration,
            categories=CategoryRatings(
                communication=communication,
                reliability=reliability,
                skill=skill,
                professionalism=professionalism,
            ),
            comment=comment,
        )
    click.echo(rating.model_dump_json(indent=2))


@cli.command()
@click.argument("rating_id")
@click.option("--user", "requester_id", required=True, help="User asking for the deletion.")
@click.pass_context
def unrate(ctx: click.Context, rating_id: str, requester_id: str) -> None:
    """Delete a rating (author only) and recompute the rated user."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        aggregates = manager.delete_rating(rating_id, requester_id)
    click.echo(aggregates.model_dump_json(indent=2))


@cli.command("rate-idea")
@click.argument("idea_id")
@click.argument("user_id")
@click.option("--overall", type=int, required=True, help="Star rating, 1-5.")
@click.option("--comment", default=None)
@click.pass_context
def rate_idea(
    ctx: click.Context, idea_id: str, user_id: str, overall: int, comment: str | None,
) -> None:
    """Leave a star rating on an idea."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        idea = manager.rate_idea(idea_id, user_id, overall, comment)
    click.echo(json.dumps({
        "idea_id": idea.id,
        "average_rating": idea.average_rating,
        "total_ratings": idea.total_ratings,
    }))


@cli.command()
@click.argument("user_id")
@click.pass_context
def recompute(ctx: click.Context, user_id: str) -> None:
    """Rebuild a user's rating aggregates, reputation and badges."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        aggregates = manager.recompute_user_aggregates(user_id)
    click.echo(aggregates.model_dump_json(indent=2))


@cli.command()
@click.argument("user_id")
@click.pass_context
def ratings(ctx: click.Context, user_id: str) -> None:
    """List ratings USER_ID has received, newest first."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        manager.get_user(user_id)
        received = manager.ratings_for(user_id)
    click.echo(json.dumps([r.model_dump(mode="json") for r in received], indent=2))


@cli.command()
@click.argument("user_id")
@click.pass_context
def show(ctx: click.Context, user_id: str) -> None:
    """Show a user with reputation tier and badge labels."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        user = manager.get_user(user_id)
    output = user.model_dump(mode="json")
    output["reputation_tier"] = reputation_tier(user.reputation_score).value
    output["badge_labels"] = sorted(badge_label(b) for b in user.trust_badges)
    click.echo(json.dumps(output, indent=2))


@cli.group()
def recommend() -> None:
    """Ranked recommendations."""


@recommend.command("collaborators")
@click.argument("idea_id")
@click.option("--limit", type=click.IntRange(min=0), default=None)
@click.pass_context
def recommend_collaborators(ctx: click.Context, idea_id: str, limit: int | None) -> None:
    """Best collaborators for IDEA_ID."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        matches = manager.recommend_collaborators(idea_id, limit)
    click.echo(_dump_matches(matches))


@recommend.command("ideas")
@click.argument("user_id")
@click.option("--limit", type=click.IntRange(min=0), default=None)
@click.pass_context
def recommend_ideas(ctx: click.Context, user_id: str, limit: int | None) -> None:
    """Open ideas that best fit USER_ID."""
    manager: RecomputeManager = ctx.obj["manager"]
    with _domain_errors():
        matches = manager.recommend_ideas(user_id, limit)
    click.echo(_dump_matches(matches))
