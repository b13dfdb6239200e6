"""SQLite persistence for users, ideas and ratings.

Aggregate user fields (average_rating, total_ratings, reputation_score,
trust_badges) are only writable through write_aggregates(), which the
recompute manager calls.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    skills_json TEXT NOT NULL DEFAULT '[]',
    interests_json TEXT NOT NULL DEFAULT '[]',
    email_verified INTEGER NOT NULL DEFAULT 0,
    resume_url TEXT,
    completed_collaborations INTEGER NOT NULL DEFAULT 0,
    average_rating REAL NOT NULL DEFAULT 0,
    total_ratings INTEGER NOT NULL DEFAULT 0,
    reputation_score INTEGER NOT NULL DEFAULT 0,
    trust_badges_json TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS ideas (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    required_skills_json TEXT NOT NULL DEFAULT '[]',
    tags_json TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL,
    collaborator_ids_json TEXT NOT NULL DEFAULT '[]',
    average_rating REAL NOT NULL DEFAULT 0,
    total_ratings INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (owner_id) REFERENCES users(id)
);

CREATE INDEX IF NOT EXISTS idx_ideas_owner ON ideas(owner_id);

CREATE TABLE IF NOT EXISTS user_ratings (
    id TEXT PRIMARY KEY,
    rated_user_id TEXT NOT NULL,
    rating_user_id TEXT NOT NULL,
    collaboration_id TEXT,
    overall INTEGER NOT NULL,
    categories_json TEXT NOT NULL,
    comment TEXT,
    created_at TEXT NOT NULL
);

-- One rating per (rated, rater, collaboration); a missing collaboration counts once
CREATE UNIQUE INDEX IF NOT EXISTS idx_user_ratings_unique
    ON user_ratings(rated_user_id, rating_user_id, COALESCE(collaboration_id, ''));

CREATE TABLE IF NOT EXISTS idea_ratings (
    idea_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    overall INTEGER NOT NULL,
    comment TEXT,
    created_at TEXT NOT NULL,
    PRIMARY KEY (idea_id, user_id)
);
"""

PROFILE_FIELDS = frozenset({
    "name", "skills", "interests", "email_verified", "resume_url", "completed_collaborations",
})
IDEA_FIELDS = frozenset({"title", "required_skills", "tags", "status", "collaborator_ids"})
_JSON_COLUMNS = {
    "skills": "skills_json",
    "interests": "interests_json",
    "required_skills": "required_skills_json",
    "tags": "tags_json",
    "collaborator_ids": "collaborator_ids_json",
}


def _decode_row(row: sqlite3.Row) -> dict[str, Any]:
    """Turn *_json columns back into Python values under their plain names."""
    data: dict[str, Any] = {}
    for key in row.keys():
        if key.endswith("_json"):
            data[key[: -len("_json")]] = json.loads(row[key])
        else:
            data[key] = row[key]
    return data


class CollabDB:
    """SQLite-backed storage shared by the CLI and the recompute manager."""

    def __init__(self, db_path: str) -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()

    def _write(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        with self._lock:
            cursor = self.conn.execute(sql, params)
            self.conn.commit()
            return cursor.rowcount

    def _one(self, sql: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        with self._lock:
            row = self.conn.execute(sql, params).fetchone()
        return _decode_row(row) if row else None

    def _all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute(sql, params).fetchall()
        return [_decode_row(r) for r in rows]

    def _update(self, table: str, key: str, allowed: frozenset[str], fields: dict[str, Any]) -> int:
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Fields not writable on {table}: {sorted(unknown)}")
        if not fields:
            return 0
        assignments = []
        params: list[Any] = []
        for name, value in fields.items():
            if name in _JSON_COLUMNS:
                assignments.append(f"{_JSON_COLUMNS[name]}=?")
                params.append(json.dumps(list(value)))
            else:
                assignments.append(f"{name}=?")
                params.append(value)
        params.append(key)
        return self._write(
            f"UPDATE {table} SET {', '.join(assignments)} WHERE id=?", tuple(params),
        )

    # --- Users ---

    def insert_user(
        self,
        user_id: str,
        name: str = "",
        skills: list[str] | None = None,
        interests: list[str] | None = None,
        email_verified: bool = False,
        resume_url: str | None = None,
        completed_collaborations: int = 0,
    ) -> None:
        self._write(
            """INSERT INTO users
               (id, name, skills_json, interests_json, email_verified, resume_url,
                completed_collaborations)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                user_id, name, json.dumps(skills or []), json.dumps(interests or []),
                int(email_verified), resume_url, completed_collaborations,
            ),
        )

    def update_profile(self, user_id: str, **fields: Any) -> int:
        """Update profile fields. Aggregate fields are rejected."""
        if "email_verified" in fields:
            fields["email_verified"] = int(fields["email_verified"])
        return self._update("users", user_id, PROFILE_FIELDS, fields)

    def write_aggregates(
        self,
        user_id: str,
        average_rating: float,
        total_ratings: int,
        reputation_score: int,
        trust_badges: list[str],
    ) -> None:
        self._write(
            """UPDATE users SET average_rating=?, total_ratings=?, reputation_score=?,
                 trust_badges_json=? WHERE id=?""",
            (average_rating, total_ratings, reputation_score, json.dumps(trust_badges), user_id),
        )

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        return self._one("SELECT * FROM users WHERE id = ?", (user_id,))

    def list_users(self) -> list[dict[str, Any]]:
        return self._all("SELECT * FROM users ORDER BY rowid")

    # --- Ideas ---

    def insert_idea(
        self,
        idea_id: str,
        owner_id: str,
        status: str,
        title: str = "",
        required_skills: list[str] | None = None,
        tags: list[str] | None = None,
        collaborator_ids: list[str] | None = None,
    ) -> None:
        self._write(
            """INSERT INTO ideas
               (id, owner_id, title, required_skills_json, tags_json, status,
                collaborator_ids_json)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                idea_id, owner_id, title, json.dumps(required_skills or []),
                json.dumps(tags or []), status, json.dumps(collaborator_ids or []),
            ),
        )

    def update_idea(self, idea_id: str, **fields: Any) -> int:
        return self._update("ideas", idea_id, IDEA_FIELDS, fields)

    def write_idea_rating_aggregate(self, idea_id: str, average_rating: float, total: int) -> None:
        self._write(
            "UPDATE ideas SET average_rating=?, total_ratings=? WHERE id=?",
            (average_rating, total, idea_id),
        )

    def delete_idea(self, idea_id: str) -> int:
        with self._lock:
            self.conn.execute("DELETE FROM idea_ratings WHERE idea_id = ?", (idea_id,))
            cursor = self.conn.execute("DELETE FROM ideas WHERE id = ?", (idea_id,))
            self.conn.commit()
            return cursor.rowcount

    def get_idea(self, idea_id: str) -> dict[str, Any] | None:
        return self._one("SELECT * FROM ideas WHERE id = ?", (idea_id,))

    def list_ideas(self, status: str | None = None) -> list[dict[str, Any]]:
        if status is None:
            return self._all("SELECT * FROM ideas ORDER BY rowid")
        return self._all("SELECT * FROM ideas WHERE status = ? ORDER BY rowid", (status,))

    def count_ideas_owned_by(self, user_id: str) -> int:
        with self._lock:
            row = self.conn.execute(
                "SELECT COUNT(*) FROM ideas WHERE owner_id = ?", (user_id,)
            ).fetchone()
        return int(row[0])

    # --- Ratings ---

    def insert_rating(
        self,
        rating_id: str,
        rated_user_id: str,
        rating_user_id: str,
        collaboration_id: str | None,
        overall: int,
        categories: dict[str, int],
        comment: str | None,
        created_at: str,
    ) -> None:
        """Insert a user rating. Raises sqlite3.IntegrityError on a duplicate."""
        self._write(
            """INSERT INTO user_ratings
               (id, rated_user_id, rating_user_id, collaboration_id, overall,
                categories_json, comment, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                rating_id, rated_user_id, rating_user_id, collaboration_id, overall,
                json.dumps(categories), comment, created_at,
            ),
        )

    def get_rating(self, rating_id: str) -> dict[str, Any] | None:
        return self._one("SELECT * FROM user_ratings WHERE id = ?", (rating_id,))

    def delete_rating(self, rating_id: str) -> int:
        return self._write("DELETE FROM user_ratings WHERE id = ?", (rating_id,))

    def list_ratings_for(self, user_id: str) -> list[dict[str, Any]]:
        """Ratings received by a user, newest first."""
        return self._all(
            "SELECT * FROM user_ratings WHERE rated_user_id = ?"
            " ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )

    def insert_idea_rating(
        self, idea_id: str, user_id: str, overall: int, comment: str | None, created_at: str,
    ) -> None:
        """Insert an idea rating. Raises sqlite3.IntegrityError on a duplicate."""
        self._write(
            """INSERT INTO idea_ratings (idea_id, user_id, overall, comment, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (idea_id, user_id, overall, comment, created_at),
        )

    def list_idea_ratings(self, idea_id: str) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM idea_ratings WHERE idea_id = ? ORDER BY created_at", (idea_id,),
        )

    def close(self) -> None:
        self.conn.close()
