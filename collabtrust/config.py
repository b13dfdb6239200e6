"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    db_path: str = "data/collabtrust.db"
    audit_log_path: str | None = None
    audit_log_max_bytes: int = Field(default=10_485_760, gt=0)
    audit_log_backup_count: int = Field(default=5, ge=1)
    recommendation_limit: int = Field(default=20, ge=0)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the process environment, falling back to defaults."""
        return cls(
            db_path=os.environ.get("COLLABTRUST_DB_PATH", "data/collabtrust.db"),
            audit_log_path=os.environ.get("AUDIT_LOG_PATH") or None,
            audit_log_max_bytes=int(os.environ.get("AUDIT_LOG_MAX_BYTES", "10485760")),
            audit_log_backup_count=int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", "5")),
            recommendation_limit=int(os.environ.get("RECOMMENDATION_LIMIT", "20")),
            log_level=os.environ.get("COLLABTRUST_LOG_LEVEL", "WARNING").upper(),
        )
