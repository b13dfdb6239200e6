"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from collabtrust.config import Settings

_VARS = (
    "COLLABTRUST_DB_PATH",
    "AUDIT_LOG_PATH",
    "AUDIT_LOG_MAX_BYTES",
    "AUDIT_LOG_BACKUP_COUNT",
    "RECOMMENDATION_LIMIT",
    "COLLABTRUST_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings.from_env()
    assert settings.db_path == "data/collabtrust.db"
    assert settings.audit_log_path is None
    assert settings.audit_log_max_bytes == 10_485_760
    assert settings.audit_log_backup_count == 5
    assert settings.recommendation_limit == 20
    assert settings.log_level == "WARNING"


def test_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("COLLABTRUST_DB_PATH", "/tmp/x.db")
    clean_env.setenv("AUDIT_LOG_PATH", "/tmp/audit.jsonl")
    clean_env.setenv("AUDIT_LOG_MAX_BYTES", "500")
    clean_env.setenv("AUDIT_LOG_BACKUP_COUNT", "7")
    clean_env.setenv("RECOMMENDATION_LIMIT", "5")
    clean_env.setenv("COLLABTRUST_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.db_path == "/tmp/x.db"
    assert settings.audit_log_path == "/tmp/audit.jsonl"
    assert settings.audit_log_max_bytes == 500
    assert settings.audit_log_backup_count == 7
    assert settings.recommendation_limit == 5
    assert settings.log_level == "DEBUG"


def test_empty_audit_path_disables_audit(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("AUDIT_LOG_PATH", "")
    assert Settings.from_env().audit_log_path is None


def test_negative_limit_rejected(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECOMMENDATION_LIMIT", "-1")
    with pytest.raises(ValidationError):
        Settings.from_env()
