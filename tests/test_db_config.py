from __future__ import annotations

from pathlib import Path

import pytest

from db.config import get_database_settings, load_env_files, normalize_postgres_url, resolve_database_url


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
    ],
)
def test_normalize_postgres_url(raw: str, expected: str) -> None:
    assert normalize_postgres_url(raw) == expected


def test_load_env_files_does_not_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text(
        "# comment\nUPLOAD_TEST_A='from-file'\nexport UPLOAD_TEST_B=\"quoted\"\nUPLOAD_TEST_C=file\nnot a pair\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("UPLOAD_TEST_A", raising=False)
    monkeypatch.delenv("UPLOAD_TEST_B", raising=False)
    monkeypatch.setenv("UPLOAD_TEST_C", "process")

    loaded = load_env_files(tmp_path)

    assert loaded == ["UPLOAD_TEST_A", "UPLOAD_TEST_B"]
    assert load_env_files(tmp_path) == []
    monkeypatch.delenv("UPLOAD_TEST_A")
    monkeypatch.delenv("UPLOAD_TEST_B")


def test_resolve_prefers_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://direct/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

    assert resolve_database_url() == "postgresql+psycopg://direct/db"


def test_cloud_url_only_in_cloud_environments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

    monkeypatch.setenv("ENVIRONMENT", "local")
    assert resolve_database_url() == "postgresql+psycopg://local/db"

    monkeypatch.setenv("ENVIRONMENT", "production")
    assert resolve_database_url() == "postgresql+psycopg://cloud/db"


def test_missing_url_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(RuntimeError):
        resolve_database_url()


def test_pool_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://h/db")
    monkeypatch.setenv("DB_POOL_SIZE", "12")
    monkeypatch.setenv("SQL_ECHO", "yes")

    settings = get_database_settings()

    assert settings.pool_size == 12
    assert settings.echo is True
    assert settings.max_overflow == 10
