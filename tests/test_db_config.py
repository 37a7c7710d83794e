"""
tests/test_db_config.py

Unit tests for db/config.py URL handling.
"""

from __future__ import annotations

import pytest

from db.config import get_database_settings, mask_database_url, normalize_postgres_url, resolve_database_url


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT", "DB_POOL_SIZE"):
        monkeypatch.delenv(name, raising=False)
    get_database_settings.cache_clear()
    yield
    get_database_settings.cache_clear()


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


def test_mask_database_url_hides_password() -> None:
    assert mask_database_url("postgresql+psycopg://app:s3cret@db:5432/streams") == (
        "postgresql+psycopg://app:***@db:5432/streams"
    )


class TestResolveDatabaseUrl:
    def test_direct_url_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgres://a@h/direct")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://a@h/local")

        assert resolve_database_url().endswith("/direct")

    def test_cloud_url_only_in_cloud_environments(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgres://a@h/cloud")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://a@h/local")

        assert resolve_database_url().endswith("/local")

        monkeypatch.setenv("ENVIRONMENT", "Production")
        assert resolve_database_url().endswith("/cloud")

    def test_missing_configuration_raises(self) -> None:
        with pytest.raises(RuntimeError):
            resolve_database_url()


def test_database_settings_pool_floor(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://a@h/db")
    monkeypatch.setenv("DB_POOL_SIZE", "0")

    settings = get_database_settings()

    assert settings.url == "postgresql+psycopg://a@h/db"
    assert settings.pool_size == 1
