"""Tests for main.py -- the management CLI."""

import io

import pytest

import main as cli
from auth.store import UserStore
from auth.tokens import verify_password
from core.config import get_settings


@pytest.fixture
def db_url(tmp_path, monkeypatch: pytest.MonkeyPatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def _stdin(monkeypatch: pytest.MonkeyPatch, text: str) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(text))


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "create-user" in capsys.readouterr().out


def test_init_db(db_url: str, capsys) -> None:
    assert cli.main(["init-db"]) == 0
    assert "Database ready" in capsys.readouterr().out


def test_create_user_from_stdin(db_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
    _stdin(monkeypatch, "staff-password-1\n")
    assert cli.main(["create-user", "root", "--level", "0", "--password-stdin"]) == 0

    store = UserStore(db_url)
    try:
        user = store.get_by_username("root")
    finally:
        store.close()
    assert user.level == 0
    assert verify_password("staff-password-1", user.hashed_password)


def test_create_user_rejects_short_password(db_url: str, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _stdin(monkeypatch, "short\n")
    assert cli.main(["create-user", "root", "--password-stdin"]) == 1
    assert "at least 8" in capsys.readouterr().out


def test_create_duplicate_user(db_url: str, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _stdin(monkeypatch, "staff-password-1\n")
    assert cli.main(["create-user", "root", "--password-stdin"]) == 0
    _stdin(monkeypatch, "staff-password-2\n")
    assert cli.main(["create-user", "root", "--password-stdin"]) == 1
    assert "already exists" in capsys.readouterr().out


def test_set_level(db_url: str, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    _stdin(monkeypatch, "editor-password-1\n")
    cli.main(["create-user", "ed", "--level", "2", "--password-stdin"])
    assert cli.main(["set-level", "ed", "1"]) == 0
    assert "now level 1 (was 2)" in capsys.readouterr().out

    store = UserStore(db_url)
    try:
        assert store.get_by_username("ed").level == 1
    finally:
        store.close()


def test_set_level_unknown_user(db_url: str) -> None:
    assert cli.main(["set-level", "ghost", "1"]) == 1


def test_negative_level_rejected(db_url: str) -> None:
    assert cli.main(["set-level", "ghost", "-1"]) == 1


def test_missing_secret_exits_2(db_url: str, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("JWT_SECRET")
    get_settings.cache_clear()
    assert cli.main(["init-db"]) == 2
    assert "Configuration error" in capsys.readouterr().out


def test_created_user_logs_in_with_exact_password(api_client, monkeypatch: pytest.MonkeyPatch) -> None:
    """Whitespace typed at the prompt is part of the password, at the CLI and at login alike."""
    monkeypatch.setenv("DATABASE_URL", api_client.db_url)
    get_settings.cache_clear()
    try:
        _stdin(monkeypatch, "  spaced secret  \n")
        assert cli.main(["create-user", "spacey", "--level", "1", "--password-stdin"]) == 0
    finally:
        monkeypatch.delenv("DATABASE_URL")
        get_settings.cache_clear()

    client = api_client.client
    resp = client.post("/api/login", json={"username": "spacey", "password": "  spaced secret  "})
    assert resp.status_code == 200, resp.text
    assert resp.json()["level"] == 1
    assert client.post("/api/login", json={"username": "spacey", "password": "spaced secret"}).status_code == 401
