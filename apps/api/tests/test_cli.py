"""Tests for the admin CLI."""
import pytest
from click.testing import CliRunner

from bugtracker import cli as cli_module
from bugtracker.db.models import User


@pytest.fixture
def runner(session_factory, monkeypatch):
    monkeypatch.setattr(cli_module, "SessionLocal", session_factory)
    return CliRunner()


def test_create_admin(runner, db):
    result = runner.invoke(
        cli_module.cli,
        ["create-admin", "--name", "Ada", "--email", "Ada@Example.com", "--password", "secret123"],
    )

    assert result.exit_code == 0, result.output
    assert "Created admin: ada@example.com" in result.output
    user = db.query(User).filter(User.email == "ada@example.com").one()
    assert user.role == "admin"


def test_create_admin_duplicate_email(runner, alice):
    result = runner.invoke(
        cli_module.cli,
        ["create-admin", "--name", "Alice", "--email", alice.user.email, "--password", "secret123"],
    )

    assert result.exit_code == 1
    assert "User already exists" in result.output


def test_set_role(runner, db, bob):
    result = runner.invoke(cli_module.cli, ["set-role", "--email", bob.user.email, "--role", "admin"])

    assert result.exit_code == 0, result.output
    db.expire_all()
    assert db.get(User, bob.user.id).role == "admin"


def test_set_role_unknown_user(runner):
    result = runner.invoke(cli_module.cli, ["set-role", "--email", "ghost@example.com", "--role", "admin"])

    assert result.exit_code == 1
    assert "User not found" in result.output


def test_db_status_and_upgrade(tmp_path, monkeypatch):
    from bugtracker.db.session import build_engine

    engine = build_engine(f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(cli_module, "engine", engine)
    runner = CliRunner()
    try:
        behind = runner.invoke(cli_module.cli, ["db-status"])
        assert behind.exit_code == 1
        assert "Pending: 0001_baseline" in behind.output

        upgraded = runner.invoke(cli_module.cli, ["upgrade-db"])
        assert upgraded.exit_code == 0, upgraded.output
        assert "0001_baseline" in upgraded.output

        current = runner.invoke(cli_module.cli, ["db-status"])
        assert current.exit_code == 0
        assert "Up to date" in current.output
    finally:
        engine.dispose()
