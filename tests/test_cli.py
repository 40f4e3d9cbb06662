"""
tests/test_cli.py -- Tests for the main.py administrative command line.

Coverage:
  - generate-password: prints a policy-compliant password; rejects short lengths
  - check-password: exit code and rule listing
  - create-user: writes through AuthService to DATABASE_URL; reports failures
  - validate-config: reports the effective configuration
"""

from __future__ import annotations

import pytest

import main
from auth.passwords import check_password_strength
from auth.store import UserStore
from core.config import Settings


class TestPasswordCommands:
    def test_generate_password(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main.main(["generate-password", "--length", "20"]) == 0
        password = capsys.readouterr().out.strip()
        assert len(password) == 20
        assert check_password_strength(password).is_valid

    def test_generate_password_too_short(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main.main(["generate-password", "--length", "3"]) == 1
        assert "[!]" in capsys.readouterr().out

    def test_check_strong_password(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main.main(["check-password", "StrongPass123!"]) == 0
        assert "meets the strength policy" in capsys.readouterr().out

    def test_check_weak_password_lists_rules(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main.main(["check-password", "weak"]) == 1
        out = capsys.readouterr().out
        assert "Password must be at least 8 characters long" in out
        assert "Password must contain at least one number" in out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main.main([]) == 0
        assert "usage:" in capsys.readouterr().out


class TestCreateUser:
    @pytest.fixture
    def cli_settings(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> Settings:
        settings = Settings(
            _env_file=None,
            debug=True,
            bcrypt_rounds=4,
            database_url=f"sqlite:///{tmp_path / 'cli.db'}",
        )
        monkeypatch.setattr(main, "get_settings", lambda: settings)
        return settings

    def test_create_user_with_generated_password(
        self, cli_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main.main(["create-user", "--email", "ada@example.com", "--name", "Ada", "--role", "admin"])
        out = capsys.readouterr().out
        assert code == 0, out
        assert "Created admin ada@example.com" in out
        assert "Generated password:" in out

        store = UserStore(cli_settings.database_url)
        try:
            assert store.find_by_email("ada@example.com") is not None
        finally:
            store.close()

    def test_create_user_weak_password(self, cli_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        code = main.main(
            ["create-user", "--email", "b@example.com", "--name", "Bo", "--role", "developer", "--password", "weak"]
        )
        out = capsys.readouterr().out
        assert code == 1
        assert "Password does not meet requirements" in out

    def test_create_user_duplicate(self, cli_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        args = ["create-user", "--email", "c@example.com", "--name", "Cy", "--role", "manager"]
        assert main.main(args) == 0
        assert main.main(args) == 1
        assert "User with this email already exists" in capsys.readouterr().out


def test_validate_config(capsys: pytest.CaptureFixture[str]) -> None:
    """conftest.py runs the suite with DEBUG=true, so the dev profile is valid."""
    assert main.main(["validate-config"]) == 0
    out = capsys.readouterr().out
    assert "development" in out
    assert "bcrypt rounds:     4" in out
