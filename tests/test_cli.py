"""Tests for the typer command line."""
from unittest.mock import patch

from typer.testing import CliRunner

from authsession.cli import app
from authsession.models.session import SessionState
from authsession.session.errors import LoginRejectedError
from authsession.storage.config import AppSettings

from conftest import ALICE, make_tokens

runner = CliRunner()


class TestSettingsCommand:
    def test_show_all(self):
        result = runner.invoke(app, ["settings"])
        assert result.exit_code == 0
        assert "api_base_url" in result.output
        assert "refresh_threshold_seconds" in result.output

    def test_set_parses_json(self):
        result = runner.invoke(app, ["settings", "request_timeout_seconds", "12.5"])
        assert result.exit_code == 0
        assert AppSettings.get("request_timeout_seconds") == 12.5

    def test_set_plain_string(self):
        result = runner.invoke(app, ["settings", "api_base_url", "https://auth.example.com"])
        assert result.exit_code == 0
        assert AppSettings.get("api_base_url") == "https://auth.example.com"

    def test_show_one(self):
        AppSettings.set("debug", True)
        result = runner.invoke(app, ["settings", "debug"])
        assert result.exit_code == 0
        assert "True" in result.output


class TestLoginCommand:
    def test_success_prints_identity(self):
        state = SessionState.authenticated(ALICE, make_tokens())
        with patch("authsession.cli._login", return_value=state) as mock_login:
            result = runner.invoke(
                app, ["login", "--email", "alice@example.com"], input="secret\n"
            )
        assert result.exit_code == 0, result.output
        assert "Alice" in result.output
        assert "secret" not in result.output
        credentials = mock_login.call_args.args[0]
        assert credentials.password.get_secret_value() == "secret"

    def test_failure_exits_non_zero(self):
        with patch("authsession.cli._login", side_effect=LoginRejectedError("Invalid email or password")):
            result = runner.invoke(
                app, ["login", "--email", "alice@example.com", "--password", "wrong"]
            )
        assert result.exit_code == 1
        assert "Invalid email or password" in result.output


class TestWhoamiCommand:
    def test_rejected_token(self):
        with patch("authsession.cli._whoami", return_value=SessionState.unauthenticated()):
            result = runner.invoke(app, ["whoami", "--access-token", "stale"])
        assert result.exit_code == 1

    def test_accepted_token(self):
        state = SessionState.authenticated(ALICE, make_tokens())
        with patch("authsession.cli._whoami", return_value=state) as mock_whoami:
            result = runner.invoke(app, ["whoami", "--access-token", "T1", "--expires-at", "2124-01-01T00:00Z"])
        assert result.exit_code == 0, result.output
        assert "alice@example.com" in result.output
        tokens = mock_whoami.call_args.args[0]
        assert tokens.access_token == "T1"
