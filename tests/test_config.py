"""Tests for Settings and the credential gate.

Covers: defaults, env-override, alias names, bounds, and token validation.
"""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from slack_broadcast.config import Settings, validate_credentials
from slack_broadcast.domain.errors import ConfigError, CredentialError
from slack_broadcast.domain.types import UnresolvedMentionPolicy

_ENV_VARS = (
    "SLACK_BOT_TOKEN",
    "SLACK_TIMEOUT",
    "SLACK_RETRIES",
    "SLACK_BACKOFF_INITIAL",
    "BACKOFF_INITIAL",
    "BROADCAST_MAX_CONCURRENCY",
    "MAX_CONCURRENCY",
    "BROADCAST_TIMEOUT",
    "UNRESOLVED_MENTIONS",
    "BROADCAST_CONFIG",
    "CONFIG_PATH",
    "VERBOSE",
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell environment out of these tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Settings defaults
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    """Verify that Settings fields have the expected default values."""

    def test_settings_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.slack_bot_token.get_secret_value() == ""
        assert s.slack_timeout == 10.0
        assert s.slack_retries == 3
        assert s.backoff_initial == 1.0
        assert s.max_concurrency == 5
        assert s.broadcast_timeout == 120.0
        assert s.unresolved_mentions == UnresolvedMentionPolicy.LITERAL
        assert s.config_path == Path("channels.yaml")
        assert s.verbose is False

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
        monkeypatch.setenv("SLACK_TIMEOUT", "4.5")
        monkeypatch.setenv("SLACK_RETRIES", "0")
        monkeypatch.setenv("UNRESOLVED_MENTIONS", "strict")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.slack_bot_token.get_secret_value() == "xoxb-test"
        assert s.slack_timeout == 4.5
        assert s.slack_retries == 0
        assert s.unresolved_mentions == UnresolvedMentionPolicy.STRICT

    def test_prefixed_aliases(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SLACK_BACKOFF_INITIAL", "0.25")
        monkeypatch.setenv("BROADCAST_MAX_CONCURRENCY", "12")
        monkeypatch.setenv("BROADCAST_CONFIG", "/etc/broadcast/lists.yaml")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.backoff_initial == 0.25
        assert s.max_concurrency == 12
        assert s.config_path == Path("/etc/broadcast/lists.yaml")

    def test_token_is_hidden_in_repr(self) -> None:
        s = Settings(_env_file=None, slack_bot_token="xoxb-secret")  # type: ignore[call-arg]
        assert "xoxb-secret" not in repr(s)

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("SLACK_BOT_TOKEN=xoxb-from-file\nSLACK_RETRIES=5\n")

        s = Settings(_env_file=env_file)  # type: ignore[call-arg]

        assert s.slack_bot_token.get_secret_value() == "xoxb-from-file"
        assert s.slack_retries == 5


class TestSettingsBounds:
    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("slack_timeout", 0),
            ("slack_retries", -1),
            ("max_concurrency", 0),
            ("broadcast_timeout", -5),
            ("unresolved_mentions", "drop"),
        ],
    )
    def test_rejects_out_of_range(self, field: str, value: object) -> None:
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, **{field: value})  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# validate_credentials
# ---------------------------------------------------------------------------


class TestValidateCredentials:
    def test_bot_token_passes(self) -> None:
        settings = Settings(_env_file=None, slack_bot_token="xoxb-1-abc")  # type: ignore[call-arg]
        validate_credentials(settings)

    def test_user_token_passes(self) -> None:
        settings = Settings(_env_file=None, slack_bot_token="xoxp-1-abc")  # type: ignore[call-arg]
        validate_credentials(settings)

    def test_missing_token(self) -> None:
        with pytest.raises(CredentialError, match="SLACK_BOT_TOKEN is empty"):
            validate_credentials(Settings(_env_file=None))  # type: ignore[call-arg]

    def test_malformed_token(self) -> None:
        settings = Settings(_env_file=None, slack_bot_token="not-a-token")  # type: ignore[call-arg]
        with pytest.raises(CredentialError, match="xoxb-"):
            validate_credentials(settings)

    def test_credential_error_is_a_config_error(self) -> None:
        assert issubclass(CredentialError, ConfigError)
