"""Typed runtime settings using pydantic-settings.

Provides a ``Settings`` class backed by ``.env`` file and environment
variables, and a ``validate_credentials()`` startup gate.  ``Settings`` is
built once by the CLI and passed down explicitly; nothing in the package
reads the environment on its own.

IMPORTANT: This module imports only ``slack_broadcast.domain`` from the
package, to prevent circular imports.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from slack_broadcast.domain.errors import CredentialError
from slack_broadcast.domain.types import UnresolvedMentionPolicy

logger = structlog.get_logger()

_TOKEN_PREFIXES = ("xoxb-", "xoxp-")


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` keeps the bot token out of logs and error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Slack (secrets) -------------------------------------------------------
    slack_bot_token: SecretStr = SecretStr("")

    # -- Delivery --------------------------------------------------------------
    slack_timeout: float = Field(default=10.0, gt=0, description="Per-attempt timeout (seconds)")
    slack_retries: int = Field(default=3, ge=0, description="Extra attempts after the first")
    backoff_initial: float = Field(
        default=1.0,
        ge=0,
        validation_alias=AliasChoices("slack_backoff_initial", "backoff_initial"),
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("broadcast_max_concurrency", "max_concurrency"),
    )
    broadcast_timeout: float = Field(default=120.0, gt=0)

    # -- Resolution ------------------------------------------------------------
    unresolved_mentions: UnresolvedMentionPolicy = UnresolvedMentionPolicy.LITERAL
    config_path: Path = Field(
        default=Path("channels.yaml"),
        validation_alias=AliasChoices("broadcast_config", "config_path"),
    )

    # -- Output ----------------------------------------------------------------
    verbose: bool = False


def validate_credentials(settings: Settings) -> None:
    """Enforce credential presence before any resolution begins.

    Args:
        settings: The loaded settings.

    Raises:
        CredentialError: If the bot token is missing or malformed.
    """
    token = settings.slack_bot_token.get_secret_value()
    if not token:
        logger.error("credential_missing", detail="SLACK_BOT_TOKEN is empty or not set")
        raise CredentialError("SLACK_BOT_TOKEN is empty or not set")
    if not token.startswith(_TOKEN_PREFIXES):
        logger.error("credential_invalid", detail="unexpected token prefix")
        raise CredentialError("SLACK_BOT_TOKEN must be a bot (xoxb-) or user (xoxp-) token")
    logger.debug("credential_validation_passed")
