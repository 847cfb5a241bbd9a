"""
Single configuration for the scanner and its helpers.

* ``Settings`` uses pydantic-settings: values come from environment variables
  (or a ``.env`` file, if present).
* ``get_settings()`` returns a *cached* object, safe to import anywhere.
* The user configuration (cards, spreadsheet, locale) lives in the property
  store as one JSON document (``USER_CONFIG``) and is validated by
  :func:`validate_user_config` before anything talks to Google.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ccreport.errors import ConfigError
from ccreport.models import CardSpec, UserConfig

PRIMARY_LABEL = "cc_transactions_report"
PROCESSED_LABEL = "auto_cc_report_processed"

# --------------------------------------------------------------------------- #
# Main settings
# --------------------------------------------------------------------------- #


class Settings(BaseSettings):
    # ── Property store ───────────────────────────────────────────────────────
    user_config: Optional[str] = Field(None, description="User config as a JSON document")

    # ── Gmail labels ─────────────────────────────────────────────────────────
    primary_label: str = PRIMARY_LABEL
    processed_label: str = PROCESSED_LABEL

    # ── Google OAuth ─────────────────────────────────────────────────────────
    google_token_file: Path = Path("token.json")
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_refresh_token: Optional[str] = None
    http_timeout: float = 30.0

    # ── Parsing ──────────────────────────────────────────────────────────────
    strict_parsing: bool = True

    # ── Observability ────────────────────────────────────────────────────────
    sentry_dsn: Optional[str] = None
    env: str = "local"
    pushgateway_url: Optional[str] = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# --------------------------------------------------------------------------- #
# User configuration
# --------------------------------------------------------------------------- #


def validate_user_config(raw: Any) -> UserConfig:
    """Check *raw* and return it as :class:`UserConfig`.

    Raises :class:`ConfigError` when ``cards`` is missing or empty, when any
    card lacks one of its fields (the message names the card index) or when
    the spreadsheet id / locale are unusable.
    """
    if isinstance(raw, UserConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigError("userConfig.cards must be a non-empty array")

    cards = raw.get("cards")
    if not isinstance(cards, (list, tuple)) or not cards:
        raise ConfigError("userConfig.cards must be a non-empty array")

    for index, card in enumerate(cards):
        try:
            CardSpec.model_validate(card)
        except ValidationError as exc:
            raise ConfigError(f"Invalid card configuration at index {index}") from exc

    try:
        return UserConfig.model_validate(raw)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ConfigError(f"Invalid user configuration: {fields}") from exc


def load_user_config(settings: Settings) -> UserConfig:
    """Read the user configuration from the property store and validate it."""
    if not settings.user_config:
        raise ConfigError("USER_CONFIG is not set")
    try:
        raw = json.loads(settings.user_config)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"USER_CONFIG is not valid JSON: {exc.msg}") from exc
    return validate_user_config(raw)


# --------------------------------------------------------------------------- #
# Public helper
# --------------------------------------------------------------------------- #


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # noqa: D401
    """Return the **singleton** Settings object."""
    return Settings()
