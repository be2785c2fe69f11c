from __future__ import annotations

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cardfix.domain import CardVariant

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s)?\s*$", re.IGNORECASE)


def _parse_duration_ms(value: str | int | float) -> float:
    """Accept ``600``, ``"600ms"`` or ``"0.6s"``; always returns milliseconds."""
    if isinstance(value, (int, float)):
        ms = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError("Expected a duration like '600', '600ms' or '0.6s'")
        number, unit = float(match.group(1)), (match.group(2) or "ms").lower()
        ms = number * 1000.0 if unit == "s" else number
    if ms < 0:
        raise ValueError("Durations must not be negative")
    return ms


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CARDFIX_", case_sensitive=False, extra="ignore")

    # Which action type the bot puts on its consent card
    CARD_VARIANT: CardVariant = Field(default=CardVariant.EXECUTE)

    # Middleware toggles
    ENABLE_EXECUTE_FIX: bool = Field(default=False)
    ENABLE_DIAGNOSTICS: bool = Field(default=False)

    # Transport timing (milliseconds)
    RESPONSE_DELAY_MS: float = Field(default=600)
    ACK_DELAY_MS: float = Field(default=0)
    CONNECTING_DELAY_MS: float = Field(default=100)
    ONLINE_DELAY_MS: float = Field(default=300)

    # Conversation pacing (milliseconds)
    WELCOME_DELAY_MS: float = Field(default=500)
    CARD_DELAY_MS: float = Field(default=800)
    RESEND_DELAY_MS: float = Field(default=500)
    RESULT_DELAY_MS: float = Field(default=1000)

    # Participants
    BOT_ID: str = Field(default="copilot-bot")
    BOT_NAME: str = Field(default="Scheduling Agent")
    USER_ID: str = Field(default="demo-user")
    USER_NAME: str = Field(default="Demo User")

    LOG_JSON: bool = Field(default=False)

    @field_validator(
        "RESPONSE_DELAY_MS",
        "ACK_DELAY_MS",
        "CONNECTING_DELAY_MS",
        "ONLINE_DELAY_MS",
        "WELCOME_DELAY_MS",
        "CARD_DELAY_MS",
        "RESEND_DELAY_MS",
        "RESULT_DELAY_MS",
        mode="before",
    )
    @classmethod
    def _validate_duration(cls, v):  # type: ignore[override]
        return _parse_duration_ms(v)


def load_settings() -> Settings:
    return Settings()
