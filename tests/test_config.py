import pytest
from pydantic import ValidationError

from cardfix.config import Settings
from cardfix.domain import CardVariant


def test_defaults_match_demo_timing():
    settings = Settings()
    assert settings.CARD_VARIANT == CardVariant.EXECUTE
    assert settings.RESPONSE_DELAY_MS == 600
    assert settings.ACK_DELAY_MS == 0
    assert (settings.CONNECTING_DELAY_MS, settings.ONLINE_DELAY_MS) == (100, 300)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(250, 250.0), ("250", 250.0), ("250ms", 250.0), ("0.25s", 250.0), (" 1.5 S ", 1500.0)],
)
def test_duration_parsing(raw, expected):
    assert Settings(RESPONSE_DELAY_MS=raw).RESPONSE_DELAY_MS == expected


@pytest.mark.parametrize("raw", ["-5", -5, "soon", "10min"])
def test_invalid_durations_rejected(raw):
    with pytest.raises(ValidationError):
        Settings(RESULT_DELAY_MS=raw)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CARDFIX_CARD_VARIANT", "submit")
    monkeypatch.setenv("CARDFIX_RESPONSE_DELAY_MS", "1s")
    monkeypatch.setenv("CARDFIX_ENABLE_EXECUTE_FIX", "true")

    settings = Settings()

    assert settings.CARD_VARIANT == CardVariant.SUBMIT
    assert settings.RESPONSE_DELAY_MS == 1000.0
    assert settings.ENABLE_EXECUTE_FIX is True
