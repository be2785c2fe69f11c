from __future__ import annotations

import pytest

from cardfix.adapters.mock import MockActivityChannel
from cardfix.config import Settings
from cardfix.domain import CardVariant
from cardfix.middleware import build_activity_interceptors, build_card_click_interceptor
from cardfix.scheduler import LogicalScheduler
from cardfix.webchat import ChatHost


class Recorder:
    """Pass-through interceptor that remembers every payload it saw."""

    def __init__(self) -> None:
        self.seen: list = []

    def handle(self, payload, call_next) -> None:
        self.seen.append(payload)
        call_next(payload)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_session():
    def _make(
        variant: CardVariant = CardVariant.EXECUTE,
        fix: bool = False,
        activity_interceptors=None,
        card_click_interceptor=None,
        **overrides,
    ):
        settings = Settings(CARD_VARIANT=variant, ENABLE_EXECUTE_FIX=fix, **overrides)
        scheduler = LogicalScheduler()
        interceptors = build_activity_interceptors(settings)
        if activity_interceptors:
            interceptors.extend(activity_interceptors)
        channel = MockActivityChannel(
            settings,
            scheduler,
            activity_interceptors=interceptors,
            card_click_interceptor=card_click_interceptor or build_card_click_interceptor(settings),
        )
        host = ChatHost(channel)
        return scheduler, channel, host

    return _make
