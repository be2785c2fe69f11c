from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from cardfix.adapters.base import ActivityChannel
from cardfix.config import Settings
from cardfix.connection import ConnectionStateMachine
from cardfix.domain import CardClick, ChannelAccount, ConnectionStatus, parse_activity
from cardfix.engine import ConversationEngine
from cardfix.logging_setup import get_logger
from cardfix.middleware import (
    ActivityDispatch,
    ActivityPipeline,
    AnyActivity,
    CardClickPipeline,
    DispatchType,
    Interceptor,
)
from cardfix.scheduler import LogicalScheduler, TimerHandle
from cardfix.stream import BroadcastStream


class ActivityIdGenerator:
    """Per-channel id source: one counter shared by bot and user ids."""

    def __init__(self) -> None:
        self._counter = 0

    @property
    def last(self) -> int:
        return self._counter

    def next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"


class MockActivityChannel(ActivityChannel):
    """In-process stand-in for a DirectLine connection to a consent bot.

    - Walks the connection lifecycle on the logical clock
    - Runs bot output through the activity pipeline before publishing it
    - Acknowledges every send and hands it to the bot after RESPONSE_DELAY_MS
    """

    def __init__(
        self,
        settings: Settings,
        scheduler: LogicalScheduler,
        *,
        activity_interceptors: Sequence[Interceptor[ActivityDispatch]] = (),
        card_click_interceptor: Interceptor[CardClick] | None = None,
        bot: ChannelAccount | None = None,
    ) -> None:
        self.settings = settings
        self._scheduler = scheduler
        self._logger = get_logger(self.__class__.__name__)
        self._ids = ActivityIdGenerator()
        self._timers: list[TimerHandle] = []
        self._bot = bot or ChannelAccount(id=settings.BOT_ID, name=settings.BOT_NAME, role="bot")

        self.activity_pipeline = ActivityPipeline(activity_interceptors)
        self.card_click_pipeline = CardClickPipeline(card_click_interceptor)

        self.activity_stream: BroadcastStream[AnyActivity] = BroadcastStream()
        self._connection = ConnectionStateMachine(
            scheduler,
            connecting_delay_ms=settings.CONNECTING_DELAY_MS,
            online_delay_ms=settings.ONLINE_DELAY_MS,
        )
        self.status_stream = self._connection.status_stream

        self.engine = ConversationEngine(settings, _ChannelClock(self), self._publish_bot_activity)
        self._connection.on_online(self.engine.welcome)
        self._connection.start()

    @property
    def status(self) -> ConnectionStatus:
        return self._connection.status

    @property
    def closed(self) -> bool:
        return self._connection.status == ConnectionStatus.ENDED

    # Public API -----------------------------------------------------------------
    def send(self, activity: Any) -> BroadcastStream[str]:
        """Post a user activity. Never refused, whatever the connection status."""
        parsed = parse_activity(activity)
        activity_id = self._ids.next_id("user")
        stamped = parsed.model_copy(update={"id": activity_id, "timestamp": self._scheduler.now()})
        self._logger.info(
            "Received %s activity from host", stamped.type, extra={"activity_id": activity_id}
        )

        ack: BroadcastStream[str] = BroadcastStream()
        self._defer(self.settings.ACK_DELAY_MS, self._acknowledge, ack, activity_id)
        self.activity_pipeline.run(
            ActivityDispatch(DispatchType.POST_ACTIVITY, stamped),
            self._deliver_to_bot,
        )
        return ack

    def close(self) -> None:
        if self.closed:
            return
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._connection.close()

    def resend_consent_card(self) -> None:
        self.engine.resend_consent_card()

    # Internals -----------------------------------------------------------------
    def _deliver_to_bot(self, dispatch: ActivityDispatch) -> None:
        if self.closed:
            self._logger.debug("Channel ended; not forwarding %s to the bot", dispatch.activity.id)
            return
        self._defer(self.settings.RESPONSE_DELAY_MS, self.engine.process, dispatch.activity)

    def _publish_bot_activity(self, activity: AnyActivity) -> None:
        if self.closed:
            self._logger.debug("Channel ended; dropping bot activity")
            return
        stamped = activity.model_copy(
            update={"id": self._ids.next_id("bot"), "timestamp": self._scheduler.now(), "from_": self._bot}
        )
        self._logger.info(
            "Sending %s activity to host: text=%r attachments=%d",
            stamped.type,
            getattr(stamped, "text", None),
            len(getattr(stamped, "attachments", [])),
            extra={"activity_id": stamped.id},
        )
        self.activity_pipeline.run(
            ActivityDispatch(DispatchType.INCOMING_ACTIVITY, stamped),
            lambda dispatch: self.activity_stream.push(dispatch.activity),
        )

    @staticmethod
    def _acknowledge(ack: BroadcastStream[str], activity_id: str) -> None:
        ack.push(activity_id)
        ack.complete()

    def _defer(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        self._timers = [t for t in self._timers if not t.cancelled and t.due_ms >= self._scheduler.now_ms]
        handle = self._scheduler.call_later(delay_ms, callback, *args)
        self._timers.append(handle)
        return handle


class _ChannelClock:
    """Scheduler view handed to the engine so its timers die with the channel."""

    def __init__(self, channel: MockActivityChannel) -> None:
        self._channel = channel

    @property
    def now_ms(self) -> float:
        return self._channel._scheduler.now_ms

    def now(self) -> datetime:
        return self._channel._scheduler.now()

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self._channel._defer(delay_ms, callback, *args)
