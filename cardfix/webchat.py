from __future__ import annotations

from typing import Any

from cardfix.adapters.base import ActivityChannel
from cardfix.domain import (
    ActionType,
    AdaptiveCard,
    CardClick,
    CardVariant,
    ChannelAccount,
    ConnectionStatus,
    ExecuteAction,
    MessageActivity,
    SubmitAction,
)
from cardfix.logging_setup import get_logger
from cardfix.middleware import CardClickPipeline
from cardfix.stream import BroadcastStream, Subscription

# Action types the web chat card renderer routes to its click pipeline.
RECOGNIZED_ACTION_TYPES = frozenset({ActionType.SUBMIT})


class CardRenderer:
    """Button handling of the web chat adaptive card renderer.

    Clicks on action types it does not know are discarded here, before any
    card-click interceptor gets to see them.
    """

    def __init__(
        self,
        channel: ActivityChannel,
        click_pipeline: CardClickPipeline,
        user: ChannelAccount,
    ) -> None:
        self._channel = channel
        self._click_pipeline = click_pipeline
        self._user = user
        self._logger = get_logger(self.__class__.__name__)
        self.dropped_clicks = 0

    def click(self, action: ExecuteAction | SubmitAction) -> bool:
        if action.type not in RECOGNIZED_ACTION_TYPES:
            self.dropped_clicks += 1
            self._logger.warning("AdaptiveCardRenderer: received unknown action %r (%s)", action.title, action.type)
            return False

        click = CardClick(
            type=action.type,
            title=action.title,
            verb=getattr(action, "verb", None),
            data=action.data,
        )
        self._click_pipeline.run(click, self._perform)
        return True

    def _perform(self, click: CardClick) -> None:
        if click.type != ActionType.SUBMIT:
            self._logger.warning("No default handling for %s", click.type.value)
            return
        ack = self._channel.send(MessageActivity(value=click.data, from_=self._user))
        ack.subscribe(lambda activity_id: self._logger.debug("Card submit acknowledged as %s", activity_id))


class ChatHost:
    """Minimal UI consumer: records what a chat window would display."""

    def __init__(self, channel: Any, user: ChannelAccount | None = None) -> None:
        self.channel = channel
        self.user = user or ChannelAccount(id="demo-user", name="Demo User", role="user")
        self.transcript: list[Any] = []
        self.statuses: list[ConnectionStatus] = []
        self.acks: list[str] = []
        self.renderer = CardRenderer(channel, channel.card_click_pipeline, self.user)
        self._subscriptions: list[Subscription] = [
            channel.status_stream.subscribe(self.statuses.append),
            channel.activity_stream.subscribe(self.transcript.append),
        ]

    @property
    def is_online(self) -> bool:
        return bool(self.statuses) and self.statuses[-1] == ConnectionStatus.ONLINE

    def texts(self) -> list[str]:
        return [a.text for a in self.transcript if getattr(a, "text", None)]

    def post_text(self, text: str) -> BroadcastStream[str]:
        ack = self.channel.send(MessageActivity(text=text, from_=self.user))
        ack.subscribe(self.acks.append)
        return ack

    def latest_card(self) -> AdaptiveCard | None:
        for activity in reversed(self.transcript):
            if isinstance(activity, MessageActivity):
                cards = activity.adaptive_cards()
                if cards:
                    return cards[-1]
        return None

    def click(self, title: str) -> bool:
        """Click the button with ``title`` on the most recent card."""
        card = self.latest_card()
        if card is None:
            raise LookupError("no adaptive card has been rendered yet")
        for action in card.actions:
            if action.title == title:
                return self.renderer.click(action)
        raise LookupError(f"no button titled {title!r} on the latest card")

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()


def describe_outcome(variant: CardVariant, fix_enabled: bool) -> str:
    if variant == CardVariant.SUBMIT:
        return "Yes (Action.Submit works natively)"
    if fix_enabled:
        return "Yes (converted to Action.Submit)"
    return "No (clicks silently dropped)"
