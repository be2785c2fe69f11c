from __future__ import annotations

from collections.abc import Callable
from typing import Any

from cardfix.domain import AdaptiveCard, ExecuteAction, MessageActivity, SubmitAction
from cardfix.logging_setup import get_logger
from cardfix.middleware import ActivityDispatch, DispatchType


def rewrite_card_actions(card: AdaptiveCard) -> int:
    """Turn every Action.Execute button into an Action.Submit, in place.

    Title, style and data are carried over unchanged; ``verb`` has no meaning
    on a submit action and is dropped. Returns the number of converted actions.
    """
    converted = 0
    for i, action in enumerate(card.actions):
        if isinstance(action, ExecuteAction):
            card.actions[i] = SubmitAction(title=action.title, style=action.style, data=action.data)
            converted += 1
    return converted


def rewrite_activity(activity: Any) -> int:
    if not isinstance(activity, MessageActivity):
        return 0
    return sum(rewrite_card_actions(card) for card in activity.adaptive_cards())


class ExecuteToSubmitInterceptor:
    """Rewrites Action.Execute buttons on bot cards before they are rendered."""

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__name__)

    def handle(self, payload: ActivityDispatch, call_next: Callable[[ActivityDispatch], None]) -> None:
        if payload.type == DispatchType.INCOMING_ACTIVITY:
            converted = rewrite_activity(payload.activity)
            if converted:
                self._logger.info(
                    "Converted %d Action.Execute -> Action.Submit in incoming card",
                    converted,
                    extra={"activity_id": payload.activity.id},
                )
        call_next(payload)
