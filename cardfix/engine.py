from __future__ import annotations

from collections.abc import Callable
from typing import Any

from cardfix.cards import consent_attachment
from cardfix.config import Settings
from cardfix.domain import CARD_ACTION_INVOKE_NAME, CardVariant, InvokeActivity, MessageActivity
from cardfix.logging_setup import get_logger
from cardfix.scheduler import Clock

WELCOME_TEXT = (
    "Hi! I'm the Scheduling Agent. I need to check your calendar availability for next week's meeting."
)
CARD_PROMPT_TEXT = "Please review the following permission request:"
RESEND_TEXT = "Sure, let me send the permission request again."
WAITING_TEXT = (
    "I'm waiting for you to respond to the permission card above. You can also type 'reset' to see it again."
)
ALREADY_RESPONDED_TEXT = "You've already responded to this permission request. Type 'reset' to try again."
GRANTED_TEXT = "✅ Permission granted! Accessing your calendar now..."
AVAILABILITY_TEXT = (
    "📅 I found 3 available slots next week:\n\n"
    "• Monday 10:00 - 11:00 AM\n"
    "• Wednesday 2:00 - 3:00 PM\n"
    "• Friday 9:00 - 10:00 AM\n\n"
    "Which works best for you?"
)
DENIED_TEXT = (
    "⚠️ Permission denied. I won't be able to check your calendar. You can grant permission later by typing 'reset'."
)
_RESET_WORDS = ("reset", "again")


def unexpected_action_text(value: Any) -> str:
    return f'I received a response but the action "{value}" wasn\'t expected. Please try again.'


class ConversationEngine:
    """Scripted consent conversation driven by the logical clock.

    Owns the ``answered`` flag; every branch ends in a scripted reply or in
    silence, never in an exception crossing the channel boundary.
    """

    def __init__(
        self,
        settings: Settings,
        scheduler: Clock,
        emit: Callable[[MessageActivity], None],
    ) -> None:
        self.settings = settings
        self.variant: CardVariant = settings.CARD_VARIANT
        self.answered = False
        self._scheduler = scheduler
        self._emit = emit
        self._logger = get_logger(self.__class__.__name__)

    # Triggers -------------------------------------------------------------------
    def welcome(self) -> None:
        self._scheduler.call_later(self.settings.WELCOME_DELAY_MS, self._send_welcome)

    def resend_consent_card(self) -> None:
        self.answered = False
        self._send_consent_card()

    def process(self, activity: Any) -> None:
        if isinstance(activity, InvokeActivity) and activity.name == CARD_ACTION_INVOKE_NAME:
            self._logger.info("Received invoke for a card action; the Action.Execute round trip completed")
            value = activity.value if isinstance(activity.value, dict) else {}
            action = value.get("action") or {}
            self.handle_consent_response(action.get("data") if isinstance(action, dict) else None)
            return

        if isinstance(activity, MessageActivity) and activity.value is not None and not activity.text:
            self._logger.info("Received Action.Submit data as a message value")
            self.handle_consent_response(activity.value)
            return

        if isinstance(activity, MessageActivity) and activity.text:
            self._handle_text(activity.text)
            return

        self._logger.debug("Ignoring unrecognised activity type: %s", getattr(activity, "type", None))

    def handle_consent_response(self, data: Any) -> None:
        if self.answered:
            self._say(ALREADY_RESPONDED_TEXT)
            return

        # Set before branching: unknown values also count as the single response.
        self.answered = True

        choice = data.get("action") if isinstance(data, dict) else None
        if choice == "Allow":
            self._say(GRANTED_TEXT)
            self._scheduler.call_later(self.settings.RESULT_DELAY_MS, self._say, AVAILABILITY_TEXT)
        elif choice == "Deny":
            self._say(DENIED_TEXT)
        else:
            self._logger.warning("Unexpected consent action: %r", choice)
            self._say(unexpected_action_text(choice))

    # Internals -----------------------------------------------------------------
    def _handle_text(self, text: str) -> None:
        lowered = text.lower()
        if any(word in lowered for word in _RESET_WORDS):
            self.answered = False
            self._say(RESEND_TEXT)
            self._scheduler.call_later(self.settings.RESEND_DELAY_MS, self._send_consent_card)
        else:
            self._say(WAITING_TEXT)

    def _send_welcome(self) -> None:
        self._say(WELCOME_TEXT)
        self._scheduler.call_later(self.settings.CARD_DELAY_MS, self._send_consent_card)

    def _send_consent_card(self) -> None:
        self._emit(MessageActivity(text=CARD_PROMPT_TEXT, attachments=[consent_attachment(self.variant)]))

    def _say(self, text: str) -> None:
        self._emit(MessageActivity(text=text))
