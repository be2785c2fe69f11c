from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar, Union

from cardfix.domain import ActionType, CardClick, InvokeActivity, MessageActivity, OtherActivity
from cardfix.logging_setup import get_logger

if TYPE_CHECKING:
    from cardfix.config import Settings

P = TypeVar("P")
P_contra = TypeVar("P_contra", contravariant=True)

AnyActivity = Union[MessageActivity, InvokeActivity, OtherActivity]


class DispatchType(str, Enum):
    INCOMING_ACTIVITY = "DIRECT_LINE/INCOMING_ACTIVITY"
    POST_ACTIVITY = "DIRECT_LINE/POST_ACTIVITY"


@dataclass
class ActivityDispatch:
    """Payload travelling through the activity pipeline."""

    type: DispatchType
    activity: AnyActivity


class Interceptor(Protocol[P_contra]):
    def handle(self, payload: P_contra, call_next: Callable[[P_contra], None]) -> None:  # pragma: no cover - protocol
        ...


class Pipeline(Generic[P]):
    """Ordered chain of interceptors in front of a final consumer.

    Each interceptor decides whether (and with which payload) the chain
    continues; not calling ``call_next`` drops the payload.
    """

    def __init__(self, interceptors: Sequence[Interceptor[P]] = ()) -> None:
        self._interceptors: tuple[Interceptor[P], ...] = tuple(interceptors)

    @property
    def interceptors(self) -> tuple[Interceptor[P], ...]:
        return self._interceptors

    def __len__(self) -> int:
        return len(self._interceptors)

    def run(self, payload: P, final: Callable[[P], None]) -> None:
        self._step(0, payload, final)

    def _step(self, index: int, payload: P, final: Callable[[P], None]) -> None:
        if index == len(self._interceptors):
            final(payload)
            return
        self._interceptors[index].handle(payload, lambda p: self._step(index + 1, p, final))


class ActivityPipeline(Pipeline[ActivityDispatch]):
    pass


class CardClickPipeline(Pipeline[CardClick]):
    """Sees only clicks the renderer recognized; holds at most one interceptor."""

    def __init__(self, interceptor: Interceptor[CardClick] | None = None) -> None:
        super().__init__([interceptor] if interceptor is not None else [])


class DiagnosticActivityInterceptor:
    """Logs every activity crossing the transport boundary."""

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__name__)

    def handle(self, payload: ActivityDispatch, call_next: Callable[[ActivityDispatch], None]) -> None:
        activity = payload.activity
        extra = {"activity_id": activity.id, "activity_type": activity.type, "dispatch": payload.type.value}
        if payload.type == DispatchType.POST_ACTIVITY:
            self._logger.info(
                "OUTBOUND %s name=%s text=%r value=%s",
                activity.type,
                getattr(activity, "name", None) or "(none)",
                getattr(activity, "text", None) or "(none)",
                getattr(activity, "value", None),
                extra=extra,
            )
        elif isinstance(activity, MessageActivity) and activity.adaptive_cards():
            for i, card in enumerate(activity.adaptive_cards(), start=1):
                self._logger.info("INBOUND adaptive card %d with %d action(s)", i, len(card.actions), extra=extra)
                for j, action in enumerate(card.actions):
                    self._logger.info(
                        "  [%d] %s title=%r verb=%s", j, action.type, action.title, getattr(action, "verb", None) or "N/A"
                    )
                    if action.type == ActionType.EXECUTE:
                        self._logger.warning(
                            "  Action.Execute is not routed by the web chat renderer; clicks will be dropped"
                        )
        else:
            self._logger.info("INBOUND %s %s", activity.type, getattr(activity, "text", None) or "", extra=extra)
        call_next(payload)


class DiagnosticCardClickInterceptor:
    """Logs card button clicks that reached the click pipeline."""

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__name__)

    def handle(self, payload: CardClick, call_next: Callable[[CardClick], None]) -> None:
        self._logger.info(
            "Card button clicked: type=%s title=%r verb=%s data=%s",
            payload.type.value,
            payload.title,
            payload.verb or "(none)",
            payload.data,
        )
        if payload.type == ActionType.SUBMIT:
            self._logger.info("Action.Submit will be posted as a message activity carrying the card data")
        call_next(payload)


def build_activity_interceptors(settings: Settings) -> list[Interceptor[ActivityDispatch]]:
    from cardfix.transforms import ExecuteToSubmitInterceptor

    interceptors: list[Interceptor[ActivityDispatch]] = []
    if settings.ENABLE_EXECUTE_FIX:
        interceptors.append(ExecuteToSubmitInterceptor())
    if settings.ENABLE_DIAGNOSTICS:
        interceptors.append(DiagnosticActivityInterceptor())
    return interceptors


def build_card_click_interceptor(settings: Settings) -> Interceptor[CardClick] | None:
    if settings.ENABLE_DIAGNOSTICS:
        return DiagnosticCardClickInterceptor()
    return None
