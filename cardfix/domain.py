from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum, IntEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, model_validator

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
CARD_ACTION_INVOKE_NAME = "adaptiveCard/action"


class ConnectionStatus(IntEnum):
    """Lifecycle of the simulated transport (values match DirectLine)."""

    UNINITIALIZED = 0
    CONNECTING = 1
    ONLINE = 2
    EXPIRED_TOKEN = 3
    FAILED_TO_CONNECT = 4
    ENDED = 5


class CardVariant(str, Enum):
    EXECUTE = "execute"
    SUBMIT = "submit"


class ActionType(str, Enum):
    EXECUTE = "Action.Execute"
    SUBMIT = "Action.Submit"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChannelAccount(_WireModel):
    id: str
    name: str | None = None
    role: str | None = None


class ExecuteAction(_WireModel):
    """Universal action; the web chat renderer has no route for it."""

    type: Literal["Action.Execute"] = "Action.Execute"
    title: str
    style: str | None = None
    verb: str | None = None
    data: dict[str, Any] | None = None


class SubmitAction(_WireModel):
    type: Literal["Action.Submit"] = "Action.Submit"
    title: str
    style: str | None = None
    data: dict[str, Any] | None = None


CardAction = Annotated[Union[ExecuteAction, SubmitAction], Field(discriminator="type")]


class AdaptiveCard(_WireModel):
    type: Literal["AdaptiveCard"] = "AdaptiveCard"
    schema_: str = Field(default="http://adaptivecards.io/schemas/adaptive-card.json", alias="$schema")
    version: str = "1.4"
    # Rendering tree; passed through untouched.
    body: list[dict[str, Any]] = Field(default_factory=list)
    actions: list[CardAction] = Field(default_factory=list)


class Attachment(_WireModel):
    content_type: str = Field(alias="contentType")
    content: Any = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_adaptive_content(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        content_type = data.get("contentType", data.get("content_type"))
        content = data.get("content")
        if content_type == ADAPTIVE_CARD_CONTENT_TYPE and isinstance(content, Mapping):
            data = dict(data)
            data["content"] = AdaptiveCard.model_validate(content)
        return data

    @property
    def is_adaptive_card(self) -> bool:
        return self.content_type == ADAPTIVE_CARD_CONTENT_TYPE and isinstance(self.content, AdaptiveCard)


class _ActivityBase(_WireModel):
    id: str | None = None
    timestamp: datetime | None = None
    from_: ChannelAccount | None = Field(default=None, alias="from")


class MessageActivity(_ActivityBase):
    type: Literal["message"] = "message"
    text: str | None = None
    value: Any = None
    attachments: list[Attachment] = Field(default_factory=list)

    def adaptive_cards(self) -> list[AdaptiveCard]:
        return [a.content for a in self.attachments if a.is_adaptive_card]


class InvokeActivity(_ActivityBase):
    type: Literal["invoke"] = "invoke"
    name: str | None = None
    value: Any = None


class OtherActivity(_ActivityBase):
    """Any activity kind the bot has no handler for (typing, event, ...)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = "unknown"
    name: str | None = None
    value: Any = None


def _activity_kind(payload: Any) -> str:
    kind = payload.get("type") if isinstance(payload, Mapping) else getattr(payload, "type", None)
    return kind if kind in ("message", "invoke") else "other"


Activity = Annotated[
    Union[
        Annotated[MessageActivity, Tag("message")],
        Annotated[InvokeActivity, Tag("invoke")],
        Annotated[OtherActivity, Tag("other")],
    ],
    Discriminator(_activity_kind),
]

_activity_adapter: TypeAdapter[Any] = TypeAdapter(Activity)


def parse_activity(payload: Any) -> MessageActivity | InvokeActivity | OtherActivity:
    """Validate a dict (wire shape) or model into its tagged activity variant."""
    if isinstance(payload, (MessageActivity, InvokeActivity, OtherActivity)):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    return _activity_adapter.validate_python(payload)


class CardClick(_WireModel):
    """A renderer-recognized button click, as seen by the card-click pipeline."""

    type: ActionType
    title: str
    verb: str | None = None
    data: dict[str, Any] | None = None
