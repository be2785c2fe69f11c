from __future__ import annotations

import copy
from typing import Any

from cardfix.domain import (
    ADAPTIVE_CARD_CONTENT_TYPE,
    AdaptiveCard,
    Attachment,
    CardVariant,
    ExecuteAction,
    SubmitAction,
)

CONSENT_SCOPE = "Calendars.Read,User.Read"

_CONSENT_BODY: list[dict[str, Any]] = [
    {
        "type": "Container",
        "style": "emphasis",
        "items": [
            {
                "type": "ColumnSet",
                "columns": [
                    {
                        "type": "Column",
                        "width": "auto",
                        "items": [
                            {"type": "Image", "url": "https://img.icons8.com/fluency/48/lock.png", "size": "Small"}
                        ],
                    },
                    {
                        "type": "Column",
                        "width": "stretch",
                        "verticalContentAlignment": "Center",
                        "items": [
                            {"type": "TextBlock", "text": "Permission Required", "weight": "Bolder", "size": "Medium"},
                            {
                                "type": "TextBlock",
                                "text": "Scheduling Agent needs access to your resources",
                                "spacing": "None",
                                "isSubtle": True,
                                "size": "Small",
                            },
                        ],
                    },
                ],
            }
        ],
    },
    {
        "type": "Container",
        "items": [
            {"type": "TextBlock", "text": "This copilot is requesting permission to:", "wrap": True, "spacing": "Medium"},
            {
                "type": "FactSet",
                "facts": [
                    {"title": "📅", "value": "Read your Outlook calendar"},
                    {"title": "👤", "value": "View your basic profile"},
                ],
            },
            {
                "type": "TextBlock",
                "text": "Requested by: **Copilot Studio Scheduling Agent**",
                "wrap": True,
                "spacing": "Medium",
                "size": "Small",
            },
        ],
    },
]

# (title, style, action value)
_BUTTONS = (
    ("Yes, Allow", "positive", "Allow"),
    ("No, Deny", "destructive", "Deny"),
)


def _consent_data(action: str) -> dict[str, Any]:
    return {"action": action, "id": "consent-response", "scope": CONSENT_SCOPE}


def build_consent_card(variant: CardVariant) -> AdaptiveCard:
    """Build a fresh consent card whose buttons use the requested action type."""
    if variant == CardVariant.EXECUTE:
        actions = [
            ExecuteAction(title=title, style=style, verb="consent", data=_consent_data(value))
            for title, style, value in _BUTTONS
        ]
    else:
        actions = [SubmitAction(title=title, style=style, data=_consent_data(value)) for title, style, value in _BUTTONS]
    return AdaptiveCard(body=copy.deepcopy(_CONSENT_BODY), actions=actions)


def consent_attachment(variant: CardVariant) -> Attachment:
    return Attachment(content_type=ADAPTIVE_CARD_CONTENT_TYPE, content=build_consent_card(variant))
