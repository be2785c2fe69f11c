from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cardfix.domain import ConnectionStatus
from cardfix.stream import BroadcastStream


class ActivityChannel(ABC):
    """Bidirectional activity transport as consumed by a chat UI.

    Implementations publish bot activities on ``activity_stream`` and the
    connection lifecycle on ``status_stream``.
    """

    activity_stream: BroadcastStream[Any]
    status_stream: BroadcastStream[ConnectionStatus]

    @abstractmethod
    def send(self, activity: Any) -> BroadcastStream[str]:  # pragma: no cover - interface
        ...

    @abstractmethod
    def close(self) -> None:  # pragma: no cover - interface
        ...
