from __future__ import annotations

from collections.abc import Callable

from cardfix.domain import ConnectionStatus
from cardfix.logging_setup import get_logger
from cardfix.scheduler import Clock, TimerHandle
from cardfix.stream import BroadcastStream

_ALLOWED: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    ConnectionStatus.UNINITIALIZED: frozenset({ConnectionStatus.CONNECTING}),
    ConnectionStatus.CONNECTING: frozenset({ConnectionStatus.ONLINE, ConnectionStatus.FAILED_TO_CONNECT}),
    ConnectionStatus.ONLINE: frozenset({ConnectionStatus.EXPIRED_TOKEN}),
    ConnectionStatus.EXPIRED_TOKEN: frozenset(),
    ConnectionStatus.FAILED_TO_CONNECT: frozenset(),
    ConnectionStatus.ENDED: frozenset(),
}


class ConnectionStateError(RuntimeError):
    """Raised for a transition the connection lifecycle does not allow."""


class ConnectionStateMachine:
    """Timed connection lifecycle published on a replaying status stream.

    Uninitialized -> Connecting -> Online, with Ended reachable from any
    state through ``close``. Statuses never move backwards.
    """

    def __init__(
        self,
        scheduler: Clock,
        *,
        connecting_delay_ms: float = 100,
        online_delay_ms: float = 300,
    ) -> None:
        self._scheduler = scheduler
        self._connecting_delay_ms = connecting_delay_ms
        self._online_delay_ms = online_delay_ms
        self._status = ConnectionStatus.UNINITIALIZED
        self._timers: list[TimerHandle] = []
        self._online_callbacks: list[Callable[[], None]] = []
        self._logger = get_logger(self.__class__.__name__)
        self.status_stream: BroadcastStream[ConnectionStatus] = BroadcastStream(self._status)

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    def on_online(self, callback: Callable[[], None]) -> None:
        self._online_callbacks.append(callback)

    def start(self) -> None:
        if self._status != ConnectionStatus.UNINITIALIZED or self._timers:
            return
        self._timers.append(self._scheduler.call_later(self._connecting_delay_ms, self._on_connecting_due))

    def transition(self, target: ConnectionStatus) -> None:
        if target == ConnectionStatus.ENDED:
            self.close()
            return
        if target not in _ALLOWED[self._status]:
            raise ConnectionStateError(f"cannot move from {self._status.name} to {target.name}")
        self._apply(target)

    def close(self) -> None:
        if self._status == ConnectionStatus.ENDED:
            return
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._apply(ConnectionStatus.ENDED)

    # Internals -----------------------------------------------------------------
    def _on_connecting_due(self) -> None:
        if not self._try_scheduled(ConnectionStatus.CONNECTING):
            return
        self._timers.append(self._scheduler.call_later(self._online_delay_ms, self._on_online_due))

    def _on_online_due(self) -> None:
        self._try_scheduled(ConnectionStatus.ONLINE)

    def _try_scheduled(self, target: ConnectionStatus) -> bool:
        if target not in _ALLOWED[self._status]:
            self._logger.debug("Skipping scheduled %s; status is %s", target.name, self._status.name)
            return False
        self._apply(target)
        return True

    def _apply(self, target: ConnectionStatus) -> None:
        previous = self._status
        self._status = target
        self._logger.info("Connection %s -> %s", previous.name, target.name)
        self.status_stream.push(target)
        if target == ConnectionStatus.ONLINE:
            for callback in list(self._online_callbacks):
                callback()
