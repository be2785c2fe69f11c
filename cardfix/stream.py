from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_MISSING: Any = object()


@dataclass(eq=False)
class _Observer(Generic[T]):
    on_next: Callable[[T], None] | None = None
    on_error: Callable[[BaseException], None] | None = None
    on_complete: Callable[[], None] | None = None


class Subscription:
    """Handle returned by ``BroadcastStream.subscribe``."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def closed(self) -> bool:
        return self._release is None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class BroadcastStream(Generic[T]):
    """Multicast publish/subscribe with replay of the last value.

    Delivery is synchronous: ``push`` returns only after every observer
    registered at the time of the call has seen the value, in registration
    order. After ``error`` or ``complete`` the stream is terminated and
    further pushes are ignored; late subscribers still get the last value
    followed by the terminal signal.
    """

    def __init__(self, initial: T = _MISSING) -> None:
        self._observers: list[_Observer[T]] = []
        self._last: T = initial
        self._error: BaseException | None = None
        self._completed = False

    @property
    def has_value(self) -> bool:
        return self._last is not _MISSING

    @property
    def value(self) -> T:
        if self._last is _MISSING:
            raise LookupError("stream has not produced a value yet")
        return self._last

    @property
    def terminated(self) -> bool:
        return self._completed or self._error is not None

    def subscribe(
        self,
        on_next: Callable[[T], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> Subscription:
        observer: _Observer[T] = _Observer(on_next, on_error, on_complete)

        if self.terminated:
            self._replay(observer)
            self._signal_terminal(observer)
            return Subscription(lambda: None)

        self._observers.append(observer)
        self._replay(observer)
        return Subscription(lambda: self._remove(observer))

    def push(self, value: T) -> None:
        if self.terminated:
            return
        self._last = value
        for observer in list(self._observers):
            if observer.on_next is not None:
                observer.on_next(value)

    def error(self, exc: BaseException) -> None:
        if self.terminated:
            return
        self._error = exc
        observers, self._observers = self._observers, []
        for observer in observers:
            self._signal_terminal(observer)

    def complete(self) -> None:
        if self.terminated:
            return
        self._completed = True
        observers, self._observers = self._observers, []
        for observer in observers:
            self._signal_terminal(observer)

    def observer_count(self) -> int:
        return len(self._observers)

    # Internals -----------------------------------------------------------------
    def _replay(self, observer: _Observer[T]) -> None:
        if self._last is not _MISSING and observer.on_next is not None:
            observer.on_next(self._last)

    def _signal_terminal(self, observer: _Observer[T]) -> None:
        if self._error is not None:
            if observer.on_error is not None:
                observer.on_error(self._error)
        elif observer.on_complete is not None:
            observer.on_complete()

    def _remove(self, observer: _Observer[T]) -> None:
        # Identity match: the same callback may be registered more than once.
        for i, registered in enumerate(self._observers):
            if registered is observer:
                del self._observers[i]
                return
