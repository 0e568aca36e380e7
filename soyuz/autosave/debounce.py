from __future__ import annotations

import asyncio
import typing as t

T = t.TypeVar("T")


class Debouncer(t.Generic[T]):
    """
    Holds the most recent value pushed to it and hands it to `callback` once
    `delay` seconds pass without another push. Every push restarts the timer.

    Must be used from within a running event loop.
    """

    delay: float
    callback: t.Callable[[T], t.Any]

    _value: T | None
    _pending: bool
    _handle: asyncio.TimerHandle | None
    _closed: bool

    def __init__(self, delay: float, callback: t.Callable[[T], t.Any]) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self.callback = callback
        self._value = None
        self._pending = False
        self._handle = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, value: T) -> None:
        if self._closed:
            return
        self._cancel_timer()
        self._value = value
        self._pending = True
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)

    def flush(self) -> T | None:
        """Stop the timer and return the waiting value without emitting it."""
        value = self._value if self._pending else None
        self.cancel()
        return value

    def cancel(self) -> None:
        self._cancel_timer()
        self._value = None
        self._pending = False

    def close(self) -> None:
        self.cancel()
        self._closed = True

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._closed or not self._pending:
            return
        value = t.cast(T, self._value)
        self._value = None
        self._pending = False
        self.callback(value)
