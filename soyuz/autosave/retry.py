from __future__ import annotations

import asyncio
import typing as t

import pydantic as p

from soyuz.model import BaseModel

if t.TYPE_CHECKING:
    from soyuz.core.config.autosave import RetrySettings


class RetryPolicy(BaseModel):
    """
    Exponential backoff: the n-th retry waits base_delay * multiplier ** (n - 1)
    seconds, never more than max_delay, and at most max_retries retries follow
    the first failure.
    """

    model_config = p.ConfigDict(frozen=True)

    base_delay: float = p.Field(1.0, gt=0)
    multiplier: float = p.Field(2.0, ge=1)
    max_delay: float = p.Field(8.0, gt=0)
    max_retries: int = p.Field(3, ge=0)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> RetryPolicy:
        return cls(**settings.model_dump())

    def delay(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    def delays(self) -> list[float]:
        return [self.delay(n) for n in range(1, self.max_retries + 1)]


class RetrySchedule(object):
    """
    Attempt counter plus at most one scheduled timer. Cancelling drops the
    timer but keeps the count; reset() starts a fresh budget.
    """

    policy: RetryPolicy
    attempt: int

    _handle: asyncio.TimerHandle | None

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.attempt = 0
        self._handle = None

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_retries

    def schedule(self, callback: t.Callable[[], t.Any]) -> float | None:
        """
        Arm the next retry. Returns its delay, or None once the budget is spent.
        """
        self.cancel()
        if self.exhausted:
            return None
        self.attempt += 1
        delay = self.policy.delay(self.attempt)
        self._handle = asyncio.get_running_loop().call_later(delay, self._fire, callback)
        return delay

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        self.cancel()
        self.attempt = 0

    def _fire(self, callback: t.Callable[[], t.Any]) -> None:
        self._handle = None
        callback()
