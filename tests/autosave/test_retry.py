"""Tests for soyuz.autosave.retry."""

from __future__ import annotations

import asyncio

import pydantic as p
import pytest

from soyuz.autosave import RetryPolicy, RetrySchedule
from soyuz.core.config.autosave import RetrySettings


class TestRetryPolicy(object):
    def test_default_delays_double_up_to_cap(self) -> None:
        """Defaults give three retries at 1, 2 and 4 seconds."""
        assert RetryPolicy().delays() == [1.0, 2.0, 4.0]

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(base_delay=1, multiplier=3, max_delay=5, max_retries=4)
        assert policy.delays() == [1, 3, 5, 5]

    def test_attempt_is_one_based(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy().delay(0)

    def test_from_settings(self) -> None:
        policy = RetryPolicy.from_settings(RetrySettings(base_delay=0.5, max_retries=5))
        assert policy.base_delay == 0.5
        assert policy.max_retries == 5
        assert policy.multiplier == 2.0

    def test_rejects_invalid_values(self) -> None:
        with pytest.raises(p.ValidationError):
            RetryPolicy(base_delay=0)
        with pytest.raises(p.ValidationError):
            RetryPolicy(multiplier=0.5)


class TestRetrySchedule(object):
    @pytest.mark.anyio
    async def test_schedule_fires_callback_after_delay(self) -> None:
        fired: list[int] = []
        schedule = RetrySchedule(RetryPolicy(base_delay=0.01, max_retries=2))

        delay = schedule.schedule(lambda: fired.append(schedule.attempt))
        assert delay == 0.01
        assert schedule.scheduled

        await asyncio.sleep(0.03)
        assert fired == [1]
        assert not schedule.scheduled

    @pytest.mark.anyio
    async def test_budget_runs_out(self) -> None:
        """schedule() returns None once max_retries attempts were armed."""
        schedule = RetrySchedule(RetryPolicy(base_delay=0.01, max_retries=2))

        assert schedule.schedule(lambda: None) == 0.01
        assert schedule.schedule(lambda: None) == 0.02
        assert schedule.exhausted
        assert schedule.schedule(lambda: None) is None
        assert schedule.attempt == 2
        schedule.cancel()

    @pytest.mark.anyio
    async def test_cancel_keeps_count_and_reset_clears_it(self) -> None:
        fired: list[bool] = []
        schedule = RetrySchedule(RetryPolicy(base_delay=0.01))

        schedule.schedule(lambda: fired.append(True))
        schedule.cancel()
        await asyncio.sleep(0.03)
        assert fired == []
        assert schedule.attempt == 1

        schedule.reset()
        assert schedule.attempt == 0
        assert not schedule.exhausted
