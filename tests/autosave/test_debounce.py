"""Tests for soyuz.autosave.debounce."""

from __future__ import annotations

import asyncio

import pytest

from soyuz.autosave import Debouncer


class TestDebouncer(object):
    @pytest.mark.anyio
    async def test_rapid_pushes_emit_last_value_once(self) -> None:
        """Values pushed within the window collapse into a single call with the latest."""
        emitted: list[int] = []
        debouncer: Debouncer[int] = Debouncer(0.02, emitted.append)

        for n in range(5):
            debouncer.push(n)
            await asyncio.sleep(0.005)
        assert emitted == []
        assert debouncer.pending

        await asyncio.sleep(0.05)
        assert emitted == [4]
        assert not debouncer.pending

    @pytest.mark.anyio
    async def test_pushes_in_separate_windows_each_emit(self) -> None:
        emitted: list[str] = []
        debouncer: Debouncer[str] = Debouncer(0.01, emitted.append)

        debouncer.push("a")
        await asyncio.sleep(0.03)
        debouncer.push("b")
        await asyncio.sleep(0.03)

        assert emitted == ["a", "b"]

    @pytest.mark.anyio
    async def test_flush_returns_value_without_emitting(self) -> None:
        """flush() hands back the waiting value and stops the timer."""
        emitted: list[int] = []
        debouncer: Debouncer[int] = Debouncer(0.01, emitted.append)

        debouncer.push(7)
        assert debouncer.flush() == 7
        assert debouncer.flush() is None

        await asyncio.sleep(0.03)
        assert emitted == []

    @pytest.mark.anyio
    async def test_close_drops_pending_and_ignores_later_pushes(self) -> None:
        emitted: list[int] = []
        debouncer: Debouncer[int] = Debouncer(0.01, emitted.append)

        debouncer.push(1)
        debouncer.close()
        debouncer.push(2)
        await asyncio.sleep(0.03)

        assert emitted == []
        assert debouncer.closed
        assert not debouncer.pending

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValueError):
            Debouncer(-1, print)
