"""Tests for expressway.plugins.barrier.join_all."""

from __future__ import annotations

import asyncio

import pytest

from expressway.plugins.barrier import join_all


class TestJoinAll:
    @pytest.mark.asyncio
    async def test_empty(self):
        assert await join_all([]) == []

    @pytest.mark.asyncio
    async def test_results_in_submission_order(self):
        async def unit(delay: float, value: str) -> str:
            await asyncio.sleep(delay)
            return value

        assert await join_all([unit(0.03, "slow"), unit(0.0, "fast")]) == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_waits_for_slowest(self):
        finished: list[str] = []

        async def unit(delay: float, name: str) -> None:
            await asyncio.sleep(delay)
            finished.append(name)

        await join_all([unit(0.05, "slow"), unit(0.0, "fast"), unit(0.01, "mid")])
        assert finished == ["fast", "mid", "slow"]

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        loop = asyncio.get_running_loop()
        started = loop.time()
        await join_all([asyncio.sleep(0.05) for _ in range(5)])
        assert loop.time() - started < 0.2

    @pytest.mark.asyncio
    async def test_first_failure_propagates_and_cancels_siblings(self):
        cancelled = asyncio.Event()

        async def hangs() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fails() -> None:
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await join_all([hangs(), fails()])
        assert cancelled.is_set()
