"""Tests for the background eviction sweeper."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from common.protocol import make_metadata
from common.types import ChunkRecord
from receiver.eviction_task import EvictionSweeper


def add_partial(cache, key):
    cache.insert(ChunkRecord(make_metadata(0, 3, key, 30, 1), f"ref-{key}"))


class TestEvictionSweeper:
    """Test EvictionSweeper."""

    @pytest.mark.asyncio
    async def test_sweep_once_evicts_stale(self, cache, clock):
        add_partial(cache, "old:30:1")
        clock.advance(400)
        on_evicted = Mock()
        sweeper = EvictionSweeper(cache, on_evicted=on_evicted)

        evicted = await sweeper.sweep_once()

        assert evicted == ["old:30:1"]
        on_evicted.assert_called_once_with(["old:30:1"])

    @pytest.mark.asyncio
    async def test_sweep_once_nothing_to_do(self, cache):
        add_partial(cache, "fresh:30:1")
        on_evicted = Mock()
        sweeper = EvictionSweeper(cache, on_evicted=on_evicted)

        assert await sweeper.sweep_once() == []
        on_evicted.assert_not_called()
        assert "fresh:30:1" in cache

    @pytest.mark.asyncio
    async def test_async_callback(self, cache, clock):
        add_partial(cache, "old:30:1")
        clock.advance(400)
        on_evicted = AsyncMock()

        await EvictionSweeper(cache, on_evicted=on_evicted).sweep_once()

        on_evicted.assert_awaited_once_with(["old:30:1"])

    @pytest.mark.asyncio
    async def test_start_and_stop(self, cache):
        sweeper = EvictionSweeper(cache, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        await sweeper.stop()

        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_background_loop_sweeps(self, cache, clock):
        add_partial(cache, "old:30:1")
        clock.advance(400)
        sweeper = EvictionSweeper(cache, interval_seconds=0.01)

        await sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self, cache):
        sweeper = EvictionSweeper(cache, interval_seconds=0.01)
        sweeper.sweep_once = AsyncMock(side_effect=[RuntimeError("boom"), []])

        await sweeper.start()
        await asyncio.sleep(0.05)
        assert sweeper.running
        await sweeper.stop()

        assert sweeper.sweep_once.await_count >= 2

    @pytest.mark.asyncio
    async def test_double_start_ignored(self, cache):
        sweeper = EvictionSweeper(cache, interval_seconds=10)

        await sweeper.start()
        task = sweeper._task
        await sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, cache):
        await EvictionSweeper(cache).stop()
