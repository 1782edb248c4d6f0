"""Unit tests for per-key asyncio locks."""

import asyncio

import pytest

from moviebonus.etl.utils import KeyedLock


@pytest.mark.unit
class TestKeyedLock:
    @staticmethod
    async def test_same_key_is_serialized() -> None:
        locks = KeyedLock()
        events: list[str] = []

        async def work(name: str) -> None:
            async with locks.hold("100"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(work("a"), work("b"))

        assert events == ["a:start", "a:end", "b:start", "b:end"]

    @staticmethod
    async def test_different_keys_run_concurrently() -> None:
        locks = KeyedLock()
        inside = asyncio.Event()

        async def first() -> None:
            async with locks.hold("1"):
                await asyncio.wait_for(inside.wait(), timeout=1)

        async def second() -> None:
            async with locks.hold("2"):
                inside.set()

        await asyncio.gather(first(), second())

    @staticmethod
    async def test_hold_many_and_is_locked() -> None:
        locks = KeyedLock()

        async with locks.hold_many(["2", "1", "2"]):
            assert locks.is_locked("1")
            assert locks.is_locked("2")
            assert not locks.is_locked("3")

        assert not locks.is_locked("1")
