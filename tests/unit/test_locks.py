"""Per-key lock serialization."""

import asyncio

import pytest

from gobs.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold(1):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def first() -> None:
        async with locks.hold(1):
            inside.set()
            await release.wait()

    task = asyncio.create_task(first())
    await inside.wait()
    async with locks.hold(2):
        assert locks.locked(1)
        assert locks.locked(2)
    release.set()
    await task


@pytest.mark.asyncio
async def test_locks_are_dropped_after_release():
    locks = KeyedLock()
    async with locks.hold("user:1"):
        assert len(locks) == 1
        assert locks.locked("user:1")
    assert len(locks) == 0
    assert not locks.locked("user:1")


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold(7):
            raise RuntimeError("boom")
    assert len(locks) == 0
