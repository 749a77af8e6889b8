"""Shared fakes for store tests.

`FlakyBackend` wraps a real backend and misbehaves on demand so write
verification paths can be exercised without timing tricks. `FakeClock` and
`no_sleep` keep TTL and retry tests instantaneous.
"""
import asyncio
from typing import Any, List, Optional

from rentals_lib.storage.memory_backend import MemoryStorage


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


async def no_sleep(_seconds: float) -> None:
    return None


class FlakyBackend(MemoryStorage):
    """Memory backend whose writes can be dropped or fail.

    - drop_writes: number of upcoming `set` calls for `drop_key` that are
      silently discarded (the write "succeeds" but never lands).
    - fail_writes: number of upcoming `set` calls that raise OSError.
    - fail_reads: number of upcoming `get` calls that raise OSError.
    """

    def __init__(self, drop_key: Optional[str] = None, drop_writes: int = 0, fail_writes: int = 0, fail_reads: int = 0):
        super().__init__()
        self.drop_key = drop_key
        self.drop_writes = drop_writes
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads
        self.set_calls = 0

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise OSError("simulated write failure")
        if self.drop_writes > 0 and (self.drop_key is None or key == self.drop_key):
            self.drop_writes -= 1
            return
        await super().set(key, value)

    async def get(self, key: str) -> Optional[str]:
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise OSError("simulated read failure")
        return await super().get(key)


class SlowReadBackend(MemoryStorage):
    """Memory backend whose next `get` returns a snapshot after a delay.

    Call `arm()` to make the following read take its value immediately and
    then yield for `delay` seconds, leaving room for a write to land first.
    """

    def __init__(self, delay: float = 0.05):
        super().__init__()
        self.delay = delay
        self.armed = False

    def arm(self) -> None:
        self.armed = True

    async def get(self, key: str) -> Optional[str]:
        value = await super().get(key)
        if self.armed:
            self.armed = False
            await asyncio.sleep(self.delay)
        return value


def raw(backend: MemoryStorage, key: str) -> Any:
    """Peek at the stored text for `key` without going through the async API."""
    return backend._store.get(key)
