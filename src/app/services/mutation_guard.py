from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

log = logging.getLogger("mutation_guard")

T = TypeVar("T")


@dataclass(slots=True)
class _Replay:
    result: Any
    stored_at: float


class MutationGuard:
    """
    Serialises writes per record and replays repeated idempotency keys.

    Two requests touching the same record never run their writes at the
    same time. A request that repeats an idempotency key already applied
    to that record within `ttl_seconds` gets the first result back and
    issues no write.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}
        self._replays: Dict[tuple[str, str], _Replay] = {}

    def _lock_for(self, record_key: str) -> asyncio.Lock:
        lock = self._locks.get(record_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[record_key] = lock
        return lock

    def _release(self, record_key: str) -> None:
        # Drop the lock once no caller holds or waits on it
        remaining = self._holders[record_key] - 1
        if remaining:
            self._holders[record_key] = remaining
            return
        del self._holders[record_key]
        self._locks.pop(record_key, None)

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self._ttl
        expired = [key for key, replay in self._replays.items() if replay.stored_at < cutoff]
        for key in expired:
            del self._replays[key]

    async def run(
        self,
        record_key: str,
        operation: Callable[[], Awaitable[T]],
        idempotency_key: Optional[str] = None,
    ) -> T:
        lock = self._lock_for(record_key)
        self._holders[record_key] = self._holders.get(record_key, 0) + 1
        try:
            async with lock:
                self._evict_expired()
                if idempotency_key:
                    replay = self._replays.get((record_key, idempotency_key))
                    if replay is not None:
                        log.info("Replaying mutation %s on %s", idempotency_key, record_key)
                        return replay.result

                result = await operation()

                if idempotency_key:
                    self._replays[(record_key, idempotency_key)] = _Replay(result, self._clock())
                return result
        finally:
            self._release(record_key)

    def active_locks(self) -> int:
        return len(self._locks)

    def pending_replays(self) -> int:
        self._evict_expired()
        return len(self._replays)
