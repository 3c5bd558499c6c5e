from __future__ import annotations

import asyncio

from src.app.services.mutation_guard import MutationGuard


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMutationGuard:
    def test_runs_operation_and_returns_result(self) -> None:
        guard = MutationGuard()

        async def operation() -> str:
            return "done"

        assert asyncio.run(guard.run("users:1", operation)) == "done"

    def test_repeated_key_replays_without_second_write(self) -> None:
        guard = MutationGuard()
        writes: list[int] = []

        async def operation() -> int:
            writes.append(1)
            return len(writes)

        async def scenario() -> tuple[int, int]:
            first = await guard.run("users:1", operation, "key-1")
            second = await guard.run("users:1", operation, "key-1")
            return first, second

        assert asyncio.run(scenario()) == (1, 1)
        assert len(writes) == 1

    def test_same_key_on_other_record_is_not_replayed(self) -> None:
        guard = MutationGuard()
        writes: list[str] = []

        async def write(record: str):
            async def operation() -> str:
                writes.append(record)
                return record
            return await guard.run(record, operation, "key-1")

        async def scenario() -> None:
            await write("users:1")
            await write("users:2")

        asyncio.run(scenario())
        assert writes == ["users:1", "users:2"]

    def test_replay_expires_after_ttl(self) -> None:
        clock = FakeClock()
        guard = MutationGuard(ttl_seconds=10, clock=clock)
        writes: list[int] = []

        async def operation() -> int:
            writes.append(1)
            return len(writes)

        async def scenario() -> int:
            await guard.run("roles:default", operation, "key-1")
            clock.now = 11.0
            return await guard.run("roles:default", operation, "key-1")

        assert asyncio.run(scenario()) == 2
        assert guard.pending_replays() == 1

    def test_writes_to_same_record_do_not_overlap(self) -> None:
        guard = MutationGuard()
        active = 0
        peak = 0

        async def operation() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        async def scenario() -> None:
            await asyncio.gather(*(guard.run("users:1", operation) for _ in range(5)))

        asyncio.run(scenario())
        assert peak == 1

    def test_failed_operation_is_not_cached(self) -> None:
        guard = MutationGuard()
        attempts: list[int] = []

        async def operation() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("remote down")
            return "ok"

        async def scenario() -> str:
            try:
                await guard.run("users:1", operation, "key-1")
            except RuntimeError:
                pass
            return await guard.run("users:1", operation, "key-1")

        assert asyncio.run(scenario()) == "ok"
        assert len(attempts) == 2

    def test_locks_are_dropped_when_idle(self) -> None:
        guard = MutationGuard()

        async def operation() -> None:
            await asyncio.sleep(0.01)

        async def scenario() -> int:
            pending = [guard.run(f"recipes:{index}", operation) for index in range(20)]
            pending += [guard.run("recipes:0", operation) for _ in range(3)]
            await asyncio.gather(*pending)
            return guard.active_locks()

        assert asyncio.run(scenario()) == 0

    def test_lock_kept_while_callers_wait(self) -> None:
        guard = MutationGuard()
        seen: list[int] = []

        async def operation() -> None:
            seen.append(guard.active_locks())
            await asyncio.sleep(0.01)

        async def scenario() -> None:
            await asyncio.gather(*(guard.run("users:1", operation) for _ in range(3)))

        asyncio.run(scenario())
        assert seen == [1, 1, 1]
