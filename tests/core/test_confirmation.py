import asyncio
from types import SimpleNamespace

from ring_bridge.core.confirmation import CommandConfirmer
from ring_bridge.models import CommandResult
from tests.fakes import FakeClock


class _Target:
    def __init__(self, follow_after=1):
        self.mode = "none"
        self.mutations = 0
        self.checks = 0
        self.resolves = 0
        self.follow_after = follow_after

    async def resolve(self):
        self.resolves += 1
        return self

    async def arm(self, device):
        device.mutations += 1
        if self.follow_after is not None and device.mutations >= self.follow_after:
            device.mode = "all"

    def matches(self, device):
        self.checks += 1
        return device.mode == "all"


async def _run(clock, coro, budget=1000):
    task = asyncio.create_task(coro)
    await clock.advance(budget)
    return await task


class TestCommandConfirmer:
    def test_success_on_first_check(self):
        async def scenario():
            clock = FakeClock()
            target = _Target()
            confirmer = CommandConfirmer(clock)

            result = await _run(clock, confirmer.apply_and_confirm(
                target.resolve, "ARM_AWAY", {"ARM_AWAY": target.arm}, target.matches,
            ))

            assert result is CommandResult.SUCCESS
            assert target.mutations == 1
            assert target.checks == 1
            assert clock.sleeps == [1.0]

        asyncio.run(scenario())

    def test_failure_after_max_retries(self):
        async def scenario():
            clock = FakeClock(start=0)
            target = _Target(follow_after=None)
            confirmer = CommandConfirmer(clock, max_retries=12, retry_delay=10.0, settle_delay=1.0)

            task = asyncio.create_task(confirmer.apply_and_confirm(
                target.resolve, "ARM_AWAY", {"ARM_AWAY": target.arm}, target.matches,
            ))
            while not task.done():
                await clock.advance(0.5)
            finished_at = clock.now()

            assert task.result() is CommandResult.FAILURE
            assert target.mutations == 12
            assert target.checks == 12
            # 12 settle waits and 11 retry waits
            assert sum(clock.sleeps) == 12 * 1.0 + 11 * 10.0
            assert finished_at == 122.0

        asyncio.run(scenario())

    def test_success_on_later_attempt(self):
        async def scenario():
            clock = FakeClock()
            target = _Target(follow_after=3)
            confirmer = CommandConfirmer(clock)

            result = await _run(clock, confirmer.apply_and_confirm(
                target.resolve, "ARM_AWAY", {"ARM_AWAY": target.arm}, target.matches,
            ))

            assert result is CommandResult.SUCCESS
            assert target.mutations == 3

        asyncio.run(scenario())

    def test_unknown_action_does_not_mutate(self):
        async def scenario():
            clock = FakeClock()
            target = _Target()
            confirmer = CommandConfirmer(clock)

            result = await confirmer.apply_and_confirm(
                target.resolve, "SELF_DESTRUCT", {"ARM_AWAY": target.arm}, target.matches,
            )

            assert result is CommandResult.UNKNOWN
            assert target.mutations == 0
            assert target.resolves == 0
            assert clock.sleeps == []

        asyncio.run(scenario())

    def test_device_is_resolved_again_for_each_check(self):
        async def scenario():
            clock = FakeClock()
            handles = [SimpleNamespace(mode="none"), SimpleNamespace(mode="all")]
            mutated = []

            async def resolve():
                return handles[min(len(mutated), 1)]

            async def arm(device):
                mutated.append(device)

            confirmer = CommandConfirmer(clock)
            result = await _run(clock, confirmer.apply_and_confirm(
                resolve, "ARM_AWAY", {"ARM_AWAY": arm}, lambda d: d.mode == "all",
            ))

            assert result is CommandResult.SUCCESS
            assert mutated == [handles[0]]

        asyncio.run(scenario())

    def test_mutation_error_counts_as_failed_attempt(self):
        async def scenario():
            clock = FakeClock()
            attempts = []

            async def resolve():
                return SimpleNamespace(mode="all" if len(attempts) > 1 else "none")

            async def arm(device):
                attempts.append(1)
                if len(attempts) == 1:
                    raise RuntimeError("transport error")

            confirmer = CommandConfirmer(clock, max_retries=3)
            result = await _run(clock, confirmer.apply_and_confirm(
                resolve, "ARM_AWAY", {"ARM_AWAY": arm}, lambda d: d.mode == "all",
            ))

            assert result is CommandResult.SUCCESS
            assert len(attempts) == 2

        asyncio.run(scenario())

    def test_missing_device_fails(self):
        async def scenario():
            clock = FakeClock()

            async def resolve():
                return None

            async def arm(device):
                raise AssertionError("must not mutate a missing device")

            confirmer = CommandConfirmer(clock, max_retries=2)
            result = await _run(clock, confirmer.apply_and_confirm(
                resolve, "ARM_AWAY", {"ARM_AWAY": arm}, lambda d: True,
            ))

            assert result is CommandResult.FAILURE

        asyncio.run(scenario())
