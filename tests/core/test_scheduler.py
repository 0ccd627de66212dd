import asyncio

from ring_bridge.core.scheduler import RepublishScheduler
from tests.fakes import FakeClock


class _Passes:
    """Publish pass that takes one second and records overlap."""

    def __init__(self, clock):
        self.clock = clock
        self.started_at = []
        self.active = 0
        self.max_active = 0

    async def __call__(self):
        self.started_at.append(self.clock.now())
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.clock.sleep(1)
        finally:
            self.active -= 1


class TestRepublishScheduler:
    def test_episode_runs_bounded_number_of_passes(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=10, interval=30)

            scheduler.start_episode()
            await clock.advance(1000)

            assert scheduler.passes_run == 10
            assert scheduler.cycle.remaining_cycles == 0
            assert not scheduler.running
            assert passes.started_at[:3] == [0, 31, 62]

        asyncio.run(scenario())

    def test_episode_stops_when_bus_disconnects(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            connected = [True]
            scheduler = RepublishScheduler(passes, lambda: connected[0], clock, cycles=10, interval=30)

            scheduler.start_episode()
            await clock.advance(40)
            connected[0] = False
            await clock.advance(1000)

            assert scheduler.passes_run == 2
            assert not scheduler.running

        asyncio.run(scenario())

    def test_start_while_running_only_resets_counter(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=3, interval=30)

            scheduler.start_episode()
            await clock.advance(40)
            scheduler.start_episode()
            await clock.advance(1000)

            assert passes.max_active == 1
            # Two passes before the reset, then a fresh count of three.
            assert scheduler.passes_run == 5

        asyncio.run(scenario())

    def test_restart_replaces_episode_without_overlap(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=10, interval=30)

            scheduler.start_episode()
            await clock.advance(40)
            assert scheduler.passes_run == 2

            restart = asyncio.create_task(scheduler.restart_detected())
            await clock.advance(1)
            assert scheduler.cycle.remaining_cycles == 0

            await clock.advance(2000)
            await restart

            assert passes.max_active == 1
            assert scheduler.passes_run == 12
            # Fresh episode begins after interval + 5 seconds.
            assert passes.started_at[2] == 75

        asyncio.run(scenario())

    def test_reconnect_during_restart_pause_does_not_stack_episodes(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=10, interval=30)

            scheduler.start_episode()
            await clock.advance(5)
            restart = asyncio.create_task(scheduler.restart_detected())
            await clock.advance(10)
            # Bus reconnect while the restart pause is still running.
            scheduler.start_episode()
            await clock.advance(2000)
            await restart

            assert passes.max_active == 1
            assert scheduler.passes_run == 11
            assert passes.started_at[1] == 40
            assert not scheduler.running

        asyncio.run(scenario())

    def test_second_restart_supersedes_first(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=3, interval=30)

            first = asyncio.create_task(scheduler.restart_detected())
            await clock.advance(10)
            second = asyncio.create_task(scheduler.restart_detected())
            await clock.advance(2000)
            await asyncio.gather(first, second)

            assert scheduler.passes_run == 3
            assert passes.started_at[0] == 45

        asyncio.run(scenario())

    def test_pass_errors_do_not_end_episode(self):
        async def scenario():
            clock = FakeClock(start=0)
            calls = []

            async def flaky():
                calls.append(clock.now())
                if len(calls) == 1:
                    raise RuntimeError("location listing failed")

            scheduler = RepublishScheduler(flaky, lambda: True, clock, cycles=3, interval=30)
            scheduler.start_episode()
            await clock.advance(1000)

            assert len(calls) == 3
            assert scheduler.passes_run == 2

        asyncio.run(scenario())

    def test_stop_cancels_episode(self):
        async def scenario():
            clock = FakeClock(start=0)
            passes = _Passes(clock)
            scheduler = RepublishScheduler(passes, lambda: True, clock, cycles=10, interval=30)

            scheduler.start_episode()
            await clock.advance(40)
            await scheduler.stop()
            await clock.advance(1000)

            assert scheduler.passes_run == 2
            assert not scheduler.running

        asyncio.run(scenario())
