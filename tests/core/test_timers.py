import asyncio

from ring_bridge.core.timers import DeadlineTimer
from tests.fakes import FakeClock


class TestDeadlineTimer:
    def test_extend_only_moves_later(self):
        timer = DeadlineTimer(FakeClock(start=0), deadline=100)

        assert timer.extend(150) is True
        assert timer.extend(120) is False
        assert timer.deadline == 150

    def test_wait_follows_extended_deadline(self):
        async def scenario():
            clock = FakeClock(start=0)
            timer = DeadlineTimer(clock, deadline=100)
            waiter = asyncio.create_task(timer.wait())

            await clock.advance(50)
            timer.extend(200)
            await clock.advance(50)
            assert not waiter.done()

            await clock.advance(100)
            assert waiter.done()
            assert timer.expired()

        asyncio.run(scenario())

    def test_past_deadline_returns_immediately(self):
        async def scenario():
            clock = FakeClock(start=500)
            await DeadlineTimer(clock, deadline=100).wait()
            assert clock.sleeps == []

        asyncio.run(scenario())
