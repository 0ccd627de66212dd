import asyncio
from types import SimpleNamespace

from ring_bridge.core.availability import TRANSITIONS, AvailabilitySupervisor
from ring_bridge.core.publisher import ChangeGatedPublisher
from ring_bridge.models import Availability, ConnectivityEvent
from tests.fakes import FakeClock


def _device(device_id, location_id="loc1"):
    return SimpleNamespace(
        location_id=location_id,
        device_id=device_id,
        availability_topic=f"ring/{location_id}/alarm/{device_id}/status",
    )


def _supervisor(clock):
    emitted = []
    publisher = ChangeGatedPublisher(lambda topic, payload: emitted.append((topic, payload)))
    return AvailabilitySupervisor(publisher, clock, settle_delay=2.0), publisher, emitted


class TestTransitions:
    def test_table_is_exhaustive(self):
        for state in Availability:
            for event in ConnectivityEvent:
                assert (state, event) in TRANSITIONS

    def test_only_connected_brings_online(self):
        online = [key for key, target in TRANSITIONS.items() if target is Availability.ONLINE]
        assert all(event is ConnectivityEvent.CONNECTED for _, event in online)


class TestAvailabilitySupervisor:
    def test_location_connected_waits_for_settle_delay(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            a, b = _device("a"), _device("b")
            supervisor.track(a)
            supervisor.track(b)

            task = asyncio.create_task(supervisor.location_connected("loc1"))
            await clock.advance(1.9)
            assert emitted == []

            await clock.advance(0.1)
            await task
            assert sorted(emitted) == [(a.availability_topic, "online"), (b.availability_topic, "online")]
            assert supervisor.state_of("loc1", "a") is Availability.ONLINE

        asyncio.run(scenario())

    def test_disconnect_during_settle_keeps_devices_offline(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            supervisor.track(_device("a"))

            task = asyncio.create_task(supervisor.location_connected("loc1"))
            await clock.advance(1)
            supervisor.location_disconnected("loc1")
            await clock.advance(5)
            await task

            assert emitted == []
            assert supervisor.state_of("loc1", "a") is Availability.OFFLINE

        asyncio.run(scenario())

    def test_disconnect_publishes_offline_once(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            device = _device("a")
            supervisor.track(device)

            task = asyncio.create_task(supervisor.location_connected("loc1"))
            await clock.advance(2)
            await task

            supervisor.location_disconnected("loc1")
            supervisor.location_disconnected("loc1")
            assert emitted == [(device.availability_topic, "online"), (device.availability_topic, "offline")]

        asyncio.run(scenario())

    def test_reconnect_brings_devices_back_online(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            device = _device("a")
            supervisor.track(device)

            for _ in range(2):
                task = asyncio.create_task(supervisor.location_connected("loc1"))
                await clock.advance(2)
                await task
                supervisor.location_disconnected("loc1")

            assert [p for _, p in emitted] == ["online", "offline", "online", "offline"]

        asyncio.run(scenario())

    def test_other_locations_unaffected(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            here, there = _device("a", "loc1"), _device("b", "loc2")
            supervisor.track(here)
            supervisor.track(there)

            task = asyncio.create_task(supervisor.location_connected("loc1"))
            await clock.advance(2)
            await task

            assert emitted == [(here.availability_topic, "online")]
            assert supervisor.state_of("loc2", "b") is Availability.OFFLINE

        asyncio.run(scenario())

    def test_device_ready_requires_connected_location(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            device = _device("a")

            task = asyncio.create_task(supervisor.device_ready(device))
            await clock.advance(2)
            await task
            assert emitted == []

            supervisor.assume_connected("loc1")
            task = asyncio.create_task(supervisor.device_ready(device))
            await clock.advance(2)
            await task
            assert emitted == [(device.availability_topic, "online")]

        asyncio.run(scenario())

    def test_online_is_reannounced_only_after_forced_republish(self):
        async def scenario():
            clock = FakeClock()
            supervisor, publisher, emitted = _supervisor(clock)
            device = _device("a")
            supervisor.assume_connected("loc1")

            for _ in range(2):
                task = asyncio.create_task(supervisor.device_ready(device))
                await clock.advance(2)
                await task
            assert len(emitted) == 1

            publisher.force_republish("a")
            task = asyncio.create_task(supervisor.device_ready(device))
            await clock.advance(2)
            await task
            assert [p for _, p in emitted] == ["online", "online"]

        asyncio.run(scenario())

    def test_shutdown_skips_devices_already_offline(self):
        async def scenario():
            clock = FakeClock()
            supervisor, _, emitted = _supervisor(clock)
            online, never = _device("a", "loc1"), _device("b", "loc2")
            supervisor.track(online)
            supervisor.track(never)

            task = asyncio.create_task(supervisor.location_connected("loc1"))
            await clock.advance(2)
            await task
            emitted.clear()

            supervisor.shutdown()
            assert emitted == [(online.availability_topic, "offline")]
            assert supervisor.state_of("loc1", "a") is Availability.OFFLINE

        asyncio.run(scenario())

    def test_mark_subscribed_reports_first_registration(self):
        supervisor, _, _ = _supervisor(FakeClock())

        assert supervisor.mark_subscribed("loc1") is True
        assert supervisor.mark_subscribed("loc1") is False
        assert supervisor.connectivity("loc1").subscribed is True
        assert supervisor.is_connected("loc1") is False
