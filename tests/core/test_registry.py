import threading
import time

from ring_bridge.core.registry import DeviceRegistry


class TestDeviceRegistry:
    def test_factory_runs_once_per_identity(self):
        registry = DeviceRegistry()
        calls = []

        def factory():
            calls.append(1)
            return object()

        first, created = registry.lookup_or_create("loc1", "dev1", factory)
        second, created_again = registry.lookup_or_create("loc1", "dev1", factory)

        assert created is True
        assert created_again is False
        assert first is second
        assert len(calls) == 1

    def test_same_device_id_at_other_location_is_distinct(self):
        registry = DeviceRegistry()

        a, _ = registry.lookup_or_create("loc1", "dev1", object)
        b, _ = registry.lookup_or_create("loc2", "dev1", object)

        assert a is not b
        assert registry.at_location("loc1") == [a]
        assert len(registry) == 2

    def test_declined_factory_registers_nothing(self):
        registry = DeviceRegistry()

        handle, created = registry.lookup_or_create("loc1", "dev1", lambda: None)

        assert handle is None
        assert created is False
        assert registry.find("loc1", "dev1") is None
        assert len(registry) == 0

    def test_concurrent_registration_builds_one_handle(self):
        registry = DeviceRegistry()
        calls = []
        barrier = threading.Barrier(8)
        results = []

        def factory():
            calls.append(1)
            time.sleep(0.01)
            return object()

        def worker():
            barrier.wait()
            results.append(registry.lookup_or_create("loc1", "dev1", factory)[0])

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len({id(r) for r in results}) == 1

    def test_subscribe_once(self):
        registry = DeviceRegistry()
        subscribed = []

        def subscribe():
            subscribed.append(1)
            return lambda: None

        assert registry.subscribe_once("loc1", "dev1", "data", subscribe) is True
        assert registry.subscribe_once("loc1", "dev1", "data", subscribe) is False
        assert registry.subscribe_once("loc1", "dev1", "dings", subscribe) is True
        assert len(subscribed) == 2
        assert registry.has_subscription("loc1", "dev1", "data")

    def test_release_subscriptions_continues_after_error(self):
        registry = DeviceRegistry()
        released = []

        def failing():
            raise RuntimeError("boom")

        registry.subscribe_once("loc1", "dev1", "data", lambda: failing)
        registry.subscribe_once("loc1", "dev2", "data", lambda: lambda: released.append("dev2"))
        registry.release_subscriptions()

        assert released == ["dev2"]
        assert not registry.has_subscription("loc1", "dev2", "data")
