import pytest

from ring_bridge.core.publisher import ChangeGatedPublisher


def _publisher(is_open=None):
    emitted = []
    publisher = ChangeGatedPublisher(lambda topic, payload: emitted.append((topic, payload)), is_open=is_open)
    return publisher, emitted


class TestChangeGatedPublisher:
    def test_identical_value_published_once(self):
        publisher, emitted = _publisher()

        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is True
        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is False
        assert emitted == [("ring/t", "ON")]

    def test_changed_value_is_published(self):
        publisher, emitted = _publisher()

        publisher.publish_if_changed("dev1", "state", "ring/t", "ON")
        publisher.publish_if_changed("dev1", "state", "ring/t", "OFF")
        assert emitted == [("ring/t", "ON"), ("ring/t", "OFF")]

    def test_attributes_are_cached_separately(self):
        publisher, emitted = _publisher()

        publisher.publish_if_changed("dev1", "state", "ring/a", "ON")
        publisher.publish_if_changed("dev1", "attributes", "ring/b", "ON")
        publisher.publish_if_changed("dev2", "state", "ring/c", "ON")
        assert len(emitted) == 3

    def test_force_republish_emits_again(self):
        publisher, emitted = _publisher()

        publisher.publish_if_changed("dev1", "state", "ring/t", "ON")
        publisher.force_republish("dev1", "state")
        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is True
        assert len(emitted) == 2

    def test_force_republish_whole_device(self):
        publisher, emitted = _publisher()

        publisher.publish_if_changed("dev1", "state", "ring/a", "ON")
        publisher.publish_if_changed("dev1", "attributes", "ring/b", "{}")
        publisher.publish_if_changed("dev2", "state", "ring/c", "ON")
        publisher.force_republish("dev1")

        assert publisher.last_published("dev1", "state") is None
        assert publisher.last_published("dev2", "state") == "ON"
        assert publisher.publish_if_changed("dev2", "state", "ring/c", "ON") is False

    def test_non_string_values_are_stringified(self):
        publisher, emitted = _publisher()

        publisher.publish_if_changed("dev1", "brightness", "ring/t", 42)
        assert emitted == [("ring/t", "42")]
        assert publisher.publish_if_changed("dev1", "brightness", "ring/t", 42) is False

    def test_nothing_cached_while_closed(self):
        is_open = [False]
        publisher, emitted = _publisher(is_open=lambda: is_open[0])

        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is False
        assert publisher.last_published("dev1", "state") is None

        is_open[0] = True
        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is True
        assert emitted == [("ring/t", "ON")]

    def test_failed_emit_is_not_cached(self):
        emitted = []

        def emit(topic, payload):
            if not emitted:
                emitted.append(None)
                raise ConnectionError("socket closed")
            emitted.append((topic, payload))

        publisher = ChangeGatedPublisher(emit)

        with pytest.raises(ConnectionError):
            publisher.publish_if_changed("dev1", "state", "ring/t", "ON")
        assert publisher.last_published("dev1", "state") is None

        assert publisher.publish_if_changed("dev1", "state", "ring/t", "ON") is True
        assert emitted[-1] == ("ring/t", "ON")
