"""
Tests unitaires SessionExpiryBus
"""

import pytest

from src.logging import StructuredLogger
from src.session.expiry_bus import SessionExpiryBus, SessionExpiryBusError, SessionExpiryPublisher


@pytest.fixture
def bus_logger():
    return StructuredLogger("test.expiry_bus")


@pytest.fixture
def expiry_bus(bus_logger):
    return SessionExpiryBus(logger=bus_logger)


class TestSubscribe:
    """Tests abonnement."""

    def test_single_listener(self, expiry_bus):
        """Un second abonnement est refusé."""
        expiry_bus.subscribe(lambda: None)

        with pytest.raises(SessionExpiryBusError):
            expiry_bus.subscribe(lambda: None)

    def test_unsubscribe_frees_slot(self, expiry_bus):
        """Après désabonnement, un nouveau listener est accepté."""
        unsubscribe = expiry_bus.subscribe(lambda: None)
        unsubscribe()

        expiry_bus.subscribe(lambda: None)
        assert expiry_bus.has_listener is True

    def test_stale_unsubscribe_is_noop(self, expiry_bus):
        """Un ancien handle ne détache pas le listener suivant."""
        unsubscribe = expiry_bus.subscribe(lambda: None)
        unsubscribe()
        expiry_bus.subscribe(lambda: None)

        unsubscribe()

        assert expiry_bus.has_listener is True


class TestPublish:
    """Tests publication."""

    def test_every_publish_delivered(self, expiry_bus):
        """Pas de fusion: trois publications → trois livraisons."""
        calls = []
        expiry_bus.subscribe(lambda: calls.append(1))

        for _ in range(3):
            assert expiry_bus.publish() is True

        assert len(calls) == 3
        assert expiry_bus.published_count == 3
        assert expiry_bus.delivered_count == 3

    def test_publish_without_listener(self, expiry_bus, bus_logger):
        """Sans listener: signal perdu, warning loggé."""
        assert expiry_bus.publish() is False
        assert expiry_bus.published_count == 1
        assert expiry_bus.delivered_count == 0
        assert bus_logger.find("Signal d'expiration sans listener")

    def test_listener_error_not_propagated(self, expiry_bus, bus_logger):
        """Une erreur du listener n'atteint pas le publisher."""

        def broken():
            raise RuntimeError("boom")

        expiry_bus.subscribe(broken)

        assert expiry_bus.publish() is False
        entry = bus_logger.find("Erreur du listener d'expiration")[0]
        assert entry.extra["error_type"] == "RuntimeError"

    def test_publisher_handle(self, expiry_bus):
        """Le handle remis au transport publie sur le bus."""
        calls = []
        expiry_bus.subscribe(lambda: calls.append(1))
        publisher = expiry_bus.publisher()

        assert isinstance(publisher, SessionExpiryPublisher)
        assert publisher.publish() is True
        assert publisher() is True
        assert len(calls) == 2
