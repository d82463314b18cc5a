"""
Session: Expiry Bus

Canal de signal "session invalidée" entre la couche transport (qui détecte
l'invalidation) et le SessionStore (qui doit réagir).

Garanties:
    - Un seul listener abonné à la fois
    - Livraison synchrone, chaque publication livrée (pas de fusion)
    - Aucune charge utile
    - Une erreur du listener n'atteint jamais le publisher
"""

from typing import Callable, Optional

from ..logging import StructuredLogger


SessionExpiredListener = Callable[[], None]


class SessionExpiryBusError(Exception):
    """Erreur d'abonnement au bus."""

    pass


class SessionExpiryPublisher:
    """Handle de publication remis au transport."""

    def __init__(self, bus: "SessionExpiryBus"):
        self._bus = bus

    def publish(self) -> bool:
        """Signale l'invalidation de la session courante."""
        return self._bus.publish()

    __call__ = publish


class SessionExpiryBus:
    """
    Bus d'expiration de session, many-to-one.

    Example:
        bus = SessionExpiryBus()
        unsubscribe = bus.subscribe(store.handle_session_expired)
        transport = HttpTransport(publisher=bus.publisher())
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._listener: Optional[SessionExpiredListener] = None
        self._logger = logger or StructuredLogger("session.expiry_bus")
        self.published_count = 0
        self.delivered_count = 0

    @property
    def has_listener(self) -> bool:
        return self._listener is not None

    def subscribe(self, listener: SessionExpiredListener) -> Callable[[], None]:
        """
        Abonne l'unique listener.

        Args:
            listener: Réaction au signal (SessionStore.handle_session_expired)

        Returns:
            Fonction de désabonnement (idempotente)

        Raises:
            SessionExpiryBusError: Un listener est déjà abonné
        """
        if self._listener is not None:
            raise SessionExpiryBusError("Un listener est déjà abonné au bus d'expiration")

        self._listener = listener

        def unsubscribe() -> None:
            if self._listener is listener:
                self._listener = None

        return unsubscribe

    def publisher(self) -> SessionExpiryPublisher:
        return SessionExpiryPublisher(self)

    def publish(self) -> bool:
        """
        Livre le signal au listener.

        Returns:
            True si un listener a reçu le signal
        """
        self.published_count += 1
        listener = self._listener
        if listener is None:
            self._logger.warn("Signal d'expiration sans listener", published=self.published_count)
            return False

        try:
            listener()
        except Exception as e:
            self._logger.error(
                "Erreur du listener d'expiration",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self.delivered_count += 1
        return True
