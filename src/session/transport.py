"""
Session: Transport

Règles côté transport: classification des refus qui invalident la session
et extraction des messages d'erreur présentés à l'utilisateur.

Le client réseau lui-même reste un collaborateur externe; ``SessionAwareTransport``
enveloppe ses appels pour publier le signal d'expiration.
"""

from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..logging import StructuredLogger
from .expiry_bus import SessionExpiryPublisher


T = TypeVar("T")

DEFAULT_ERROR_MESSAGE = "Ha ocurrido un error inesperado"
NETWORK_ERROR_MESSAGE = "Error de conexión. Verifique su conexión a internet."
TIMEOUT_ERROR_MESSAGE = "La solicitud tardó demasiado. Intente nuevamente."

_SESSION_HINTS = ("token", "session", "expired")


class TransportError(Exception):
    """
    Échec d'un appel transport.

    Attributes:
        status: Code HTTP si une réponse a été reçue
        code: Code d'erreur réseau (ex: "ERR_NETWORK")
    """

    def __init__(self, message: str = "", status: Optional[int] = None, code: Optional[str] = None):
        self.status = status
        self.code = code
        super().__init__(message)


def is_session_invalidation(status: Optional[int], message: Optional[str] = None) -> bool:
    """
    Indique si un refus backend invalide la session.

    Args:
        status: Code HTTP
        message: Message renvoyé par le backend

    Returns:
        True pour 401; pour 403 seulement si le message évoque
        token/session/expiration (un 403 ordinaire est un refus de permission)
    """
    if status == 401:
        return True
    if status == 403 and message:
        lowered = message.lower()
        return any(hint in lowered for hint in _SESSION_HINTS)
    return False


def extract_error_message(error: Any) -> str:
    """
    Message lisible pour une erreur transport.

    Ordre: message backend, texte de statut, code réseau connu,
    texte de l'exception, message générique.
    """
    response_message = getattr(error, "response_message", None)
    if response_message:
        return response_message

    status_text = getattr(error, "status_text", None)
    if status_text:
        return f"Error: {status_text}"

    code = getattr(error, "code", None)
    if code == "ERR_NETWORK":
        return NETWORK_ERROR_MESSAGE
    if code == "ECONNABORTED":
        return TIMEOUT_ERROR_MESSAGE

    if isinstance(error, BaseException) and str(error):
        return str(error)

    return DEFAULT_ERROR_MESSAGE


class SessionAwareTransport:
    """
    Enveloppe les appels réseau et publie le signal d'expiration.

    Les appels d'authentification (login) sont exclus: leur 401 est un
    échec d'identifiants, pas une session invalidée.

    Example:
        transport = SessionAwareTransport(bus.publisher())
        data = await transport.call(client.get_lots)
    """

    def __init__(
        self,
        publisher: SessionExpiryPublisher,
        logger: Optional[StructuredLogger] = None,
    ):
        self._publisher = publisher
        self._logger = logger or StructuredLogger("session.transport")

    async def call(self, request: Callable[[], Awaitable[T]], auth_endpoint: bool = False) -> T:
        """
        Exécute ``request``.

        Raises:
            TransportError: Échec, avec message extrait
        """
        try:
            return await request()
        except TransportError as e:
            self._inspect(e.status, str(e), auth_endpoint)
            raise
        except Exception as e:
            status = getattr(e, "status", None)
            message = extract_error_message(e)
            self._inspect(status, message, auth_endpoint)
            raise TransportError(message, status=status, code=getattr(e, "code", None)) from e

    def _inspect(self, status: Optional[int], message: Optional[str], auth_endpoint: bool) -> None:
        if auth_endpoint or not is_session_invalidation(status, message):
            return
        self._logger.warn("Session invalidée par le backend", status=status)
        self._publisher.publish()
