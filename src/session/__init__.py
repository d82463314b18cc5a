"""
Session: Lifecycle

Machine d'états de session, bus d'expiration, stockage persistant des
credentials et règles côté transport.
"""

from .expiry_bus import SessionExpiryBus, SessionExpiryPublisher, SessionExpiryBusError
from .session_store import SessionStore, SessionState, SessionStatus
from .storage import KeyValueAuthStorage, JsonFileStore, StorageError
from .transport import (
    SessionAwareTransport,
    TransportError,
    extract_error_message,
    is_session_invalidation,
)

__all__ = [
    # Data classes
    "SessionState",
    "SessionStatus",
    # Implementations
    "SessionExpiryBus",
    "SessionExpiryPublisher",
    "SessionStore",
    "KeyValueAuthStorage",
    "JsonFileStore",
    "SessionAwareTransport",
    # Helpers
    "extract_error_message",
    "is_session_invalidation",
    # Exceptions
    "SessionExpiryBusError",
    "StorageError",
    "TransportError",
]
