"""
Session: Session Store

Machine d'états de la session, seule source de vérité pour le principal
et les credentials.

États:
    ANONYMOUS → AUTHENTICATING → AUTHENTICATED → SESSION_EXPIRED
    retour à ANONYMOUS par logout, à AUTHENTICATED par un nouveau login.

Garanties:
    - is_authenticated ⇔ access_token et user tous deux présents
    - login ne lève jamais: toute erreur devient ``error``
    - handle_session_expired idempotent, sans chemin d'échec
    - un login résolu après un logout (génération antérieure) est ignoré
    - un login échoué après une expiration laisse l'état expiré intact
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..auth.interfaces import (
    IAuthStorage,
    ICredentialTransport,
    LoginCredentials,
    LoginResponse,
    Principal,
)
from ..core.interfaces import Messages
from ..logging import StructuredLogger
from .expiry_bus import SessionExpiryBus


class SessionStatus(Enum):
    """État dérivé de la session."""

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    SESSION_EXPIRED = "session_expired"


@dataclass(frozen=True)
class SessionState:
    """
    Instantané de la session.

    Attributes:
        access_token: Token d'accès
        refresh_token: Token de rafraîchissement
        user: Principal authentifié
        is_authenticated: Token ET principal présents
        is_loading: Login en cours
        error: Message présenté sur la page de login
        session_expired: Session invalidée par le backend
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[Principal] = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: Optional[str] = None
    session_expired: bool = False

    @property
    def status(self) -> SessionStatus:
        if self.is_loading:
            return SessionStatus.AUTHENTICATING
        if self.is_authenticated:
            return SessionStatus.AUTHENTICATED
        if self.session_expired:
            return SessionStatus.SESSION_EXPIRED
        return SessionStatus.ANONYMOUS


StateListener = Callable[[SessionState], None]


class SessionStore:
    """
    Store de session injecté (pas de singleton global).

    Hydraté depuis le stockage persistant à la construction et abonné au
    bus d'expiration.

    Example:
        store = SessionStore(transport, storage, bus)
        ok = await store.login(LoginCredentials("admin@x.com", "admin123"))
        store.check_auth()
    """

    def __init__(
        self,
        transport: ICredentialTransport,
        storage: IAuthStorage,
        bus: Optional[SessionExpiryBus] = None,
        messages: Optional[Messages] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            transport: Transport des identifiants
            storage: Stockage persistant des credentials
            bus: Bus d'expiration (abonnement immédiat)
            messages: Messages localisés
            logger: Logger structuré
        """
        self._transport = transport
        self._storage = storage
        self._messages = messages or Messages()
        self._logger = logger or StructuredLogger("session.store")
        self._state = SessionState()
        self._listeners: List[StateListener] = []
        # Avancé par login et logout; une résolution de login d'une
        # génération antérieure est ignorée
        self._generation = 0

        self.check_auth()

        self._unsubscribe: Optional[Callable[[], None]] = None
        if bus is not None:
            self._unsubscribe = bus.subscribe(self.handle_session_expired)

    # ──────────────────────────────────────────────────────────────────────
    # Lecture
    # ──────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def user(self) -> Optional[Principal]:
        return self._state.user

    @property
    def access_token(self) -> Optional[str]:
        return self._state.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._state.refresh_token

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def session_expired(self) -> bool:
        return self._state.session_expired

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Abonne un observateur aux changements d'état.

        Returns:
            Fonction de désabonnement
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ──────────────────────────────────────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────────────────────────────────────

    async def login(self, credentials: LoginCredentials) -> bool:
        """
        Authentifie le principal.

        Peut être appelé déjà authentifié (ré-authentification).

        Args:
            credentials: Identifiants saisis

        Returns:
            True si authentifié, False sinon (voir ``error``)
        """
        self._generation += 1
        generation = self._generation
        self._set(is_loading=True, error=None)
        self._logger.info("Tentative de login", email=credentials.email)

        try:
            raw = await self._transport.login(credentials)
            response = self._parse_response(raw)
        except ValidationError as e:
            self._logger.error("Réponse de login invalide", error_count=e.error_count())
            return self._login_failed(generation, self._messages.login_failed)
        except Exception as e:
            return self._login_failed(generation, str(e) or self._messages.login_failed)

        if not response.success or response.data is None:
            return self._login_failed(generation, response.message or self._messages.login_failed)

        if generation != self._generation:
            self._logger.warn("Résolution de login obsolète ignorée", email=credentials.email)
            return False

        data = response.data
        try:
            self._storage.set_auth_data(data.access_token, data.refresh_token, data.user)
        except Exception as e:
            return self._login_failed(generation, str(e) or self._messages.login_failed)

        self._set(
            access_token=data.access_token,
            refresh_token=data.refresh_token,
            user=data.user,
            is_loading=False,
            error=None,
            session_expired=False,
        )
        self._bind_tenant(data.user)
        self._logger.info("Login réussi", user_id=data.user.id, role=data.user.role.value)
        return True

    async def logout(self) -> None:
        """
        Ferme la session locale.

        L'état local est effacé avant le logout transport (best-effort):
        un login démarré pendant cet appel n'est pas écrasé.
        ``session_expired`` et ``error`` sont conservés pour la page de
        login. Tout login en cours est invalidé.
        """
        self._generation += 1
        user = self._state.user

        self._clear_storage()
        self._set(access_token=None, refresh_token=None, user=None, is_loading=False)
        self._logger.info("Logout", user_id=user.id if user else None)
        self._bind_tenant(None)

        try:
            await self._transport.logout()
        except Exception as e:
            self._logger.warn("Logout transport en échec", error=str(e))

    def check_auth(self) -> bool:
        """
        Ré-hydrate depuis le stockage persistant, sans appel réseau.

        Token et principal sont installés ensemble ou pas du tout.

        Returns:
            is_authenticated après ré-hydratation
        """
        token = self._storage.get_stored_token()
        refresh_token = self._storage.get_stored_refresh_token()
        user = self._storage.get_stored_user()

        if token is None or user is None:
            token, refresh_token, user = None, None, None

        self._set(access_token=token, refresh_token=refresh_token, user=user)
        self._bind_tenant(user)
        return self._state.is_authenticated

    def set_user(self, user: Principal) -> None:
        """
        Remplace le principal en conservant les tokens.

        Sans token d'accès, l'appel est ignoré: un principal n'existe
        jamais sans token.
        """
        if self._state.access_token is None:
            self._logger.warn("set_user ignoré: aucune session", user_id=user.id)
            return

        self._storage.set_auth_data(self._state.access_token, self._state.refresh_token, user)
        self._set(user=user)
        self._bind_tenant(user)

    def handle_session_expired(self) -> None:
        """
        Réaction au signal du bus d'expiration.

        Efface credentials et principal, positionne ``session_expired`` et le
        message fixe. Idempotent; les erreurs de stockage sont absorbées.
        """
        state = self._state
        if state.session_expired and state.access_token is None and state.user is None:
            self._logger.debug("Signal d'expiration répété ignoré")
            return

        self._clear_storage()
        self._set(
            access_token=None,
            refresh_token=None,
            user=None,
            session_expired=True,
            error=self._messages.session_expired,
        )
        self._logger.warn("Session expirée", user_id=state.user.id if state.user else None)
        self._bind_tenant(None)

    def clear_error(self) -> None:
        self._set(error=None)

    def clear_session_expired(self) -> None:
        self._set(session_expired=False)

    def close(self) -> None:
        """Détache le store du bus d'expiration."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ──────────────────────────────────────────────────────────────────────
    # Interne
    # ──────────────────────────────────────────────────────────────────────

    def _parse_response(self, raw: Union[LoginResponse, Mapping[str, Any]]) -> LoginResponse:
        if isinstance(raw, LoginResponse):
            return raw
        return LoginResponse.model_validate(raw)

    def _login_failed(self, generation: int, message: str) -> bool:
        if generation != self._generation:
            self._logger.warn("Échec de login obsolète ignoré")
            return False

        self._clear_storage()
        self._set(
            access_token=None,
            refresh_token=None,
            user=None,
            is_loading=False,
            error=message,
        )
        self._logger.warn("Échec de login", reason=message)
        return False

    def _clear_storage(self) -> None:
        try:
            self._storage.clear_auth_data()
        except Exception as e:
            self._logger.error("Effacement du stockage en échec", error=str(e))

    def _bind_tenant(self, user: Optional[Principal]) -> None:
        company = user.company_id if user is not None else None
        self._logger.set_default_tenant(str(company) if company is not None else None)

    def _set(self, **changes: Any) -> None:
        state = replace(self._state, **changes)
        authenticated = state.access_token is not None and state.user is not None
        if state.is_authenticated != authenticated:
            state = replace(state, is_authenticated=authenticated)
        if state == self._state:
            return

        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self._logger.error("Erreur d'un observateur de session", error=str(e))
