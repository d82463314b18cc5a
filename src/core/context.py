"""
Core: Auth Context

Assemblage explicite des composants (pas de singleton global):
une session par processus, passée par handle aux consommateurs.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from ..auth import IAuthStorage, ICredentialTransport, PermissionEngine, PermissionGate, PermissionMatrix
from ..logging import LogConfig, LogLevel, StructuredLogger
from ..routing import NavigationMenu, Navigator, RouteGuard, RouteModuleMap, RouteTable
from ..session import KeyValueAuthStorage, SessionExpiryBus, SessionStore
from .interfaces import AuthSettings


@dataclass
class AuthContext:
    """Handle regroupant les composants d'une session."""

    settings: AuthSettings
    logger: StructuredLogger
    bus: SessionExpiryBus
    storage: IAuthStorage
    store: SessionStore
    matrix: PermissionMatrix
    engine: PermissionEngine
    gate: PermissionGate
    guard: RouteGuard
    navigator: Navigator
    menu: NavigationMenu

    def close(self) -> None:
        self.store.close()


def build_auth_context(
    transport: ICredentialTransport,
    storage: Optional[IAuthStorage] = None,
    settings: Optional[AuthSettings] = None,
    bus: Optional[SessionExpiryBus] = None,
    output_handler: Optional[Callable[[str], None]] = None,
    revalidate: bool = True,
) -> AuthContext:
    """
    Construit et relie bus, store, moteur et garde.

    Le transport reçoit le publisher via ``context.bus.publisher()``.

    Args:
        transport: Transport des identifiants
        storage: Stockage persistant (dict en mémoire par défaut)
        settings: Configuration (défauts si absente)
        bus: Bus d'expiration existant (nouveau sinon)
        output_handler: Destination des lignes de log JSON
        revalidate: Le garde appelle check_auth à chaque navigation

    Raises:
        PermissionMatrixError: Surcharge de matrice invalide
        InvalidLogLevelError: Niveau de log inconnu
    """
    settings = settings or AuthSettings()
    logger = StructuredLogger(
        "auth",
        config=LogConfig(min_level=LogLevel.parse(settings.log_level)),
        output_handler=output_handler,
    )

    matrix_config = settings.matrix_config()
    matrix = PermissionMatrix.from_config(matrix_config) if matrix_config else PermissionMatrix.default()

    bus = bus or SessionExpiryBus(logger=logger.child("expiry_bus"))
    storage = storage or KeyValueAuthStorage(keys=settings.storage_keys)
    store = SessionStore(
        transport,
        storage,
        bus=bus,
        messages=settings.messages,
        logger=logger.child("store"),
    )
    engine = PermissionEngine(matrix, lambda: store.user)
    guard = RouteGuard(
        store,
        engine,
        route_map=RouteModuleMap(),
        login_path=settings.login_path,
        default_path=settings.default_path,
        public_paths=settings.public_paths,
        revalidate=revalidate,
        logger=logger.child("guard"),
    )

    return AuthContext(
        settings=settings,
        logger=logger,
        bus=bus,
        storage=storage,
        store=store,
        matrix=matrix,
        engine=engine,
        gate=PermissionGate(engine),
        guard=guard,
        navigator=Navigator(guard, RouteTable()),
        menu=NavigationMenu(),
    )
