"""
Routing: Route Guard

Décide, pour une cible de navigation, entre: autoriser, rediriger vers le
login (en conservant l'origine) ou rediriger vers la page par défaut.

Ordre d'évaluation:
    0. chemin public (dont la page de login) → autoriser
    1. non authentifié ou session expirée → login
    2. rôles exigés par la route, rôle absent → défaut
    3. module exigé par la route, accès refusé → défaut
    4. module déduit du chemin, accès refusé → défaut
    5. autoriser

Les surcharges explicites (rôles, module) remplacent le contrôle déduit du
chemin: une route peut resserrer ou relâcher l'accès implicite.
Un refus d'autorisation n'est jamais une exception.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlsplit

from ..auth.interfaces import Module, Role
from ..auth.permission_engine import PermissionEngine
from ..logging import StructuredLogger
from ..session.session_store import SessionStore


# Chemins historiques (espagnol) et alias anglais
DEFAULT_ROUTE_MODULES: Dict[str, Module] = {
    "/": Module.DASHBOARD,
    "/fincas": Module.FARMS,
    "/farms": Module.FARMS,
    "/lotes": Module.LOTS,
    "/lots": Module.LOTS,
    "/cosechas": Module.HARVESTS,
    "/harvests": Module.HARVESTS,
    "/certificaciones": Module.CERTIFICATIONS,
    "/certifications": Module.CERTIFICATIONS,
    "/actividades": Module.ACTIVITIES,
    "/activities": Module.ACTIVITIES,
    "/recepciones": Module.RECEPTIONS,
    "/receptions": Module.RECEPTIONS,
    "/clasificacion": Module.CLASSIFICATION,
    "/classification": Module.CLASSIFICATION,
    "/etiquetas": Module.LABELS,
    "/labels": Module.LABELS,
    "/pallets": Module.PALLETS,
    "/control-calidad": Module.QUALITY_CONTROL,
    "/quality-control": Module.QUALITY_CONTROL,
    "/envios": Module.SHIPMENTS,
    "/shipments": Module.SHIPMENTS,
    "/eventos": Module.LOGISTICS_EVENTS,
    "/logistics-events": Module.LOGISTICS_EVENTS,
    "/documentos": Module.DOCUMENTS,
    "/documents": Module.DOCUMENTS,
    "/trazabilidad": Module.TRACEABILITY,
    "/traceability": Module.TRACEABILITY,
    "/usuarios": Module.USERS,
    "/users": Module.USERS,
}


def normalize_path(path: str) -> str:
    """Retire query, fragment et slash final; garantit le slash initial."""
    path = urlsplit(path or "/").path or "/"
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def is_under_prefix(path: str, prefix: str) -> bool:
    # Préfixe contigu par segment: /lots/42 sous /lots, /lotsX non
    return path == prefix or path.startswith(prefix + "/")


class RouteModuleMap:
    """
    Correspondance chemin → module.

    Correspondance exacte d'abord, puis préfixe le plus long; la racine
    ``/`` ne sert jamais de préfixe.

    Example:
        RouteModuleMap().resolve("/lots/42")  # Module.LOTS
    """

    def __init__(self, routes: Optional[Mapping[str, Module]] = None):
        source = DEFAULT_ROUTE_MODULES if routes is None else routes
        self._exact: Dict[str, Module] = {normalize_path(p): m for p, m in source.items()}
        self._prefixes: Tuple[Tuple[str, Module], ...] = tuple(
            sorted(
                ((p, m) for p, m in self._exact.items() if p != "/"),
                key=lambda item: len(item[0]),
                reverse=True,
            )
        )

    def resolve(self, path: str) -> Optional[Module]:
        """
        Module associé au chemin, None si aucun.
        """
        path = normalize_path(path)
        module = self._exact.get(path)
        if module is not None:
            return module
        for prefix, module in self._prefixes:
            if is_under_prefix(path, prefix):
                return module
        return None


@dataclass(frozen=True)
class RouteRequirement:
    """
    Exigences explicites d'une route.

    Attributes:
        required_roles: Rôles admis (None = pas de contrainte)
        required_module: Module exigé (None = pas de contrainte)
    """

    required_roles: Optional[FrozenSet[Role]] = None
    required_module: Optional[Module] = None

    @classmethod
    def roles(cls, *roles: Role) -> "RouteRequirement":
        return cls(required_roles=frozenset(roles))

    @classmethod
    def module(cls, module: Module) -> "RouteRequirement":
        return cls(required_module=module)


class GuardOutcome(Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect-to-login"
    REDIRECT_DEFAULT = "redirect-to-default"


@dataclass(frozen=True)
class GuardDecision:
    """
    Décision du garde, seule entrée nécessaire à la couche de routage.

    Attributes:
        outcome: Autoriser ou rediriger
        path: Chemin évalué (normalisé)
        redirect_to: Cible de redirection (None si autorisé)
        from_path: Origine à restaurer après login
        session_expired: Bannière "session expirée" sur la page de login
        reason: Règle ayant produit la décision
    """

    outcome: GuardOutcome
    path: str
    redirect_to: Optional[str] = None
    from_path: Optional[str] = None
    session_expired: bool = False
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.ALLOW

    @property
    def location(self) -> Optional[str]:
        """URL de redirection, query incluse pour le login."""
        if self.redirect_to is None:
            return None
        if self.outcome is not GuardOutcome.REDIRECT_LOGIN:
            return self.redirect_to
        params = {}
        if self.from_path:
            params["from"] = self.from_path
        if self.session_expired:
            params["sessionExpired"] = "true"
        if not params:
            return self.redirect_to
        return f"{self.redirect_to}?{urlencode(params)}"


class RouteGuard:
    """
    Garde de navigation.

    Example:
        guard = RouteGuard(store, engine)
        decision = guard.evaluate("/lots/42")
        if not decision.allowed:
            redirect(decision.location)
    """

    def __init__(
        self,
        store: SessionStore,
        engine: PermissionEngine,
        route_map: Optional[RouteModuleMap] = None,
        login_path: str = "/login",
        default_path: str = "/",
        public_paths: Iterable[str] = (),
        revalidate: bool = False,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            store: SessionStore courant
            engine: PermissionEngine lié au même store
            route_map: Correspondance chemin → module
            login_path: Cible pour les visiteurs non authentifiés
            default_path: Cible pour les refus d'autorisation
            public_paths: Préfixes accessibles sans session
            revalidate: Appeler ``store.check_auth()`` à chaque évaluation
            logger: Logger structuré
        """
        self._store = store
        self._engine = engine
        self._route_map = route_map or RouteModuleMap()
        self._login_path = normalize_path(login_path)
        self._default_path = normalize_path(default_path)
        self._public_paths = tuple(normalize_path(p) for p in public_paths)
        self._revalidate = revalidate
        self._logger = logger or StructuredLogger("routing.guard")

    @property
    def route_map(self) -> RouteModuleMap:
        return self._route_map

    def is_public(self, path: str) -> bool:
        """La page de login est toujours publique."""
        path = normalize_path(path)
        if path == self._login_path:
            return True
        return any(is_under_prefix(path, prefix) for prefix in self._public_paths)

    def evaluate(self, path: str, requirement: Optional[RouteRequirement] = None) -> GuardDecision:
        """
        Évalue une navigation.

        Args:
            path: Chemin cible (query/fragment ignorés pour la résolution)
            requirement: Exigences explicites de la route

        Returns:
            GuardDecision
        """
        target = normalize_path(path)

        if self.is_public(target):
            return GuardDecision(GuardOutcome.ALLOW, target, reason="public")

        if self._revalidate:
            self._store.check_auth()

        state = self._store.state
        if not state.is_authenticated or state.session_expired:
            return GuardDecision(
                GuardOutcome.REDIRECT_LOGIN,
                target,
                redirect_to=self._login_path,
                from_path=path or target,
                session_expired=state.session_expired,
                reason="unauthenticated",
            )

        requirement = requirement or RouteRequirement()

        if requirement.required_roles is not None:
            if not self._engine.has_role(*requirement.required_roles):
                return self._deny(target, "role")

        if requirement.required_module is not None:
            if not self._engine.can_access(requirement.required_module):
                return self._deny(target, "module", module=requirement.required_module)

        if requirement.required_roles is not None or requirement.required_module is not None:
            return GuardDecision(GuardOutcome.ALLOW, target, reason="explicit")

        module = self._route_map.resolve(target)
        if module is not None and not self._engine.can_access(module):
            return self._deny(target, "path_module", module=module)

        return GuardDecision(GuardOutcome.ALLOW, target, reason="allowed")

    def _deny(self, target: str, reason: str, module: Optional[Module] = None) -> GuardDecision:
        role = self._engine.current_role
        self._logger.info(
            "Navigation refusée",
            path=target,
            rule=reason,
            module=module.value if module else None,
            role=role.value if role else None,
        )
        return GuardDecision(
            GuardOutcome.REDIRECT_DEFAULT,
            target,
            redirect_to=self._default_path,
            reason=reason,
        )
