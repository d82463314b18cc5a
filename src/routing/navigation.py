"""
Routing: Navigation

Table des exigences par route et menu de navigation filtré par
permissions.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..auth.interfaces import IPermissionEngine, Module, Role
from .route_guard import GuardDecision, RouteGuard, RouteRequirement, is_under_prefix, normalize_path


_ADMIN_ONLY = RouteRequirement.roles(Role.ADMIN_SISTEMA, Role.ADMIN_EMPRESA)

DEFAULT_ROUTE_REQUIREMENTS: Dict[str, RouteRequirement] = {
    "/usuarios": _ADMIN_ONLY,
    "/users": _ADMIN_ONLY,
}


class RouteTable:
    """
    Exigences explicites déclarées par route (préfixe par segment).

    Example:
        table = RouteTable()
        table.requirement_for("/usuarios/3")  # admins uniquement
    """

    def __init__(self, requirements: Optional[Mapping[str, RouteRequirement]] = None):
        source = DEFAULT_ROUTE_REQUIREMENTS if requirements is None else requirements
        self._entries: Tuple[Tuple[str, RouteRequirement], ...] = tuple(
            sorted(
                ((normalize_path(p), r) for p, r in source.items()),
                key=lambda item: len(item[0]),
                reverse=True,
            )
        )

    def requirement_for(self, path: str) -> Optional[RouteRequirement]:
        path = normalize_path(path)
        for prefix, requirement in self._entries:
            if prefix == "/" and path != "/":
                continue
            if is_under_prefix(path, prefix):
                return requirement
        return None


class Navigator:
    """Associe le garde à la table des routes."""

    def __init__(self, guard: RouteGuard, table: Optional[RouteTable] = None):
        self._guard = guard
        self._table = table or RouteTable()

    def navigate(self, path: str) -> GuardDecision:
        """Évalue ``path`` avec l'exigence déclarée dans la table."""
        return self._guard.evaluate(path, self._table.requirement_for(path))


@dataclass(frozen=True)
class NavItem:
    title: str
    href: str
    module: Module


@dataclass(frozen=True)
class NavGroup:
    title: str
    items: Tuple[NavItem, ...]


DEFAULT_NAV_GROUPS: Tuple[NavGroup, ...] = (
    NavGroup("Principal", (NavItem("Dashboard", "/", Module.DASHBOARD),)),
    NavGroup(
        "Producción",
        (
            NavItem("Fincas", "/fincas", Module.FARMS),
            NavItem("Lotes", "/lotes", Module.LOTS),
            NavItem("Cosechas", "/cosechas", Module.HARVESTS),
            NavItem("Certificaciones", "/certificaciones", Module.CERTIFICATIONS),
            NavItem("Actividades", "/actividades", Module.ACTIVITIES),
        ),
    ),
    NavGroup(
        "Empaque",
        (
            NavItem("Recepciones", "/recepciones", Module.RECEPTIONS),
            NavItem("Clasificación", "/clasificacion", Module.CLASSIFICATION),
            NavItem("Etiquetas", "/etiquetas", Module.LABELS),
            NavItem("Pallets", "/pallets", Module.PALLETS),
            NavItem("Control Calidad", "/control-calidad", Module.QUALITY_CONTROL),
        ),
    ),
    NavGroup(
        "Logística",
        (
            NavItem("Envíos", "/envios", Module.SHIPMENTS),
            NavItem("Eventos", "/eventos", Module.LOGISTICS_EVENTS),
            NavItem("Documentos", "/documentos", Module.DOCUMENTS),
        ),
    ),
    NavGroup("Trazabilidad", (NavItem("Consulta", "/trazabilidad", Module.TRACEABILITY),)),
    NavGroup("Administración", (NavItem("Usuarios", "/usuarios", Module.USERS),)),
)


class NavigationMenu:
    """
    Menu latéral: n'expose que les entrées accessibles au principal.

    Example:
        menu = NavigationMenu()
        for group in menu.visible_groups(engine):
            ...
    """

    def __init__(self, groups: Sequence[NavGroup] = DEFAULT_NAV_GROUPS):
        self._groups = tuple(groups)

    @property
    def groups(self) -> Tuple[NavGroup, ...]:
        return self._groups

    def visible_groups(self, engine: IPermissionEngine) -> List[NavGroup]:
        """Groupes filtrés par ``can_access``, groupes vides retirés."""
        visible = []
        for group in self._groups:
            items = tuple(item for item in group.items if engine.can_access(item.module))
            if items:
                visible.append(NavGroup(group.title, items))
        return visible

    @staticmethod
    def is_active(href: str, current_path: str) -> bool:
        """``/`` actif uniquement sur correspondance exacte."""
        href = normalize_path(href)
        current_path = normalize_path(current_path)
        if href == "/":
            return current_path == "/"
        return is_under_prefix(current_path, href)
