"""
Auth: Permission Matrix

Matrice RBAC statique {module × rôle → actions} et ensemble d'accès
{module → rôles} utilisé pour la visibilité de navigation.

Garanties:
    - Fonction totale: chaque couple (module, rôle) a une entrée,
      éventuellement vide, jamais absente.
    - Cohérence: un rôle avec au moins une action sur un module
      figure dans l'ensemble d'accès de ce module.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .interfaces import ALL_ACTIONS, Action, Module, Role


class PermissionMatrixError(Exception):
    """Matrice de permissions invalide."""

    pass


_CRUD = ALL_ACTIONS
_CRU = frozenset({Action.CREATE, Action.READ, Action.UPDATE})
_R = frozenset({Action.READ})
_NONE: FrozenSet[Action] = frozenset()

_ADMINS = (Role.ADMIN_SISTEMA, Role.ADMIN_EMPRESA)


def _row(default: FrozenSet[Action], **overrides: FrozenSet[Action]) -> Dict[Role, FrozenSet[Action]]:
    row = {role: default for role in Role}
    for role in _ADMINS:
        row[role] = _CRUD
    for name, actions in overrides.items():
        row[Role[name]] = actions
    return row


# Production / empaque / logística / trazabilidad / administración
DEFAULT_PERMISSIONS: Dict[Module, Dict[Role, FrozenSet[Action]]] = {
    Module.DASHBOARD: {role: _R for role in Role},
    Module.FARMS: _row(_R),
    Module.LOTS: _row(_R, PRODUCTOR=_CRU),
    Module.HARVESTS: _row(_R, PRODUCTOR=_CRU),
    Module.CERTIFICATIONS: _row(_R, PRODUCTOR=_CRU),
    Module.ACTIVITIES: _row(_R, PRODUCTOR=_CRU),
    Module.RECEPTIONS: _row(_R, OPERADOR_PLANTA=_CRUD),
    Module.CLASSIFICATION: _row(_R, OPERADOR_PLANTA=_CRU),
    Module.LABELS: _row(_R, OPERADOR_PLANTA=_CRU),
    Module.PALLETS: _row(_R, OPERADOR_PLANTA=_CRU),
    Module.QUALITY_CONTROL: _row(_R, OPERADOR_PLANTA=_CRU),
    Module.SHIPMENTS: _row(_R, OPERADOR_LOGISTICA=_CRU),
    Module.LOGISTICS_EVENTS: _row(_R, OPERADOR_LOGISTICA=_CRU),
    Module.DOCUMENTS: _row(_R, OPERADOR_LOGISTICA=_CRU),
    Module.TRACEABILITY: {role: _R for role in Role},
    Module.USERS: _row(_NONE),
}

DEFAULT_MODULE_ACCESS: Dict[Module, FrozenSet[Role]] = {
    module: frozenset(Role) for module in Module
}
DEFAULT_MODULE_ACCESS[Module.USERS] = frozenset(_ADMINS)


class PermissionMatrix:
    """
    Matrice de permissions, fonction totale sur Module × Rôle.

    Les tables sont indexées par position d'énumération: toute combinaison
    absente des données sources devient un ensemble vide explicite.

    Example:
        matrix = PermissionMatrix.default()
        matrix.permissions_for(Module.LOTS, Role.PRODUCTOR)
        # frozenset({Action.CREATE, Action.READ, Action.UPDATE})
    """

    def __init__(
        self,
        permissions: Mapping[Module, Mapping[Role, Iterable[Action]]],
        module_access: Optional[Mapping[Module, Iterable[Role]]] = None,
    ):
        """
        Args:
            permissions: Actions déclarées par module et rôle
            module_access: Rôles ayant accès à chaque module. Si absent,
                dérivé des rôles ayant au moins une action.

        Raises:
            PermissionMatrixError: Entrée inconnue ou tables incohérentes
        """
        self._modules: List[Module] = list(Module)
        self._roles: List[Role] = list(Role)

        self._table: List[List[FrozenSet[Action]]] = [
            [_NONE for _ in self._roles] for _ in self._modules
        ]
        for module, row in permissions.items():
            m = self._module_index(module)
            for role, actions in row.items():
                r = self._role_index(role)
                actions = frozenset(actions)
                for action in actions:
                    if not isinstance(action, Action):
                        raise PermissionMatrixError(f"Action inconnue: {action!r}")
                self._table[m][r] = actions

        self._access: List[FrozenSet[Role]] = []
        for m, module in enumerate(self._modules):
            if module_access is None:
                roles = frozenset(
                    role for r, role in enumerate(self._roles) if self._table[m][r]
                )
            else:
                roles = frozenset(module_access.get(module, ()))
                for role in roles:
                    self._role_index(role)
            self._access.append(roles)

        self._check_consistency()

    @classmethod
    def default(cls) -> "PermissionMatrix":
        """Matrice intégrée de l'application."""
        return cls(DEFAULT_PERMISSIONS, DEFAULT_MODULE_ACCESS)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PermissionMatrix":
        """
        Construit une matrice depuis une section de configuration.

        Format attendu::

            permissions:
              lots:
                PRODUCTOR: [create, read, update]
            module_access:
              lots: [PRODUCTOR, AUDITOR]

        Args:
            config: Dictionnaire contenant ``permissions`` et
                optionnellement ``module_access``

        Returns:
            PermissionMatrix validée

        Raises:
            PermissionMatrixError: Tag inconnu ou structure invalide
        """
        raw_permissions = config.get("permissions")
        if not isinstance(raw_permissions, Mapping):
            raise PermissionMatrixError("permissions doit être un objet")

        permissions: Dict[Module, Dict[Role, FrozenSet[Action]]] = {}
        for module_tag, row in raw_permissions.items():
            module = _parse(Module, module_tag)
            if not isinstance(row, Mapping):
                raise PermissionMatrixError(f"permissions.{module_tag} doit être un objet")
            permissions[module] = {
                _parse(Role, role_tag): frozenset(_parse(Action, a) for a in (actions or []))
                for role_tag, actions in row.items()
            }

        module_access = None
        raw_access = config.get("module_access")
        if raw_access is not None:
            if not isinstance(raw_access, Mapping):
                raise PermissionMatrixError("module_access doit être un objet")
            module_access = {
                _parse(Module, module_tag): frozenset(_parse(Role, r) for r in (roles or []))
                for module_tag, roles in raw_access.items()
            }

        return cls(permissions, module_access)

    def permissions_for(self, module: Module, role: Role) -> FrozenSet[Action]:
        """
        Actions autorisées pour un rôle sur un module.

        Returns:
            Ensemble d'actions, vide si aucune. Ne lève jamais.
        """
        try:
            return self._table[self._modules.index(module)][self._roles.index(role)]
        except ValueError:
            return _NONE

    def roles_with_access(self, module: Module) -> FrozenSet[Role]:
        """Rôles ayant accès (navigation) au module, vide si aucun."""
        try:
            return self._access[self._modules.index(module)]
        except ValueError:
            return frozenset()

    def modules_for(self, role: Role) -> List[Module]:
        """Modules accessibles à un rôle, dans l'ordre de déclaration."""
        return [m for i, m in enumerate(self._modules) if role in self._access[i]]

    def as_dict(self) -> Dict[str, Dict[str, List[str]]]:
        """Export lisible (tags de fil), actions triées."""
        return {
            module.value: {
                role.value: sorted(a.value for a in self._table[m][r])
                for r, role in enumerate(self._roles)
            }
            for m, module in enumerate(self._modules)
        }

    def _check_consistency(self) -> None:
        for m, module in enumerate(self._modules):
            for r, role in enumerate(self._roles):
                if self._table[m][r] and role not in self._access[m]:
                    raise PermissionMatrixError(
                        f"Rôle {role.value} a des actions sur {module.value} "
                        f"sans figurer dans module_access"
                    )

    def _module_index(self, module: Any) -> int:
        if not isinstance(module, Module):
            raise PermissionMatrixError(f"Module inconnu: {module!r}")
        return self._modules.index(module)

    def _role_index(self, role: Any) -> int:
        if not isinstance(role, Role):
            raise PermissionMatrixError(f"Rôle inconnu: {role!r}")
        return self._roles.index(role)


def _parse(enum_cls, tag: Any):
    try:
        return enum_cls(tag)
    except ValueError:
        raise PermissionMatrixError(f"{enum_cls.__name__} inconnu: {tag!r}") from None
