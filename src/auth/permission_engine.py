"""
Auth: Permission Engine

Requêtes de permissions pour le principal courant, dérivées de la
matrice et du rôle lu dans le SessionStore à chaque appel.

Le moteur ne détient aucune copie du principal: seul le rôle sert de clé
de mémoïsation, invalidée dès que le rôle change.
"""

from typing import Callable, Dict, FrozenSet, List, Optional

from .interfaces import Action, IPermissionEngine, Module, Principal, Role
from .permission_matrix import PermissionMatrix


class PermissionEngine(IPermissionEngine):
    """
    Vérificateur de permissions du principal courant.

    Example:
        engine = PermissionEngine(matrix, lambda: store.user)
        if engine.can_create(Module.LOTS):
            ...
    """

    def __init__(
        self,
        matrix: PermissionMatrix,
        current_user: Callable[[], Optional[Principal]],
    ):
        """
        Args:
            matrix: Matrice de permissions
            current_user: Accès au principal courant (SessionStore)
        """
        self._matrix = matrix
        self._current_user = current_user
        self._cached_role: Optional[Role] = None
        self._cache: Dict[Module, FrozenSet[Action]] = {}

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    @property
    def current_role(self) -> Optional[Role]:
        """Rôle du principal courant, None si non authentifié."""
        user = self._current_user()
        return user.role if user is not None else None

    def has_permission(self, module: Module, action: Action) -> bool:
        """
        Vérifie une action sur un module.

        Returns:
            False si aucun principal, sinon appartenance à la matrice
        """
        return action in self.get_module_permissions(module)

    def can_access(self, module: Module) -> bool:
        """
        Vérifie l'accès (navigation) à un module.

        Returns:
            False si aucun principal, sinon rôle dans l'ensemble d'accès
        """
        role = self.current_role
        if role is None:
            return False
        return role in self._matrix.roles_with_access(module)

    def can_create(self, module: Module) -> bool:
        return self.has_permission(module, Action.CREATE)

    def can_read(self, module: Module) -> bool:
        return self.has_permission(module, Action.READ)

    def can_update(self, module: Module) -> bool:
        return self.has_permission(module, Action.UPDATE)

    def can_delete(self, module: Module) -> bool:
        return self.has_permission(module, Action.DELETE)

    def get_module_permissions(self, module: Module) -> FrozenSet[Action]:
        """Actions du principal sur un module, vide si non authentifié."""
        role = self.current_role
        if role is None:
            return frozenset()

        if role != self._cached_role:
            self._cache.clear()
            self._cached_role = role

        actions = self._cache.get(module)
        if actions is None:
            actions = self._matrix.permissions_for(module, role)
            self._cache[module] = actions
        return actions

    def is_admin(self) -> bool:
        """True si le rôle est administrateur système."""
        return self.current_role is Role.ADMIN_SISTEMA

    def is_company_admin(self) -> bool:
        """True pour les deux rôles d'administration."""
        return self.has_role(Role.ADMIN_SISTEMA, Role.ADMIN_EMPRESA)

    def has_role(self, *roles: Role) -> bool:
        """True si le rôle courant figure parmi ``roles``."""
        role = self.current_role
        if role is None:
            return False
        return role in roles

    def accessible_modules(self) -> List[Module]:
        """Modules accessibles au principal courant."""
        role = self.current_role
        if role is None:
            return []
        return self._matrix.modules_for(role)
