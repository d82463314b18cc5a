"""
Auth: Permission Gate

Décision afficher/masquer pour la couche de présentation.
Ne contient aucune règle propre: délègue au PermissionEngine.
"""

from typing import Iterable, Optional

from .interfaces import Action, IPermissionEngine, Module, Role


class PermissionGate:
    """
    Décide si un élément d'interface est rendu.

    Priorité:
        1. rôles explicites (si non vides)
        2. module + action
        3. module seul (accès)
        4. aucune contrainte → visible

    Example:
        gate = PermissionGate(engine)
        gate.allows(module=Module.LOTS, action=Action.CREATE)
    """

    def __init__(self, engine: IPermissionEngine):
        self._engine = engine

    def allows(
        self,
        module: Optional[Module] = None,
        action: Optional[Action] = None,
        roles: Optional[Iterable[Role]] = None,
    ) -> bool:
        roles = tuple(roles or ())
        if roles:
            return self._engine.has_role(*roles)

        if module is not None and action is not None:
            return self._engine.has_permission(module, action)

        if module is not None:
            return self._engine.can_access(module)

        return True

    def render(self, content, fallback=None, **constraints):
        """Retourne ``content`` si autorisé, sinon ``fallback``."""
        return content if self.allows(**constraints) else fallback
