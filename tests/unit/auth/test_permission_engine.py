"""
Tests unitaires PermissionEngine et PermissionGate
"""

import pytest

from src.auth.interfaces import ALL_ACTIONS, Action, IPermissionEngine, Module, Role
from src.auth.permission_engine import PermissionEngine
from src.auth.permission_gate import PermissionGate
from src.auth.permission_matrix import PermissionMatrix


class CurrentUser:
    """Principal courant modifiable (remplace le SessionStore)."""

    def __init__(self, user=None):
        self.user = user

    def __call__(self):
        return self.user


@pytest.fixture
def current():
    return CurrentUser()


@pytest.fixture
def engine(current):
    return PermissionEngine(PermissionMatrix.default(), current)


# ══════════════════════════════════════════════════════════════════════════════
# TESTS ENGINE
# ══════════════════════════════════════════════════════════════════════════════


class TestUnauthenticated:
    """Sans principal, tout est refusé."""

    def test_implements_interface(self, engine):
        assert isinstance(engine, IPermissionEngine)

    def test_everything_false(self, engine):
        for module in Module:
            assert engine.can_access(module) is False
            for action in Action:
                assert engine.has_permission(module, action) is False
            assert engine.get_module_permissions(module) == frozenset()

        assert engine.current_role is None
        assert engine.is_admin() is False
        assert engine.is_company_admin() is False
        assert engine.has_role(*Role) is False
        assert engine.accessible_modules() == []


class TestAuthenticated:
    """Tests avec principal."""

    def test_productor(self, engine, current, principal_factory):
        current.user = principal_factory(Role.PRODUCTOR)

        assert engine.can_create(Module.LOTS) is True
        assert engine.can_read(Module.LOTS) is True
        assert engine.can_update(Module.LOTS) is True
        assert engine.can_delete(Module.LOTS) is False
        assert engine.can_create(Module.RECEPTIONS) is False
        assert engine.can_access(Module.USERS) is False

    def test_admin_sistema(self, engine, current, principal_factory):
        current.user = principal_factory(Role.ADMIN_SISTEMA)

        assert engine.is_admin() is True
        assert engine.is_company_admin() is True
        assert engine.can_delete(Module.USERS) is True

    def test_admin_empresa_not_system_admin(self, engine, current, principal_factory):
        current.user = principal_factory(Role.ADMIN_EMPRESA)

        assert engine.is_admin() is False
        assert engine.is_company_admin() is True
        assert engine.get_module_permissions(Module.USERS) == ALL_ACTIONS

    def test_has_role(self, engine, current, principal_factory):
        current.user = principal_factory(Role.AUDITOR)

        assert engine.has_role(Role.AUDITOR) is True
        assert engine.has_role(Role.ADMIN_SISTEMA, Role.AUDITOR) is True
        assert engine.has_role(Role.PRODUCTOR) is False
        assert engine.has_role() is False

    def test_accessible_modules(self, engine, current, principal_factory):
        current.user = principal_factory(Role.OPERADOR_LOGISTICA)

        modules = engine.accessible_modules()

        assert Module.SHIPMENTS in modules
        assert Module.USERS not in modules

    def test_role_change_invalidates_cache(self, engine, current, principal_factory):
        """Les permissions suivent le rôle courant sans mise à jour explicite."""
        current.user = principal_factory(Role.PRODUCTOR)
        assert engine.can_create(Module.LOTS) is True

        current.user = principal_factory(Role.AUDITOR)
        assert engine.can_create(Module.LOTS) is False
        assert engine.get_module_permissions(Module.LOTS) == {Action.READ}

        current.user = None
        assert engine.can_read(Module.LOTS) is False

    @pytest.mark.asyncio
    async def test_follows_session_store(self, store, credentials):
        """Moteur lié au store: suit login et expiration."""
        engine = PermissionEngine(PermissionMatrix.default(), lambda: store.user)
        assert engine.can_access(Module.USERS) is False

        await store.login(credentials)
        assert engine.can_access(Module.USERS) is True

        store.handle_session_expired()
        assert engine.current_role is None
        assert engine.can_access(Module.USERS) is False


# ══════════════════════════════════════════════════════════════════════════════
# TESTS GATE
# ══════════════════════════════════════════════════════════════════════════════


class TestPermissionGate:
    """Tests décision afficher/masquer."""

    @pytest.fixture
    def gate(self, engine):
        return PermissionGate(engine)

    def test_no_constraint_visible(self, gate):
        """Sans contrainte, visible même anonyme."""
        assert gate.allows() is True

    def test_roles_take_precedence(self, gate, current, principal_factory):
        """Rôles explicites prioritaires sur module/action."""
        current.user = principal_factory(Role.AUDITOR)

        assert gate.allows(module=Module.LOTS, action=Action.DELETE, roles=[Role.AUDITOR]) is True
        assert gate.allows(module=Module.LOTS, roles=[Role.PRODUCTOR]) is False

    def test_empty_roles_ignored(self, gate, current, principal_factory):
        current.user = principal_factory(Role.AUDITOR)

        assert gate.allows(module=Module.LOTS, action=Action.READ, roles=[]) is True

    def test_module_and_action(self, gate, current, principal_factory):
        current.user = principal_factory(Role.PRODUCTOR)

        assert gate.allows(module=Module.LOTS, action=Action.CREATE) is True
        assert gate.allows(module=Module.LOTS, action=Action.DELETE) is False

    def test_module_only(self, gate, current, principal_factory):
        current.user = principal_factory(Role.PRODUCTOR)

        assert gate.allows(module=Module.LOTS) is True
        assert gate.allows(module=Module.USERS) is False

    def test_action_without_module_visible(self, gate):
        """Action seule: aucune contrainte effective."""
        assert gate.allows(action=Action.DELETE) is True

    def test_render(self, gate, current, principal_factory):
        current.user = principal_factory(Role.AUDITOR)

        assert gate.render("Nuevo lote", module=Module.LOTS, action=Action.CREATE) is None
        assert gate.render("Nuevo lote", "-", module=Module.LOTS, action=Action.CREATE) == "-"
        assert gate.render("Ver lote", module=Module.LOTS, action=Action.READ) == "Ver lote"
