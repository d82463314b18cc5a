"""
Trazabilidad Auth - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from typing import Optional
from unittest.mock import AsyncMock

import pytest

from src.auth.interfaces import ICredentialTransport, LoginCredentials, Principal, Role
from src.logging import StructuredLogger
from src.session.expiry_bus import SessionExpiryBus
from src.session.session_store import SessionStore
from src.session.storage import KeyValueAuthStorage


def make_principal(role: Role = Role.ADMIN_EMPRESA, **overrides) -> Principal:
    """Principal de test."""
    data = {
        "id": 1,
        "email": "admin@x.com",
        "display_name": "Admin Empresa",
        "role": role,
        "company_id": 12,
        "active": True,
    }
    data.update(overrides)
    return Principal(**data)


def login_ok(role: str = "ADMIN_EMPRESA", token: str = "t1", refresh: Optional[str] = "r1") -> dict:
    """Réponse brute de login réussi (format backend)."""
    return {
        "success": True,
        "message": "Login exitoso",
        "data": {
            "accessToken": token,
            "refreshToken": refresh,
            "user": {
                "id": 1,
                "email": "admin@x.com",
                "nombre": "Admin",
                "apellido": "Empresa",
                "rol": role,
                "empresaId": 12,
                "activo": True,
            },
        },
    }


class FakeTransport(ICredentialTransport):
    """Transport piloté par AsyncMock."""

    def __init__(self):
        self.login_mock = AsyncMock(return_value=login_ok())
        self.logout_mock = AsyncMock(return_value=None)

    async def login(self, credentials):
        return await self.login_mock(credentials)

    async def logout(self):
        return await self.logout_mock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def backend() -> dict:
    """Espace clé-valeur partagé (équivalent localStorage)."""
    return {}


@pytest.fixture
def storage(backend) -> KeyValueAuthStorage:
    return KeyValueAuthStorage(backend)


@pytest.fixture
def bus() -> SessionExpiryBus:
    return SessionExpiryBus(logger=StructuredLogger("test.bus"))


@pytest.fixture
def store_logger() -> StructuredLogger:
    return StructuredLogger("test.store")


@pytest.fixture
def store(transport, storage, bus, store_logger) -> SessionStore:
    return SessionStore(transport, storage, bus=bus, logger=store_logger)


@pytest.fixture
def credentials() -> LoginCredentials:
    return LoginCredentials(email="admin@x.com", password="admin123")


@pytest.fixture
def principal_factory():
    """Fabrique de principaux: ``principal_factory(Role.AUDITOR)``."""
    return make_principal


@pytest.fixture
def login_response():
    """Fabrique de réponses de login réussi."""
    return login_ok
