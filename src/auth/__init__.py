"""
Auth: Authorization

Matrice RBAC {module × rôle → actions}, moteur de permissions du principal
courant et décision afficher/masquer pour la présentation.
"""

from .interfaces import (
    Action,
    Module,
    Role,
    Principal,
    LoginCredentials,
    LoginData,
    LoginResponse,
    ICredentialTransport,
    IAuthStorage,
    IPermissionEngine,
)
from .permission_matrix import PermissionMatrix, PermissionMatrixError
from .permission_engine import PermissionEngine
from .permission_gate import PermissionGate

__all__ = [
    # Enums
    "Action",
    "Module",
    "Role",
    # Data classes
    "Principal",
    "LoginCredentials",
    "LoginData",
    "LoginResponse",
    # Interfaces
    "ICredentialTransport",
    "IAuthStorage",
    "IPermissionEngine",
    # Implementations
    "PermissionMatrix",
    "PermissionEngine",
    "PermissionGate",
    # Exceptions
    "PermissionMatrixError",
]
