"""
Core: Interfaces

Modèle de configuration du moteur d'autorisation et contrat de chargement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


class StorageKeys(BaseModel):
    """Noms des trois clés persistées."""

    model_config = ConfigDict(extra="forbid")

    token: str = "token"
    refresh_token: str = "refreshToken"
    user: str = "user"


class Messages(BaseModel):
    """Messages localisés présentés à l'utilisateur."""

    model_config = ConfigDict(extra="forbid")

    login_failed: str = "Error al iniciar sesión"
    session_expired: str = "Tu sesión ha expirado. Por favor, inicia sesión nuevamente."


class AuthSettings(BaseModel):
    """
    Configuration du moteur.

    Attributes:
        login_path: Cible de redirection pour un visiteur non authentifié
        default_path: Page d'accueil par défaut (refus d'autorisation)
        public_paths: Préfixes accessibles sans session
        storage_keys: Clés du stockage persistant
        messages: Messages localisés
        log_level: Niveau minimum de log
        permissions: Surcharge optionnelle de la matrice (module → rôle → actions)
        module_access: Surcharge optionnelle des accès (module → rôles)
    """

    model_config = ConfigDict(extra="forbid")

    login_path: str = "/login"
    default_path: str = "/"
    public_paths: List[str] = Field(
        default_factory=lambda: ["/login", "/forgot-password", "/public/trazabilidad"]
    )
    storage_keys: StorageKeys = Field(default_factory=StorageKeys)
    messages: Messages = Field(default_factory=Messages)
    log_level: str = "INFO"
    permissions: Optional[Dict[str, Dict[str, List[str]]]] = None
    module_access: Optional[Dict[str, List[str]]] = None

    def matrix_config(self) -> Optional[Dict[str, Any]]:
        """Section matrice, ou None si la matrice intégrée s'applique."""
        if self.permissions is None:
            return None
        config: Dict[str, Any] = {"permissions": self.permissions}
        if self.module_access is not None:
            config["module_access"] = self.module_access
        return config


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge la configuration du moteur."""

    @abstractmethod
    def load(self, name: str = "auth") -> AuthSettings:
        """
        Charge une configuration nommée (ex: un tenant).

        Raises:
            ConfigIntegrityError: YAML illisible ou structure invalide
        """
        pass
