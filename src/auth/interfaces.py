"""
Auth: Interfaces

Définit les types fermés (rôles, modules, actions), le principal authentifié
et les contrats des collaborateurs externes (transport, stockage).
Toute implémentation DOIT respecter ces interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# ══════════════════════════════════════════════════════════════════════════════
# TYPES FERMÉS
# ══════════════════════════════════════════════════════════════════════════════


class Role(Enum):
    """
    Rôles attribués par le backend au login.

    Les valeurs sont les tags transmis sur le fil.
    """

    ADMIN_SISTEMA = "ADMIN_SISTEMA"
    ADMIN_EMPRESA = "ADMIN_EMPRESA"
    PRODUCTOR = "PRODUCTOR"
    OPERADOR_PLANTA = "OPERADOR_PLANTA"
    OPERADOR_LOGISTICA = "OPERADOR_LOGISTICA"
    AUDITOR = "AUDITOR"

    @property
    def label(self) -> str:
        """Libellé affiché dans l'interface."""
        return ROLE_LABELS[self]


ROLE_LABELS = {
    Role.ADMIN_SISTEMA: "Administrador del Sistema",
    Role.ADMIN_EMPRESA: "Administrador de Empresa",
    Role.PRODUCTOR: "Productor",
    Role.OPERADOR_PLANTA: "Operador de Planta",
    Role.OPERADOR_LOGISTICA: "Operador de Logística",
    Role.AUDITOR: "Auditor",
}


class Module(Enum):
    """Zones fonctionnelles soumises au contrôle d'accès."""

    DASHBOARD = "dashboard"
    FARMS = "farms"
    LOTS = "lots"
    HARVESTS = "harvests"
    CERTIFICATIONS = "certifications"
    ACTIVITIES = "activities"
    RECEPTIONS = "receptions"
    CLASSIFICATION = "classification"
    LABELS = "labels"
    PALLETS = "pallets"
    QUALITY_CONTROL = "quality-control"
    SHIPMENTS = "shipments"
    LOGISTICS_EVENTS = "logistics-events"
    DOCUMENTS = "documents"
    TRACEABILITY = "traceability"
    USERS = "users"


class Action(Enum):
    """Opérations CRUD vérifiées contre la matrice."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


ALL_ACTIONS: FrozenSet[Action] = frozenset(Action)


# ══════════════════════════════════════════════════════════════════════════════
# PRINCIPAL & DTOs
# ══════════════════════════════════════════════════════════════════════════════


class Principal(BaseModel):
    """
    Identité authentifiée détenue par la session.

    Accepte les noms de champs du backend (``nombre``, ``rol``, ``empresaId``...)
    ainsi que les noms Python. Sérialisé en JSON pour le stockage persistant.

    Attributes:
        id: Identifiant utilisateur
        email: Adresse email
        display_name: Nom affiché
        role: Rôle (fixe pour la durée de la session)
        company_id: Tenant / entreprise
        company_name: Nom de l'entreprise (optionnel)
        active: Compte actif
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Union[int, str]
    email: str
    display_name: str = Field(
        default="", validation_alias=AliasChoices("display_name", "displayName", "nombre")
    )
    role: Role = Field(validation_alias=AliasChoices("role", "rol"))
    company_id: Optional[Union[int, str]] = Field(
        default=None, validation_alias=AliasChoices("company_id", "companyId", "empresaId")
    )
    company_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("company_name", "companyName", "empresaNombre"),
    )
    active: bool = Field(default=True, validation_alias=AliasChoices("active", "activo"))

    @model_validator(mode="before")
    @classmethod
    def _join_spanish_name(cls, data: Any) -> Any:
        # Le backend envoie nombre + apellido séparés
        if isinstance(data, dict) and "nombre" in data and data.get("apellido"):
            data = dict(data)
            data["nombre"] = f"{data['nombre']} {data['apellido']}".strip()
        return data

    def to_json(self) -> str:
        """Sérialise pour le stockage."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> "Principal":
        """Désérialise depuis le stockage."""
        return cls.model_validate_json(raw)


@dataclass(frozen=True)
class LoginCredentials:
    """Identifiants saisis par l'utilisateur. Le mot de passe n'apparaît pas dans repr()."""

    email: str
    password: str = field(repr=False)

    def to_payload(self) -> dict:
        return {"email": self.email, "password": self.password}


class LoginData(BaseModel):
    """Charge utile d'un login réussi."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(validation_alias=AliasChoices("access_token", "accessToken", "token"))
    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refresh_token", "refreshToken")
    )
    user: Principal


class LoginResponse(BaseModel):
    """Réponse du transport pour ``login``."""

    success: bool
    message: Optional[str] = None
    data: Optional[LoginData] = None


# ══════════════════════════════════════════════════════════════════════════════
# COLLABORATEURS EXTERNES
# ══════════════════════════════════════════════════════════════════════════════


class ICredentialTransport(ABC):
    """
    Transport des identifiants (client réseau).

    Lève le signal d'expiration de session via son publisher,
    indépendamment de toute requête en cours.
    """

    @abstractmethod
    async def login(self, credentials: LoginCredentials) -> Union[LoginResponse, Mapping[str, Any]]:
        """
        Authentifie auprès du backend.

        Returns:
            LoginResponse (ou mapping équivalent)

        Raises:
            Exception: Échec transport (réseau, timeout...)
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Logout côté backend (best-effort)."""
        pass


class IAuthStorage(ABC):
    """
    Stockage persistant des credentials.

    Trois clés logiques (token, refresh token, principal) écrites
    et effacées ensemble.
    """

    @abstractmethod
    def get_stored_token(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_stored_refresh_token(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_stored_user(self) -> Optional[Principal]:
        pass

    @abstractmethod
    def set_auth_data(self, token: str, refresh_token: Optional[str], user: Principal) -> None:
        """Écrit les trois clés."""
        pass

    @abstractmethod
    def clear_auth_data(self) -> None:
        """Efface les trois clés."""
        pass

    @abstractmethod
    def is_authenticated(self) -> bool:
        """Heuristique locale (présence du token), pas de vérification réseau."""
        pass


class IPermissionEngine(ABC):
    """Requêtes de permissions pour le principal courant."""

    @abstractmethod
    def has_permission(self, module: Module, action: Action) -> bool:
        pass

    @abstractmethod
    def can_access(self, module: Module) -> bool:
        pass

    @abstractmethod
    def has_role(self, *roles: Role) -> bool:
        pass
