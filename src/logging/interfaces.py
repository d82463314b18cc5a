"""
Logging: Interfaces

Contrats du logging structuré JSON.

Chaque entrée porte: timestamp (ISO 8601 UTC), level, correlation_id,
tenant_id (entreprise du principal, ou "anonymous"), message.
Les credentials (mots de passe, tokens) ne sont JAMAIS écrits en clair.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


ANONYMOUS_TENANT = "anonymous"


class InvalidLogLevelError(Exception):
    """Niveau de log inconnu."""

    def __init__(self, level: str) -> None:
        self.level = level
        super().__init__(f"Niveau de log invalide: {level}")


class LogLevel(Enum):
    """Niveaux de log, du moins au plus sévère."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def priority(self) -> int:
        return _PRIORITIES[self]

    @classmethod
    def parse(cls, value: str) -> "LogLevel":
        """
        Convertit un nom de niveau (insensible à la casse).

        Accepte ``WARNING`` comme alias de ``WARN``.

        Raises:
            InvalidLogLevelError: Nom inconnu
        """
        name = (value or "").strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls(name)
        except ValueError:
            raise InvalidLogLevelError(value) from None


_PRIORITIES = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


@dataclass
class LogEntry:
    """Entrée de log structurée."""

    timestamp: str
    level: LogLevel
    correlation_id: str
    tenant_id: str
    message: str
    extra: Dict[str, Any] = field(default_factory=dict)
    logger_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "correlation_id": self.correlation_id,
            "tenant_id": self.tenant_id,
            "message": self.message,
        }
        if self.logger_name:
            result["logger"] = self.logger_name
        if self.extra:
            result["extra"] = self.extra
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


@dataclass
class LogConfig:
    """Configuration du logger structuré."""

    min_level: LogLevel = LogLevel.INFO
    include_extra: bool = True
    mask_sensitive: bool = True
    default_tenant_id: Optional[str] = None
    default_correlation_id: Optional[str] = None
    max_entries: int = 1000  # entrées conservées en mémoire


class IStructuredLogger(ABC):
    """Interface logger structuré."""

    @abstractmethod
    def log(
        self,
        level: LogLevel,
        message: str,
        correlation_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        **extra: Any,
    ) -> Optional[LogEntry]:
        """
        Crée une entrée structurée.

        Args:
            level: Niveau de log
            message: Message
            correlation_id: ID de corrélation (ou défaut, ou généré)
            tenant_id: Tenant (ou défaut, ou "anonymous")
            **extra: Données supplémentaires (masquées si sensibles)

        Returns:
            LogEntry créée, ou None si filtrée par niveau
        """
        pass

    @abstractmethod
    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        pass

    @abstractmethod
    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        pass

    @abstractmethod
    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        pass

    @abstractmethod
    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        pass

    @abstractmethod
    def get_entries(self) -> List[LogEntry]:
        """Entrées capturées (tests)."""
        pass


class ISensitiveMasker(ABC):
    """Interface masquage des credentials."""

    SENSITIVE_PATTERNS: List[str] = [
        "password",
        "passwd",
        "token",
        "secret",
        "credential",
        "authorization",
        "bearer",
        "jwt",
        "cookie",
        "api_key",
    ]

    MASK_VALUE: str = "***MASKED***"

    @abstractmethod
    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Copie de ``data`` avec les valeurs sensibles masquées."""
        pass

    @abstractmethod
    def is_sensitive_key(self, key: str) -> bool:
        pass
