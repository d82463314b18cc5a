"""
Logging: Structured Logger

Logger JSON structuré multi-tenant. Le tenant est l'entreprise du principal
authentifié; avant login, les entrées sont rattachées à "anonymous".
"""

import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, List, Optional

from .interfaces import (
    ANONYMOUS_TENANT,
    ISensitiveMasker,
    IStructuredLogger,
    LogConfig,
    LogEntry,
    LogLevel,
)
from .sensitive_masker import SensitiveMasker


class MissingRequiredFieldError(Exception):
    """Champ obligatoire manquant."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


class StructuredLogger(IStructuredLogger):
    """
    Logger JSON structuré.

    Les entrées sont conservées en mémoire (bornées par
    ``LogConfig.max_entries``) et, si fourni, envoyées à ``output_handler``
    sous forme de ligne JSON.

    Example:
        logger = StructuredLogger("session")
        logger.set_default_tenant("empresa-12")
        logger.info("Login réussi", user_id=7)
    """

    def __init__(
        self,
        name: str,
        config: Optional[LogConfig] = None,
        masker: Optional[ISensitiveMasker] = None,
        output_handler: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Args:
            name: Nom du logger (composant)
            config: Configuration optionnelle
            masker: Masquage des credentials
            output_handler: Destination des lignes JSON

        Raises:
            ValueError: Si name vide
        """
        if not name or not name.strip():
            raise ValueError("Logger name cannot be empty")

        self._name = name.strip()
        self._config = config or LogConfig()
        self._masker = masker or SensitiveMasker()
        self._output_handler = output_handler
        self._entries: Deque[LogEntry] = deque(maxlen=max(self._config.max_entries, 1))
        self._default_tenant_id: Optional[str] = self._config.default_tenant_id
        self._default_correlation_id: Optional[str] = self._config.default_correlation_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> LogConfig:
        return self._config

    def set_default_tenant(self, tenant_id: Optional[str]) -> None:
        """Tenant par défaut (None → "anonymous")."""
        self._default_tenant_id = tenant_id

    def set_default_correlation(self, correlation_id: Optional[str]) -> None:
        self._default_correlation_id = correlation_id

    def clear_defaults(self) -> None:
        self._default_tenant_id = None
        self._default_correlation_id = None

    def child(self, name: str) -> "StructuredLogger":
        """
        Logger dérivé partageant configuration, masker et sortie.

        Args:
            name: Suffixe du composant (ex: "guard" → "auth.guard")
        """
        return StructuredLogger(
            f"{self._name}.{name}",
            config=self._config,
            masker=self._masker,
            output_handler=self._output_handler,
        )

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

        Processus:
            1. Filtre par niveau minimum
            2. Résout correlation_id (défaut ou UUID généré)
            3. Résout tenant_id (défaut ou "anonymous")
            4. Masque les credentials dans extra
            5. Capture l'entrée et émet la ligne JSON

        Raises:
            MissingRequiredFieldError: Si message vide
        """
        if level.priority < self._config.min_level.priority:
            return None

        if not message:
            raise MissingRequiredFieldError("message")

        resolved_correlation = (
            correlation_id or self._default_correlation_id or str(uuid.uuid4())
        )
        resolved_tenant = tenant_id or self._default_tenant_id or ANONYMOUS_TENANT

        extra_data = {}
        if extra and self._config.include_extra:
            extra_data = self._masker.mask(dict(extra)) if self._config.mask_sensitive else dict(extra)

        entry = LogEntry(
            timestamp=self._generate_timestamp(),
            level=level,
            correlation_id=resolved_correlation,
            tenant_id=resolved_tenant,
            message=message,
            extra=extra_data,
            logger_name=self._name,
        )

        self._entries.append(entry)
        if self._output_handler:
            self._output_handler(entry.to_json())

        return entry

    def _generate_timestamp(self) -> str:
        """Format: 2024-12-04T14:30:00.123Z"""
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, **extra)

    def get_entries(self) -> List[LogEntry]:
        return list(self._entries)

    def clear_entries(self) -> None:
        self._entries.clear()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        return [e for e in self._entries if e.level == level]

    def find(self, message: str) -> List[LogEntry]:
        """Entrées dont le message correspond exactement."""
        return [e for e in self._entries if e.message == message]
