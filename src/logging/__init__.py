"""
Logging

Logging structuré JSON:
- champs obligatoires timestamp, level, correlation_id, tenant_id, message
- timestamp ISO 8601 UTC
- tenant = entreprise du principal ou "anonymous"
- credentials (password, tokens) toujours masqués
"""

from .interfaces import (
    ANONYMOUS_TENANT,
    LogLevel,
    LogEntry,
    LogConfig,
    IStructuredLogger,
    ISensitiveMasker,
    InvalidLogLevelError,
)
from .sensitive_masker import SensitiveMasker
from .structured_logger import StructuredLogger, MissingRequiredFieldError

__all__ = [
    "ANONYMOUS_TENANT",
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    # Exceptions
    "MissingRequiredFieldError",
    "InvalidLogLevelError",
]
