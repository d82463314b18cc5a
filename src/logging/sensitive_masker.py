"""
Logging: Sensitive Masker

Masquage récursif des credentials avant écriture des logs.
"""

from typing import Any, Dict, List, Optional

from .interfaces import ISensitiveMasker


class SensitiveMasker(ISensitiveMasker):
    """
    Masque les valeurs dont la clé contient un pattern sensible.

    Les objets ayant ``to_payload()`` (ex: LoginCredentials) sont
    convertis puis masqués.

    Example:
        masker = SensitiveMasker()
        masker.mask({"email": "a@b.c", "password": "x"})
        # {"email": "a@b.c", "password": "***MASKED***"}
    """

    def __init__(self, additional_patterns: Optional[List[str]] = None) -> None:
        self._patterns: List[str] = [p.lower() for p in self.SENSITIVE_PATTERNS]
        for pattern in additional_patterns or []:
            self.add_pattern(pattern)

    @property
    def patterns(self) -> List[str]:
        return list(self._patterns)

    def mask(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            return data

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if self.is_sensitive_key(key):
                result[key] = self.MASK_VALUE
            else:
                result[key] = self._mask_value(value)
        return result

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.mask(value)
        if isinstance(value, (list, tuple)):
            return [self._mask_value(item) for item in value]
        if hasattr(value, "to_payload"):
            return self.mask(value.to_payload())
        return value

    def is_sensitive_key(self, key: str) -> bool:
        """Vérifie (sans casse) si la clé contient un pattern sensible."""
        if not key:
            return False
        key_lower = str(key).lower()
        return any(pattern in key_lower for pattern in self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """
        Ajoute un pattern sensible.

        Raises:
            ValueError: Pattern vide
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern cannot be empty")
        pattern = pattern.strip().lower()
        if pattern not in self._patterns:
            self._patterns.append(pattern)
