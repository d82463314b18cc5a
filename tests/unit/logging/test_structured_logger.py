"""
Tests unitaires StructuredLogger

Champs obligatoires de chaque entrée: timestamp, level, correlation_id,
tenant_id, message.
"""

import json
import re

import pytest

from src.logging import (
    ANONYMOUS_TENANT,
    InvalidLogLevelError,
    IStructuredLogger,
    LogConfig,
    LogLevel,
    MissingRequiredFieldError,
    StructuredLogger,
)


TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


# ══════════════════════════════════════════════════════════════════════════════
# TESTS FORMAT
# ══════════════════════════════════════════════════════════════════════════════


class TestFormat:
    """Tests format JSON."""

    def test_implements_interface(self) -> None:
        assert isinstance(StructuredLogger("test"), IStructuredLogger)

    def test_required_fields(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("Login réussi", user_id=7)
        data = json.loads(entry.to_json())

        assert data["level"] == "INFO"
        assert data["message"] == "Login réussi"
        assert data["logger"] == "test"
        assert data["extra"] == {"user_id": 7}
        assert TIMESTAMP_RE.match(data["timestamp"])
        assert data["correlation_id"]

    def test_anonymous_tenant_before_login(self) -> None:
        entry = StructuredLogger("test").info("Tentative de login")
        assert entry.tenant_id == ANONYMOUS_TENANT

    def test_default_tenant(self) -> None:
        logger = StructuredLogger("test")
        logger.set_default_tenant("12")

        assert logger.info("x").tenant_id == "12"

        logger.set_default_tenant(None)
        assert logger.info("x").tenant_id == ANONYMOUS_TENANT

    def test_explicit_ids_override_defaults(self) -> None:
        logger = StructuredLogger("test")
        logger.set_default_tenant("12")
        logger.set_default_correlation("corr-1")

        entry = logger.log(LogLevel.INFO, "x", correlation_id="corr-2", tenant_id="99")

        assert entry.correlation_id == "corr-2"
        assert entry.tenant_id == "99"

    def test_clear_defaults(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(default_correlation_id="corr-1"))
        logger.set_default_tenant("12")

        logger.clear_defaults()
        entry = logger.info("x")

        assert entry.tenant_id == ANONYMOUS_TENANT
        assert entry.correlation_id != "corr-1"

    def test_sensitive_extra_masked(self) -> None:
        entry = StructuredLogger("test").info("Login", password="admin123", email="a@b.c")

        assert entry.extra == {"password": "***MASKED***", "email": "a@b.c"}
        assert "admin123" not in entry.to_json()

    def test_extra_excluded(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(include_extra=False))
        assert logger.info("x", user_id=1).extra == {}

    def test_output_handler(self) -> None:
        lines = []
        logger = StructuredLogger("test", output_handler=lines.append)

        logger.warn("Session expirée")

        assert json.loads(lines[0])["level"] == "WARN"


# ══════════════════════════════════════════════════════════════════════════════
# TESTS NIVEAUX
# ══════════════════════════════════════════════════════════════════════════════


class TestLevels:
    """Tests niveaux."""

    def test_filtered_below_min_level(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(min_level=LogLevel.WARN))

        assert logger.debug("x") is None
        assert logger.info("x") is None
        assert logger.warn("x") is not None
        assert logger.error("x") is not None
        assert logger.critical("x") is not None
        assert len(logger.get_entries()) == 3

    def test_priority_order(self) -> None:
        priorities = [level.priority for level in LogLevel]
        assert priorities == sorted(priorities)

    @pytest.mark.parametrize("raw,expected", [("info", LogLevel.INFO), ("WARNING", LogLevel.WARN), (" error ", LogLevel.ERROR)])
    def test_parse(self, raw, expected) -> None:
        assert LogLevel.parse(raw) is expected

    def test_parse_unknown(self) -> None:
        with pytest.raises(InvalidLogLevelError) as exc_info:
            LogLevel.parse("VERBOSE")
        assert exc_info.value.level == "VERBOSE"


# ══════════════════════════════════════════════════════════════════════════════
# TESTS CAPTURE
# ══════════════════════════════════════════════════════════════════════════════


class TestCapture:
    """Tests entrées conservées en mémoire."""

    def test_bounded(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(max_entries=2))

        for i in range(5):
            logger.info(f"m{i}")

        assert [e.message for e in logger.get_entries()] == ["m3", "m4"]

    def test_find_and_filter(self) -> None:
        logger = StructuredLogger("test")
        logger.info("Login réussi")
        logger.warn("Échec de login")

        assert len(logger.find("Échec de login")) == 1
        assert len(logger.get_entries_by_level(LogLevel.WARN)) == 1

        logger.clear_entries()
        assert logger.get_entries() == []

    def test_child(self) -> None:
        lines = []
        parent = StructuredLogger("auth", config=LogConfig(min_level=LogLevel.WARN), output_handler=lines.append)

        child = parent.child("guard")

        assert child.name == "auth.guard"
        assert child.info("x") is None
        child.error("y")
        assert json.loads(lines[0])["logger"] == "auth.guard"


class TestValidation:
    """Tests erreurs."""

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, name) -> None:
        with pytest.raises(ValueError):
            StructuredLogger(name)

    def test_empty_message_rejected(self) -> None:
        with pytest.raises(MissingRequiredFieldError):
            StructuredLogger("test").info("")
