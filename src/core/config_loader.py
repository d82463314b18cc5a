"""
Core: Config Loader

Charge la configuration du moteur depuis des fichiers YAML.
Fichier absent → valeurs par défaut.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .interfaces import AuthSettings, IConfigLoader


CONFIG_DIR_ENV = "TRAZA_AUTH_CONFIG_DIR"


class ConfigIntegrityError(Exception):
    """Erreur d'intégrité de configuration."""

    pass


class ConfigLoader(IConfigLoader):
    """
    Chargement des configurations depuis fichiers YAML.

    Example:
        loader = ConfigLoader("config")
        settings = loader.load()            # config/auth.yaml
        settings = loader.load("empresa-7") # config/empresa-7.yaml
    """

    def __init__(self, configs_path: Union[str, Path] = "config"):
        self.configs_path = Path(configs_path)

    @classmethod
    def from_env(cls, default: str = "config") -> "ConfigLoader":
        """Répertoire pris dans TRAZA_AUTH_CONFIG_DIR si défini."""
        return cls(os.environ.get(CONFIG_DIR_ENV, default))

    def load(self, name: str = "auth") -> AuthSettings:
        """
        Charge ``<configs_path>/<name>.yaml``.

        Args:
            name: Nom de configuration (ex: identifiant tenant)

        Returns:
            AuthSettings validés (défauts si fichier absent)

        Raises:
            ConfigIntegrityError: Parsing YAML ou structure invalide
        """
        config_file = self.configs_path / f"{name}.yaml"
        if not config_file.exists():
            return AuthSettings()

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(f"Erreur de parsing YAML: {e}")
        except OSError as e:
            raise ConfigIntegrityError(f"Erreur de lecture fichier: {e}")

        return self.parse(raw)

    def parse(self, raw: Optional[Any]) -> AuthSettings:
        """
        Valide un document déjà chargé.

        Raises:
            ConfigIntegrityError: Structure invalide
        """
        if raw is None:
            return AuthSettings()
        if not isinstance(raw, dict):
            raise ConfigIntegrityError("Configuration doit être un objet YAML")

        self._validate_basic_structure(raw)

        try:
            return AuthSettings.model_validate(raw)
        except ValidationError as e:
            raise ConfigIntegrityError(f"Configuration invalide: {e}")

    def _validate_basic_structure(self, config: Dict[str, Any]) -> None:
        for path_field in ("login_path", "default_path"):
            value = config.get(path_field)
            if value is not None and (not isinstance(value, str) or not value.startswith("/")):
                raise ConfigIntegrityError(f"{path_field} doit être un chemin absolu")

        if "module_access" in config and "permissions" not in config:
            raise ConfigIntegrityError("module_access exige une section permissions")
