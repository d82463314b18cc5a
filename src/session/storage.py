"""
Session: Storage

Stockage persistant des credentials sur un espace clé-valeur partagé.
Seul le SessionStore écrit les trois clés (token, refresh token, user).
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, MutableMapping, Optional, Union

from pydantic import ValidationError

from ..auth.interfaces import IAuthStorage, Principal
from ..core.interfaces import StorageKeys


class StorageError(Exception):
    """Erreur d'accès au stockage persistant."""

    pass


class KeyValueAuthStorage(IAuthStorage):
    """
    Credentials sur un ``MutableMapping[str, str]`` (équivalent localStorage).

    Le principal est sérialisé en JSON; une valeur corrompue est lue
    comme absente.

    Example:
        storage = KeyValueAuthStorage(JsonFileStore("~/.traza/session.json"))
        storage.set_auth_data("t1", "r1", principal)
    """

    def __init__(
        self,
        backend: Optional[MutableMapping[str, str]] = None,
        keys: Optional[StorageKeys] = None,
    ):
        """
        Args:
            backend: Espace clé-valeur (dict en mémoire par défaut)
            keys: Noms des clés
        """
        self._backend: MutableMapping[str, str] = backend if backend is not None else {}
        self._keys = keys or StorageKeys()

    @property
    def backend(self) -> MutableMapping[str, str]:
        return self._backend

    def get_stored_token(self) -> Optional[str]:
        return self._backend.get(self._keys.token) or None

    def get_stored_refresh_token(self) -> Optional[str]:
        return self._backend.get(self._keys.refresh_token) or None

    def get_stored_user(self) -> Optional[Principal]:
        raw = self._backend.get(self._keys.user)
        if not raw:
            return None
        try:
            return Principal.from_json(raw)
        except (ValidationError, ValueError):
            return None

    def set_auth_data(self, token: str, refresh_token: Optional[str], user: Principal) -> None:
        self._backend[self._keys.token] = token
        if refresh_token:
            self._backend[self._keys.refresh_token] = refresh_token
        else:
            self._backend.pop(self._keys.refresh_token, None)
        self._backend[self._keys.user] = user.to_json()

    def clear_auth_data(self) -> None:
        for key in (self._keys.token, self._keys.refresh_token, self._keys.user):
            self._backend.pop(key, None)

    def is_authenticated(self) -> bool:
        return self.get_stored_token() is not None


class JsonFileStore(MutableMapping[str, str]):
    """
    Espace clé-valeur persisté dans un fichier JSON.

    Chaque écriture remplace le fichier de façon atomique
    (fichier temporaire + rename), la lecture se fait au démarrage.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
        self._data: Dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".session-")
        except OSError as e:
            raise StorageError(f"Écriture impossible: {self._path}: {e}")

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as e:
            # Fichier temporaire retiré, l'original reste intact
            Path(tmp).unlink(missing_ok=True)
            raise StorageError(f"Écriture impossible: {self._path}: {e}")

    def reload(self) -> None:
        """Relit le fichier (modification hors processus)."""
        self._data = self._read()

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._flush()

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)
