from __future__ import annotations

import json
import logging
from pathlib import Path

from constants import STORAGE_KEY_PREFIX

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Fehler beim Schreiben in den lokalen Registrierungsspeicher."""


class StorageQuotaExceededError(PersistenceError):
    """Der Schreibvorgang würde das konfigurierte Speicherlimit überschreiten."""


def storage_key(student_number: str) -> str:
    return f"{STORAGE_KEY_PREFIX}{student_number}"


class RegistrationStore:
    """Synchroner Key-Value-Speicher in einer lokalen JSON-Datei.

    Werte sind Strings (serialisierte Datensätze); ein erneutes ``put`` unter
    demselben Schlüssel überschreibt den alten Wert.
    """

    def __init__(self, file_path: Path, quota_bytes: int | None = None) -> None:
        self.file_path = file_path
        self.quota_bytes = quota_bytes

    def _read_index(self) -> dict[str, str]:
        if not self.file_path.exists():
            return {}
        data = json.loads(self.file_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise PersistenceError(
                f"Registrierungsspeicher hat ein ungültiges Format: {self.file_path}"
            )
        return {str(key): str(value) for key, value in data.items()}

    def _write_index(self, index: dict[str, str]) -> None:
        serialized = json.dumps(index, ensure_ascii=False, indent=2)
        size = len(serialized.encode("utf-8"))
        if self.quota_bytes is not None and size > self.quota_bytes:
            raise StorageQuotaExceededError(
                f"Speicherlimit überschritten ({size} > {self.quota_bytes} Bytes)."
            )
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(serialized, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(
                f"Registrierung konnte nicht gespeichert werden: {exc}"
            ) from exc

    def put(self, key: str, value: str) -> None:
        try:
            index = self._read_index()
        except (OSError, ValueError) as exc:
            raise PersistenceError(
                f"Registrierungsspeicher ist nicht lesbar: {exc}"
            ) from exc

        if key in index:
            logger.info("Bestehender Eintrag wird überschrieben: %s", key)
        index[key] = value
        self._write_index(index)

    def get(self, key: str) -> str | None:
        return self._read_index().get(key)

    def keys(self) -> list[str]:
        return sorted(self._read_index())
