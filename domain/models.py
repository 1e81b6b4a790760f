from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any

from constants import REGISTRATION_FIELDS, REGISTRATION_PAYLOAD_KEYS


@dataclass(frozen=True, slots=True)
class FormState:
    """Rohwerte des Registrierungsformulars plus Fehler pro Feld."""

    student_number: str = ""
    last_name: str = ""
    first_name: str = ""
    program: str = ""
    year_level: str = ""
    field_errors: dict[str, str] = field(default_factory=dict)

    def value(self, name: str) -> str:
        if name not in REGISTRATION_FIELDS:
            raise KeyError(f"Unbekanntes Formularfeld: {name!r}")
        return getattr(self, name)

    def error(self, name: str) -> str:
        return self.field_errors.get(name, "")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            REGISTRATION_PAYLOAD_KEYS[name]: getattr(self, name)
            for name in REGISTRATION_FIELDS
        }
        data["fieldErrors"] = {
            REGISTRATION_PAYLOAD_KEYS[name]: message
            for name, message in self.field_errors.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormState:
        payload_to_field = {
            payload_key: name for name, payload_key in REGISTRATION_PAYLOAD_KEYS.items()
        }
        raw_errors = data.get("fieldErrors") or {}
        field_errors = {
            payload_to_field[key]: str(message)
            for key, message in raw_errors.items()
            if key in payload_to_field
        }
        return cls(
            **{
                name: str(data.get(REGISTRATION_PAYLOAD_KEYS[name]) or "")
                for name in REGISTRATION_FIELDS
            },
            field_errors=field_errors,
        )


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    student_number: str
    full_name: str
    program: str
    year_level: str
    registration_date: str
    id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "studentNumber": self.student_number,
            "fullName": self.full_name,
            "program": self.program,
            "yearLevel": self.year_level,
            "registrationDate": self.registration_date,
            "id": self.id,
        }

    def to_json(self) -> str:
        """Kanonische, kompakte JSON-Darstellung (byte-identisch pro Record)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityRecord:
        missing = [
            key
            for key in (
                "studentNumber",
                "fullName",
                "program",
                "yearLevel",
                "registrationDate",
                "id",
            )
            if not isinstance(data.get(key), str)
        ]
        if missing:
            raise ValueError(
                "Identitätsdatensatz ist unvollständig: " + ", ".join(missing)
            )
        return cls(
            student_number=data["studentNumber"],
            full_name=data["fullName"],
            program=data["program"],
            year_level=data["yearLevel"],
            registration_date=data["registrationDate"],
            id=data["id"],
        )

    @classmethod
    def from_json(cls, payload: str) -> IdentityRecord:
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError("Identitätsdatensatz muss ein JSON-Objekt sein.")
        return cls.from_dict(data)


@dataclass(frozen=True, slots=True)
class EncodedImage:
    png_bytes: bytes
    payload: str
    size: int

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.png_bytes).decode("utf-8")
        return f"data:image/png;base64,{encoded}"
