from __future__ import annotations

from dataclasses import replace

from constants import (
    NAME_ERROR,
    NAME_PATTERN,
    REGISTRATION_BASE_FIELDS,
    REGISTRATION_FIELDS,
    STUDENT_NUMBER_ERROR,
    STUDENT_NUMBER_PATTERN,
    YEAR_LEVELS_BY_PROGRAM,
)
from domain.models import FormState


def available_year_levels(program: str) -> list[str]:
    """Liefert die Jahrgangsstufen des Studiengangs (leer bei unbekanntem Wert)."""
    return list(YEAR_LEVELS_BY_PROGRAM.get(program, []))


def validate_field(name: str, value: str) -> str:
    """Prüft ein einzelnes Feld und gibt die Fehlermeldung oder ``""`` zurück.

    Leere Werte sind hier kein Fehler, Pflichtfelder werden erst beim
    Absenden geprüft.
    """
    if not value:
        return ""

    if name == "student_number":
        if not STUDENT_NUMBER_PATTERN.fullmatch(value):
            return STUDENT_NUMBER_ERROR
        return ""

    if name in ("last_name", "first_name"):
        if not NAME_PATTERN.fullmatch(value):
            return NAME_ERROR
        return ""

    return ""


def update_field(state: FormState, name: str, value: str) -> FormState:
    if name not in REGISTRATION_FIELDS:
        raise KeyError(f"Unbekanntes Formularfeld: {name!r}")

    field_errors = dict(state.field_errors)
    field_errors[name] = validate_field(name, value)
    changes: dict[str, str] = {name: value}

    if name == "program":
        changes["year_level"] = ""
        field_errors.pop("year_level", None)

    return replace(state, field_errors=field_errors, **changes)


def compute_progress(state: FormState) -> float:
    """Fortschritt in Prozent, ``year_level`` zählt erst nach Wahl des Studiengangs."""
    required_fields = list(REGISTRATION_BASE_FIELDS)
    if state.program:
        required_fields.append("year_level")

    filled = sum(1 for name in required_fields if state.value(name) != "")
    return filled / len(required_fields) * 100


def missing_fields(state: FormState) -> list[str]:
    return [name for name in REGISTRATION_FIELDS if not state.value(name)]


def has_field_errors(state: FormState) -> bool:
    return any(message for message in state.field_errors.values())
