from __future__ import annotations

import logging
from datetime import UTC, datetime

from constants import IDENTITY_ID_PREFIX, REGISTRATION_FIELD_LABELS
from domain.models import FormState, IdentityRecord
from services.form_state import missing_fields, validate_field
from storage import RegistrationStore, storage_key

logger = logging.getLogger(__name__)


class RegistrationError(RuntimeError):
    """Basisfehler für abgelehnte Registrierungen."""


class IncompleteSubmissionError(RegistrationError):
    """Pflichtfelder fehlen beim Absenden."""

    def __init__(self, missing: list[str]) -> None:
        labels = ", ".join(REGISTRATION_FIELD_LABELS[name] for name in missing)
        super().__init__(f"Please fill in all fields (missing: {labels})")
        self.missing = missing


class FieldValidationError(RegistrationError):
    """Mindestens ein Feld enthält einen ungültigen Wert."""

    def __init__(self, field_errors: dict[str, str]) -> None:
        super().__init__("Please fix the errors before submitting")
        self.field_errors = field_errors


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def build_identity(state: FormState, *, now: datetime | None = None) -> IdentityRecord:
    """Baut den unveränderlichen Identitätsdatensatz aus einem gültigen Formular."""
    missing = missing_fields(state)
    if missing:
        raise IncompleteSubmissionError(missing)

    field_errors = {
        name: message
        for name, message in (
            (name, state.error(name) or validate_field(name, state.value(name)))
            for name in ("student_number", "last_name", "first_name")
        )
        if message
    }
    if field_errors:
        raise FieldValidationError(field_errors)

    created_at = now or datetime.now(UTC)
    epoch_ms = int(created_at.timestamp()) * 1000 + created_at.microsecond // 1000
    return IdentityRecord(
        student_number=state.student_number,
        full_name=f"{state.first_name} {state.last_name}",
        program=state.program,
        year_level=state.year_level,
        registration_date=_format_timestamp(created_at),
        id=f"{IDENTITY_ID_PREFIX}-{state.student_number}-{epoch_ms}",
    )


def persist_identity(record: IdentityRecord, store: RegistrationStore) -> str:
    """Schreibt den Datensatz unter ``student_<nummer>``; Fehler werden weitergereicht."""
    key = storage_key(record.student_number)
    store.put(key, record.to_json())
    logger.info("Registrierung gespeichert: %s", key)
    return key
