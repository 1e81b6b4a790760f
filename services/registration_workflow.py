"""Zustandsautomat für den Ablauf einer Registrierung.

Editing -> Validating -> Submitting -> Persisted -> Encoding -> Ready
bzw. EncodingFailed. Ungültige Eingaben führen zurück nach Editing,
Persisted wird nie zurückgerollt, Ready verlässt man nur über ``reset``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable

from constants import SubmissionPhase
from domain.models import EncodedImage, FormState, IdentityRecord
from services import form_state
from services.identity_builder import (
    FieldValidationError,
    RegistrationError,
    build_identity,
    persist_identity,
)
from services.qr_encoder import QrEncoder, QrEncodingError
from storage import PersistenceError, RegistrationStore

logger = logging.getLogger(__name__)

_ENCODABLE_PHASES = (SubmissionPhase.PERSISTED, SubmissionPhase.ENCODING_FAILED)


class InvalidTransitionError(RegistrationError):
    """Aktion ist in der aktuellen Phase nicht erlaubt."""


@dataclass(frozen=True)
class EncodeRequest:
    record: IdentityRecord
    generation: int


@dataclass
class RegistrationSession:
    form: FormState = field(default_factory=FormState)
    phase: SubmissionPhase = SubmissionPhase.EDITING
    record: IdentityRecord | None = None
    image: EncodedImage | None = None
    encoding_error: str | None = None
    surface_ready: bool = False
    encode_pending: bool = False
    generation: int = 0


class RegistrationWorkflow:
    def __init__(
        self,
        store: RegistrationStore,
        encoder: QrEncoder,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.encoder = encoder
        self._clock = clock
        self.session = RegistrationSession()

    @property
    def phase(self) -> SubmissionPhase:
        return self.session.phase

    @property
    def form(self) -> FormState:
        return self.session.form

    @property
    def record(self) -> IdentityRecord | None:
        return self.session.record

    @property
    def image(self) -> EncodedImage | None:
        return self.session.image

    @property
    def progress(self) -> float:
        return form_state.compute_progress(self.session.form)

    @property
    def year_levels(self) -> list[str]:
        return form_state.available_year_levels(self.session.form.program)

    def _require_phase(self, *phases: SubmissionPhase) -> None:
        if self.session.phase not in phases:
            allowed = ", ".join(phase.value for phase in phases)
            raise InvalidTransitionError(
                f"Aktion in Phase '{self.session.phase.value}' nicht erlaubt "
                f"(erwartet: {allowed})."
            )

    def update_field(self, name: str, value: str) -> FormState:
        self._require_phase(SubmissionPhase.EDITING)
        self.session.form = form_state.update_field(self.session.form, name, value)
        return self.session.form

    def submit(self) -> IdentityRecord:
        """Validiert, baut und speichert den Datensatz.

        Bei Fehlern bleibt der Speicher unverändert und die Phase springt
        zurück auf Editing.
        """
        self._require_phase(SubmissionPhase.EDITING)
        session = self.session
        session.phase = SubmissionPhase.VALIDATING

        now = self._clock() if self._clock else None
        try:
            record = build_identity(session.form, now=now)
        except FieldValidationError as exc:
            session.form = replace(
                session.form,
                field_errors={**session.form.field_errors, **exc.field_errors},
            )
            session.phase = SubmissionPhase.EDITING
            raise
        except RegistrationError:
            session.phase = SubmissionPhase.EDITING
            raise

        session.phase = SubmissionPhase.SUBMITTING
        try:
            persist_identity(record, self.store)
        except PersistenceError:
            logger.exception("Registrierung für %s fehlgeschlagen", record.student_number)
            session.phase = SubmissionPhase.EDITING
            raise

        session.record = record
        session.image = None
        session.encoding_error = None
        session.phase = SubmissionPhase.PERSISTED
        return record

    def attach_surface(self) -> EncodeRequest | None:
        """Markiert die Anzeigefläche als bereit und liefert ggf. den aufgeschobenen Auftrag."""
        self.session.surface_ready = True
        if self.session.encode_pending and self.session.phase in _ENCODABLE_PHASES:
            self.session.encode_pending = False
            return self.request_encoding()
        return None

    def detach_surface(self) -> None:
        self.session.surface_ready = False

    def request_encoding(self) -> EncodeRequest | None:
        self._require_phase(*_ENCODABLE_PHASES)
        session = self.session
        if session.record is None:
            raise InvalidTransitionError("Kein gespeicherter Datensatz vorhanden.")

        if not session.surface_ready:
            logger.debug("Anzeigefläche fehlt, QR-Erzeugung wird aufgeschoben")
            session.encode_pending = True
            return None

        session.encode_pending = False
        session.image = None
        session.encoding_error = None
        session.phase = SubmissionPhase.ENCODING
        return EncodeRequest(record=session.record, generation=session.generation)

    def complete_encoding(
        self,
        request: EncodeRequest,
        *,
        image: EncodedImage | None = None,
        error: str | None = None,
    ) -> bool:
        """Übernimmt ein Ergebnis nur, wenn es zum aktuellen Datensatz gehört."""
        session = self.session
        if (
            request.generation != session.generation
            or request.record != session.record
            or session.phase != SubmissionPhase.ENCODING
        ):
            logger.info("Veraltetes QR-Ergebnis für %s verworfen", request.record.id)
            return False

        if error is not None or image is None:
            session.image = None
            session.encoding_error = error or "QR code generation returned no image"
            session.phase = SubmissionPhase.ENCODING_FAILED
            return True

        session.image = image
        session.encoding_error = None
        session.phase = SubmissionPhase.READY
        return True

    async def run_encoding(self, request: EncodeRequest) -> bool:
        try:
            image = await asyncio.to_thread(self.encoder.encode, request.record)
        except QrEncodingError as exc:
            logger.error("QR-Erzeugung fehlgeschlagen: %s", exc)
            return self.complete_encoding(request, error=str(exc))
        except Exception as exc:
            logger.exception("Unerwarteter Fehler bei der QR-Erzeugung")
            return self.complete_encoding(
                request, error=f"QR-Code konnte nicht erzeugt werden: {exc}"
            )
        return self.complete_encoding(request, image=image)

    async def encode(self) -> bool:
        request = self.request_encoding()
        if request is None:
            return False
        return await self.run_encoding(request)

    async def retry_encoding(self) -> bool:
        self._require_phase(SubmissionPhase.ENCODING_FAILED)
        return await self.encode()

    def rerender(self) -> EncodedImage:
        """Zeichnet den QR-Code aus dem gespeicherten Datensatz neu."""
        self._require_phase(SubmissionPhase.READY)
        if self.session.record is None:
            raise InvalidTransitionError("Kein gespeicherter Datensatz vorhanden.")
        image = self.encoder.encode(self.session.record)
        self.session.image = image
        return image

    def reset(self) -> None:
        self.session = RegistrationSession(generation=self.session.generation + 1)
