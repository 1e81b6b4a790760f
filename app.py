## app.py

from __future__ import annotations

import asyncio
import logging

import streamlit as st

from config import AppConfig, validate_config_or_stop
from constants import (
    PROGRAMS,
    REGISTRATION_FIELD_LABELS,
    STUDENT_NUMBER_EXAMPLE,
    SubmissionPhase,
)
from services.form_state import has_field_errors
from services.identity_builder import FieldValidationError, IncompleteSubmissionError
from services.qr_encoder import QrEncoder, QrEncodingError
from services.qr_verifier import QrDecodingError, decode_identity
from services.registration_workflow import RegistrationWorkflow
from storage import PersistenceError, RegistrationStore, storage_key
from ui.download import current_user_agent, render_download_action
from ui.layout import (
    bootstrap_page,
    card,
    error_banner,
    info_banner,
    page_header,
    progress_bar,
)
from ui.state_keys import (
    REGISTRATION_PREFIX,
    UIKeys,
    ensure_defaults,
    field_widget_key,
    reset_keys,
    ss_get,
    ss_set,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

bootstrap_page("Student Registration")

_RESULT_PHASES = (
    SubmissionPhase.PERSISTED,
    SubmissionPhase.ENCODING,
    SubmissionPhase.READY,
    SubmissionPhase.ENCODING_FAILED,
)


def _trigger_rerun() -> None:
    """Kompatibler Rerun für verschiedene Streamlit-Versionen."""
    rerun_fn = getattr(st, "rerun", None)
    if callable(rerun_fn):
        rerun_fn()
        return

    experimental_rerun_fn = getattr(st, "experimental_rerun", None)
    if callable(experimental_rerun_fn):
        experimental_rerun_fn()


def _build_workflow(app_config: AppConfig) -> RegistrationWorkflow:
    store = RegistrationStore(
        app_config.local.registrations_file,
        quota_bytes=app_config.local.quota_bytes,
    )
    return RegistrationWorkflow(store, QrEncoder(app_config.qr.to_options()))


def _workflow() -> RegistrationWorkflow:
    return ss_get(UIKeys.WORKFLOW)


def _on_field_change(field_name: str) -> None:
    value = st.session_state.get(field_widget_key(field_name)) or ""
    _workflow().update_field(field_name, value)
    if field_name == "program":
        st.session_state.pop(field_widget_key("year_level"), None)


def _reset_registration() -> None:
    _workflow().reset()
    reset_keys(REGISTRATION_PREFIX, keep=(UIKeys.WORKFLOW,))


def _field_error(field_name: str) -> None:
    message = _workflow().form.error(field_name)
    if message:
        st.caption(f":red[{message}]")


def _text_field(field_name: str, placeholder: str) -> None:
    st.text_input(
        f"{REGISTRATION_FIELD_LABELS[field_name]} *",
        key=field_widget_key(field_name),
        placeholder=placeholder,
        on_change=_on_field_change,
        args=(field_name,),
    )
    _field_error(field_name)


@st.dialog("Registration Successful")
def _success_dialog() -> None:
    st.write("Your registration has been completed successfully!")
    st.write("You can now download your QR code below.")
    if st.button("Close", use_container_width=True):
        _trigger_rerun()


def _render_registration_form(workflow: RegistrationWorkflow) -> None:
    progress_bar(workflow.progress)

    _text_field("student_number", f"e.g. {STUDENT_NUMBER_EXAMPLE}")
    _text_field("last_name", "Enter your last name")
    _text_field("first_name", "Enter your first name")

    st.selectbox(
        f"{REGISTRATION_FIELD_LABELS['program']} *",
        options=PROGRAMS,
        index=None,
        placeholder="Select your program",
        key=field_widget_key("program"),
        on_change=_on_field_change,
        args=("program",),
    )

    year_levels = workflow.year_levels
    st.selectbox(
        f"{REGISTRATION_FIELD_LABELS['year_level']} *",
        options=year_levels,
        index=None,
        placeholder="Select your year level" if year_levels else "Select a program first",
        disabled=not year_levels,
        key=field_widget_key("year_level"),
        on_change=_on_field_change,
        args=("year_level",),
    )

    if has_field_errors(workflow.form):
        st.caption("Correct the highlighted fields to register.")

    if not st.button("Register", type="primary", use_container_width=True):
        return

    try:
        with st.spinner("Processing registration..."):
            record = workflow.submit()
    except IncompleteSubmissionError as exc:
        error_banner("Please fill in all fields.", details=str(exc))
        return
    except FieldValidationError:
        error_banner("Please fix the errors before submitting.")
        return
    except PersistenceError as exc:
        error_banner("Registration failed. Please try again.", details=str(exc))
        return

    logger.info("Registrierung abgeschlossen: %s", record.id)
    # Die Anzeigefläche existiert erst im nächsten Lauf, der Auftrag wird aufgeschoben.
    workflow.request_encoding()
    ss_set(UIKeys.SHOW_DIALOG, True)
    _trigger_rerun()


def _render_registration_result(workflow: RegistrationWorkflow) -> None:
    if ss_get(UIKeys.SHOW_DIALOG):
        ss_set(UIKeys.SHOW_DIALOG, False)
        _success_dialog()

    record = workflow.record
    with card("Your QR Code"):
        surface = st.empty()
        request = workflow.attach_surface()
        if request is not None:
            with st.spinner("Generating QR code..."):
                asyncio.run(workflow.run_encoding(request))

        image = workflow.image
        if workflow.phase == SubmissionPhase.READY and image is not None:
            surface.image(image.png_bytes, width=image.size)
            render_download_action(
                image,
                workflow.form.first_name,
                workflow.form.last_name,
                user_agent=current_user_agent(),
            )
            if st.button("Redraw QR code", use_container_width=True):
                try:
                    workflow.rerender()
                except QrEncodingError as exc:
                    error_banner("Failed to redraw QR code.", details=str(exc))
                else:
                    _trigger_rerun()
        elif workflow.phase == SubmissionPhase.ENCODING_FAILED:
            surface.empty()
            error_banner(
                "Failed to generate QR code. Please try again.",
                details=workflow.session.encoding_error,
            )
            if st.button("Retry", type="primary", use_container_width=True):
                asyncio.run(workflow.retry_encoding())
                _trigger_rerun()

    if record is not None:
        with card("Registration details"):
            st.markdown(
                f"**Student Number:** {record.student_number}  \n"
                f"**Name:** {record.full_name}  \n"
                f"**Program:** {record.program}  \n"
                f"**Year Level:** {record.year_level}"
            )
            st.caption(f"ID: {record.id} · {record.registration_date}")

    st.button(
        "Register another student",
        on_click=_reset_registration,
        use_container_width=True,
    )


def _render_verify_page(store: RegistrationStore) -> None:
    info_banner("Upload a registration QR code to check it against the stored record.")
    uploaded = st.file_uploader(
        "QR code image", type=["png", "jpg", "jpeg"], key=UIKeys.VERIFY_UPLOAD
    )
    if uploaded is None:
        return

    try:
        record = decode_identity(uploaded.getvalue())
    except QrDecodingError as exc:
        error_banner("This image does not contain a valid registration QR code.", str(exc))
        return

    st.json(record.to_dict())
    stored = store.get(storage_key(record.student_number))
    if stored is None:
        st.warning("No registration stored for this student number.")
    elif stored == record.to_json():
        st.success("QR code matches the stored registration.")
    else:
        st.warning("A newer registration exists for this student number.")


app_config = validate_config_or_stop()
if UIKeys.WORKFLOW not in st.session_state:
    ss_set(UIKeys.WORKFLOW, _build_workflow(app_config))
ensure_defaults({UIKeys.SHOW_DIALOG: False})

workflow = _workflow()

menu_labels: dict[str, str] = {
    "register": "Registration",
    "verify": "Verify QR code",
}
menu = st.sidebar.radio(
    "Menu",
    options=tuple(menu_labels.keys()),
    format_func=lambda key: menu_labels[key],
    key=UIKeys.NAV_MAIN,
)

if menu == "verify":
    workflow.detach_surface()
    page_header("Verify QR code")
    _render_verify_page(workflow.store)
else:
    page_header(
        "Student Registration",
        subtitle="Register once and download your QR code for attendance.",
    )
    if workflow.phase in _RESULT_PHASES:
        _render_registration_result(workflow)
    else:
        _render_registration_form(workflow)
