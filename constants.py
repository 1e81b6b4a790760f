from enum import Enum

from constants_forms import (
    IDENTITY_ID_PREFIX,
    NAME_ERROR,
    NAME_PATTERN,
    PROGRAM_BSIT,
    PROGRAM_DIT,
    PROGRAMS,
    QR_FILE_NAME_TEMPLATE,
    REGISTRATION_BASE_FIELDS,
    REGISTRATION_FIELD_LABELS,
    REGISTRATION_FIELDS,
    REGISTRATION_PAYLOAD_KEYS,
    REGISTRATION_UI_KEYS,
    STORAGE_KEY_PREFIX,
    STUDENT_NUMBER_ERROR,
    STUDENT_NUMBER_EXAMPLE,
    STUDENT_NUMBER_PATTERN,
    YEAR_LEVELS_BY_PROGRAM,
)

__all__ = [
    "SubmissionPhase",
    "ErrorCorrection",
    "IDENTITY_ID_PREFIX",
    "NAME_ERROR",
    "NAME_PATTERN",
    "PROGRAM_BSIT",
    "PROGRAM_DIT",
    "PROGRAMS",
    "QR_FILE_NAME_TEMPLATE",
    "REGISTRATION_BASE_FIELDS",
    "REGISTRATION_FIELD_LABELS",
    "REGISTRATION_FIELDS",
    "REGISTRATION_PAYLOAD_KEYS",
    "REGISTRATION_UI_KEYS",
    "STORAGE_KEY_PREFIX",
    "STUDENT_NUMBER_ERROR",
    "STUDENT_NUMBER_EXAMPLE",
    "STUDENT_NUMBER_PATTERN",
    "YEAR_LEVELS_BY_PROGRAM",
]


class SubmissionPhase(str, Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    PERSISTED = "persisted"
    ENCODING = "encoding"
    READY = "ready"
    ENCODING_FAILED = "encoding_failed"


class ErrorCorrection(str, Enum):
    LOW = "L"
    MEDIUM = "M"
    QUARTILE = "Q"
    HIGH = "H"
