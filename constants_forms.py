from __future__ import annotations

import re

PROGRAM_BSIT = "Bachelor of Science in Information Technology"
PROGRAM_DIT = "Diploma in Information Technology"

PROGRAMS: list[str] = [PROGRAM_BSIT, PROGRAM_DIT]

YEAR_LEVELS_BY_PROGRAM: dict[str, list[str]] = {
    PROGRAM_BSIT: ["1st Year", "2nd Year", "3rd Year", "4th Year"],
    PROGRAM_DIT: ["1st Year", "2nd Year", "3rd Year"],
}

REGISTRATION_FIELDS: list[str] = [
    "student_number",
    "last_name",
    "first_name",
    "program",
    "year_level",
]

# year_level only counts towards progress once a program is chosen.
REGISTRATION_BASE_FIELDS: list[str] = REGISTRATION_FIELDS[:4]

REGISTRATION_FIELD_LABELS: dict[str, str] = {
    "student_number": "Student Number",
    "last_name": "Last Name",
    "first_name": "First Name",
    "program": "Program",
    "year_level": "Year Level",
}

# Format YYYY-NNNNN-TG-0, e.g. 2023-00011-TG-0.
STUDENT_NUMBER_PATTERN = re.compile(r"[0-9]{4}-[0-9]{5}-TG-0")
STUDENT_NUMBER_EXAMPLE = "2023-00011-TG-0"
NAME_PATTERN = re.compile(r"[A-Za-z\s]+")

STUDENT_NUMBER_ERROR = (
    f"Student number must follow the format YYYY-NNNNN-TG-0 "
    f"(e.g. {STUDENT_NUMBER_EXAMPLE})"
)
NAME_ERROR = "Name should contain only letters"

STORAGE_KEY_PREFIX = "student_"
IDENTITY_ID_PREFIX = "CSCB"
QR_FILE_NAME_TEMPLATE = "{first_name}_{last_name}_QRCode.png"

# Canonical mappings for UI state keys and JSON payload keys.
REGISTRATION_UI_KEYS: dict[str, str] = {
    field_name: f"registration_{field_name}" for field_name in REGISTRATION_FIELDS
}
REGISTRATION_PAYLOAD_KEYS: dict[str, str] = {
    "student_number": "studentNumber",
    "last_name": "lastName",
    "first_name": "firstName",
    "program": "program",
    "year_level": "yearLevel",
}
