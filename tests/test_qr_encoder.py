from __future__ import annotations

import base64
from io import BytesIO

import pytest
from PIL import Image

from constants import PROGRAM_DIT, ErrorCorrection
from domain.models import IdentityRecord
from services.qr_encoder import QrEncoder, QrEncodingError, QrOptions, qr_file_name
from services.qr_verifier import QrDecodingError, decode_identity, decode_payload

RECORD = IdentityRecord(
    student_number="2023-00011-TG-0",
    full_name="Ana Cruz",
    program=PROGRAM_DIT,
    year_level="2nd Year",
    registration_date="2026-10-16T08:30:15.123Z",
    id="CSCB-2023-00011-TG-0-1792139415123",
)


def _open(png_bytes: bytes) -> Image.Image:
    image = Image.open(BytesIO(png_bytes))
    image.load()
    return image


def test_encode_produces_square_png_of_nominal_size() -> None:
    image = QrEncoder().encode(RECORD)

    assert image.size == 300
    assert image.png_bytes.startswith(b"\x89PNG")
    assert _open(image.png_bytes).size == (300, 300)


def test_encode_payload_is_canonical_record_json() -> None:
    image = QrEncoder().encode(RECORD)

    assert image.payload == RECORD.to_json()
    assert image.payload.startswith('{"studentNumber":"2023-00011-TG-0","fullName":')


def test_encode_is_byte_identical_for_identical_records() -> None:
    encoder = QrEncoder()

    first = encoder.encode(RECORD)
    second = encoder.encode(IdentityRecord.from_json(RECORD.to_json()))

    assert first.png_bytes == second.png_bytes


def test_encoded_image_decodes_back_to_record() -> None:
    encoder = QrEncoder()

    first = decode_identity(encoder.encode(RECORD).png_bytes)
    second = decode_identity(encoder.encode(RECORD).png_bytes)

    assert first == RECORD
    assert first.to_json() == second.to_json()


def test_encode_uses_configured_colors() -> None:
    options = QrOptions(dark_color="#112233", light_color="#FFEEDD")
    image = _open(QrEncoder(options).encode(RECORD).png_bytes).convert("RGB")

    colors = {color for _count, color in image.getcolors(maxcolors=16) or []}

    assert colors == {(0x11, 0x22, 0x33), (0xFF, 0xEE, 0xDD)}
    assert image.getpixel((0, 0)) == (0xFF, 0xEE, 0xDD)


def test_higher_error_correction_still_fits() -> None:
    options = QrOptions(error_correction=ErrorCorrection.HIGH)

    image = QrEncoder(options).encode(RECORD)

    assert _open(image.png_bytes).size == (300, 300)
    assert image.png_bytes != QrEncoder().encode(RECORD).png_bytes


def test_data_uri_contains_png_bytes() -> None:
    image = QrEncoder().encode(RECORD)

    prefix = "data:image/png;base64,"
    assert image.data_uri.startswith(prefix)
    assert base64.b64decode(image.data_uri[len(prefix):]) == image.png_bytes


def test_encode_text_raises_when_payload_does_not_fit_canvas() -> None:
    encoder = QrEncoder(QrOptions(size=40))

    with pytest.raises(QrEncodingError, match="zu groß"):
        encoder.encode(RECORD)


def test_encode_text_raises_on_data_overflow() -> None:
    with pytest.raises(QrEncodingError):
        QrEncoder().encode_text("x" * 5000)


def test_encode_rejects_invalid_color() -> None:
    with pytest.raises(QrEncodingError, match="Farbe"):
        QrEncoder(QrOptions(dark_color="not-a-color")).encode(RECORD)


def test_qr_file_name_uses_first_and_last_name() -> None:
    assert qr_file_name("Ana", "Cruz") == "Ana_Cruz_QRCode.png"


def test_decode_rejects_non_image_bytes() -> None:
    with pytest.raises(QrDecodingError, match="dekodiert"):
        decode_payload(b"not an image")


def test_decode_rejects_image_without_code() -> None:
    buffer = BytesIO()
    Image.new("RGB", (120, 120), "white").save(buffer, format="PNG")

    with pytest.raises(QrDecodingError, match="kein lesbarer"):
        decode_payload(buffer.getvalue())


def test_decode_identity_rejects_foreign_payload() -> None:
    image = QrEncoder().encode_text("https://example.com")

    with pytest.raises(QrDecodingError, match="keinen gültigen"):
        decode_identity(image.png_bytes)
