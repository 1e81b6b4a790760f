from __future__ import annotations

import cv2
import numpy as np

from domain.models import IdentityRecord


class QrDecodingError(ValueError):
    """QR-Code konnte nicht gelesen oder nicht als Datensatz erkannt werden."""


def _decode_image(image_bytes: bytes) -> np.ndarray:
    image_array = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(image_array, cv2.IMREAD_COLOR)
    if image is None:
        raise QrDecodingError("Bilddaten konnten nicht dekodiert werden.")
    return image


def decode_payload(image_bytes: bytes) -> str:
    """Liest den Textinhalt eines QR-Codes aus PNG/JPEG-Bytes."""
    image = _decode_image(image_bytes)
    detector = cv2.QRCodeDetector()
    payload, _points, _straight = detector.detectAndDecode(image)
    if not payload:
        raise QrDecodingError("Im Bild wurde kein lesbarer QR-Code gefunden.")
    return payload


def decode_identity(image_bytes: bytes) -> IdentityRecord:
    payload = decode_payload(image_bytes)
    try:
        return IdentityRecord.from_json(payload)
    except ValueError as exc:
        raise QrDecodingError(
            f"QR-Code enthält keinen gültigen Registrierungsdatensatz: {exc}"
        ) from exc
