from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO

import qrcode
from PIL import Image, ImageColor, ImageDraw
from qrcode.constants import (
    ERROR_CORRECT_H,
    ERROR_CORRECT_L,
    ERROR_CORRECT_M,
    ERROR_CORRECT_Q,
)
from qrcode.exceptions import DataOverflowError

from constants import QR_FILE_NAME_TEMPLATE, ErrorCorrection
from domain.models import EncodedImage, IdentityRecord

logger = logging.getLogger(__name__)

_ERROR_CORRECTION_LEVELS = {
    ErrorCorrection.LOW: ERROR_CORRECT_L,
    ErrorCorrection.MEDIUM: ERROR_CORRECT_M,
    ErrorCorrection.QUARTILE: ERROR_CORRECT_Q,
    ErrorCorrection.HIGH: ERROR_CORRECT_H,
}


class QrEncodingError(RuntimeError):
    """QR-Code konnte nicht erzeugt werden."""


@dataclass(frozen=True)
class QrOptions:
    size: int = 300
    margin: int = 2
    dark_color: str = "#000000"
    light_color: str = "#FFFFFF"
    error_correction: ErrorCorrection = ErrorCorrection.MEDIUM


def qr_file_name(first_name: str, last_name: str) -> str:
    return QR_FILE_NAME_TEMPLATE.format(first_name=first_name, last_name=last_name)


class QrEncoder:
    """Erzeugt quadratische PNG-QR-Codes fester Größe aus Text oder Datensätzen."""

    def __init__(self, options: QrOptions | None = None) -> None:
        self.options = options or QrOptions()

    def encode(self, record: IdentityRecord) -> EncodedImage:
        return self.encode_text(record.to_json())

    def encode_text(self, text: str) -> EncodedImage:
        options = self.options
        try:
            dark = ImageColor.getrgb(options.dark_color)
            light = ImageColor.getrgb(options.light_color)
        except ValueError as exc:
            raise QrEncodingError(f"Ungültige QR-Farbe: {exc}") from exc

        matrix = self._build_matrix(text)
        module_count = len(matrix)
        box_size = options.size // module_count
        if box_size < 1:
            raise QrEncodingError(
                f"Daten zu groß für {options.size}px: {module_count} Module benötigt."
            )

        offset = (options.size - box_size * module_count) // 2
        image = Image.new("RGB", (options.size, options.size), light)
        draw = ImageDraw.Draw(image)
        for row_index, row in enumerate(matrix):
            for col_index, is_dark in enumerate(row):
                if not is_dark:
                    continue
                left = offset + col_index * box_size
                top = offset + row_index * box_size
                draw.rectangle(
                    (left, top, left + box_size - 1, top + box_size - 1), fill=dark
                )

        buffer = BytesIO()
        try:
            image.save(buffer, format="PNG")
        except OSError as exc:
            raise QrEncodingError(f"PNG konnte nicht geschrieben werden: {exc}") from exc

        logger.debug(
            "QR-Code erzeugt: %s Module, %spx pro Modul", module_count, box_size
        )
        return EncodedImage(png_bytes=buffer.getvalue(), payload=text, size=options.size)

    def _build_matrix(self, text: str) -> list[list[bool]]:
        qr = qrcode.QRCode(
            version=None,
            error_correction=_ERROR_CORRECTION_LEVELS[
                ErrorCorrection(self.options.error_correction)
            ],
            border=self.options.margin,
        )
        qr.add_data(text)
        try:
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as exc:
            raise QrEncodingError(f"Daten passen in keinen QR-Code: {exc}") from exc
        return qr.get_matrix()
