from __future__ import annotations

import argparse
import sys
import tomllib
from pathlib import Path
from typing import Any

from config import AppConfig, ConfigError, load_app_config
from constants import PROGRAM_DIT, STUDENT_NUMBER_EXAMPLE
from domain.models import FormState
from services.identity_builder import build_identity
from services.qr_encoder import QrEncoder, QrEncodingError
from services.qr_verifier import QrDecodingError, decode_identity
from storage import PersistenceError, RegistrationStore, storage_key

_PROBE_FILE_NAME = "smoke_check_probe.json"


def _print_status(ok: bool, message: str) -> None:
    prefix = "OK" if ok else "FAIL"
    print(f"[{prefix}] {message}")


def _load_secrets(secrets_path: Path) -> dict[str, Any]:
    if not secrets_path.exists():
        return {}
    with secrets_path.open("rb") as file:
        data = tomllib.load(file)
    if not isinstance(data, dict):
        raise ValueError("Secrets-Datei ist kein gültiges TOML-Mapping.")
    return data


def _sample_form() -> FormState:
    return FormState(
        student_number=STUDENT_NUMBER_EXAMPLE,
        last_name="Cruz",
        first_name="Ana",
        program=PROGRAM_DIT,
        year_level="2nd Year",
    )


def _storage_check(app_config: AppConfig) -> None:
    probe_file = app_config.local.data_dir / _PROBE_FILE_NAME
    store = RegistrationStore(probe_file, quota_bytes=app_config.local.quota_bytes)
    key = storage_key(STUDENT_NUMBER_EXAMPLE)
    try:
        store.put(key, "{}")
        if store.get(key) != "{}":
            raise PersistenceError("Geschriebener Wert konnte nicht gelesen werden.")
    finally:
        probe_file.unlink(missing_ok=True)

    _print_status(True, f"Speicher beschreibbar ({app_config.local.data_dir}).")


def _qr_roundtrip_check(app_config: AppConfig) -> None:
    record = build_identity(_sample_form())
    image = QrEncoder(app_config.qr.to_options()).encode(record)
    decoded = decode_identity(image.png_bytes)
    if decoded != record:
        raise QrDecodingError("Dekodierter Datensatz weicht vom Original ab.")

    _print_status(
        True, f"QR-Code erzeugt und gelesen ({image.size}px, {len(image.png_bytes)} Bytes)."
    )


def run(secrets_path: Path) -> int:
    try:
        secrets = _load_secrets(secrets_path)
        app_config = load_app_config(secrets)
        _print_status(True, f"Konfiguration geladen ({secrets_path}).")
    except (OSError, tomllib.TOMLDecodeError, ValueError, ConfigError) as error:
        _print_status(False, f"Konfigurations-Check fehlgeschlagen: {error}")
        return 1

    try:
        _storage_check(app_config)
    except PersistenceError as error:
        _print_status(False, f"Speicher-Check fehlgeschlagen: {error}")
        return 1

    try:
        _qr_roundtrip_check(app_config)
    except (QrEncodingError, QrDecodingError) as error:
        _print_status(False, f"QR-Check fehlgeschlagen: {error}")
        return 1

    _print_status(True, "Smoke-Check abgeschlossen.")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Smoke-Checks für Konfiguration, lokalen Speicher und QR-Erzeugung.",
    )
    parser.add_argument(
        "--secrets",
        type=Path,
        default=Path(".streamlit/secrets.toml"),
        help="Pfad zur Streamlit secrets.toml (Default: .streamlit/secrets.toml)",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    sys.exit(run(args.secrets))
