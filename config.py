"""Zentrale Konfiguration und Secret-Validierung für die Registrierungs-App."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import streamlit as st
from PIL import ImageColor
from streamlit.errors import StreamlitSecretNotFoundError

from constants import ErrorCorrection
from services.qr_encoder import QrOptions

DEFAULT_DATA_DIR = "./data"
DEFAULT_REGISTRATIONS_FILE = "registrations.json"
DEFAULT_QR_SIZE = 300
DEFAULT_QR_MARGIN = 2
DEFAULT_QR_DARK_COLOR = "#000000"
DEFAULT_QR_LIGHT_COLOR = "#FFFFFF"
DEFAULT_QR_ERROR_CORRECTION = ErrorCorrection.MEDIUM


class ConfigError(RuntimeError):
    """Fehler bei fehlender oder ungültiger Konfiguration."""


@dataclass(frozen=True)
class LocalConfig:
    """Lokaler Speicherort der Registrierungen."""

    data_dir: Path
    registrations_file: Path
    quota_bytes: int | None


@dataclass(frozen=True)
class QrConfig:
    size: int
    margin: int
    dark_color: str
    light_color: str
    error_correction: ErrorCorrection

    def to_options(self) -> QrOptions:
        return QrOptions(
            size=self.size,
            margin=self.margin,
            dark_color=self.dark_color,
            light_color=self.light_color,
            error_correction=self.error_correction,
        )


@dataclass(frozen=True)
class AppConfig:
    """App-weite Konfigurationswerte."""

    local: LocalConfig
    qr: QrConfig


def _section(secrets: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw_value = secrets.get(name, {})
    return raw_value if isinstance(raw_value, Mapping) else {}


def _read_secret_or_env(
    secrets_section: Mapping[str, Any],
    key: str,
    env_key: str,
) -> str | None:
    secret_value = secrets_section.get(key)
    if isinstance(secret_value, (int, float)) and not isinstance(secret_value, bool):
        return str(secret_value)
    if isinstance(secret_value, str) and secret_value.strip():
        return secret_value.strip()

    env_value = os.getenv(env_key)
    if isinstance(env_value, str) and env_value.strip():
        return env_value.strip()
    return None


def _read_int(
    secrets_section: Mapping[str, Any],
    key: str,
    env_key: str,
    *,
    path: str,
    default: int | None,
    minimum: int,
) -> int | None:
    raw_value = _read_secret_or_env(secrets_section, key, env_key)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ConfigError(
            f"Ungültiger Wert für {path}: {raw_value!r} ist keine Ganzzahl."
        ) from exc
    if value < minimum:
        raise ConfigError(f"{path} muss mindestens {minimum} sein.")
    return value


def _read_color(
    secrets_section: Mapping[str, Any], key: str, env_key: str, default: str
) -> str:
    value = _read_secret_or_env(secrets_section, key, env_key) or default
    try:
        ImageColor.getrgb(value)
    except ValueError as exc:
        raise ConfigError(f"Ungültige Farbe für qr.{key}: {value!r}.") from exc
    return value


def _load_local_config(secrets: Mapping[str, Any]) -> LocalConfig:
    local_section = _section(secrets, "local")

    data_dir_raw = _read_secret_or_env(local_section, "data_dir", "APP_DATA_DIR")
    data_dir = Path(data_dir_raw) if data_dir_raw else Path(DEFAULT_DATA_DIR)
    quota_bytes = _read_int(
        local_section,
        "quota_bytes",
        "APP_STORAGE_QUOTA_BYTES",
        path="local.quota_bytes",
        default=None,
        minimum=1,
    )

    data_dir.mkdir(parents=True, exist_ok=True)

    return LocalConfig(
        data_dir=data_dir,
        registrations_file=data_dir / DEFAULT_REGISTRATIONS_FILE,
        quota_bytes=quota_bytes,
    )


def _load_qr_config(secrets: Mapping[str, Any]) -> QrConfig:
    qr_section = _section(secrets, "qr")

    size = _read_int(
        qr_section, "size", "QR_SIZE", path="qr.size", default=DEFAULT_QR_SIZE, minimum=21
    )
    margin = _read_int(
        qr_section,
        "margin",
        "QR_MARGIN",
        path="qr.margin",
        default=DEFAULT_QR_MARGIN,
        minimum=0,
    )

    level_raw = _read_secret_or_env(
        qr_section, "error_correction", "QR_ERROR_CORRECTION"
    )
    normalized_level = (level_raw or DEFAULT_QR_ERROR_CORRECTION.value).strip().upper()
    try:
        error_correction = ErrorCorrection(normalized_level)
    except ValueError as exc:
        raise ConfigError(
            "Ungültiger Wert für qr.error_correction. Erlaubte Werte: "
            "'L', 'M', 'Q', 'H'."
        ) from exc

    return QrConfig(
        size=size or DEFAULT_QR_SIZE,
        margin=margin if margin is not None else DEFAULT_QR_MARGIN,
        dark_color=_read_color(
            qr_section, "dark_color", "QR_DARK_COLOR", DEFAULT_QR_DARK_COLOR
        ),
        light_color=_read_color(
            qr_section, "light_color", "QR_LIGHT_COLOR", DEFAULT_QR_LIGHT_COLOR
        ),
        error_correction=error_correction,
    )


def load_app_config(secrets: Mapping[str, Any]) -> AppConfig:
    return AppConfig(local=_load_local_config(secrets), qr=_load_qr_config(secrets))


@st.cache_resource(show_spinner=False)
def get_app_config() -> AppConfig:
    """Lädt und validiert die zentrale App-Konfiguration aus ``st.secrets``."""
    return load_app_config(st.secrets)


def validate_config_or_stop() -> AppConfig:
    """Validiert die Konfiguration und stoppt die UI mit klarer Fehlermeldung bei Fehlern."""
    try:
        return get_app_config()
    except ConfigError as exc:
        st.error(
            f"Konfigurationsfehler: {exc}\n\nBitte secrets.toml gemäß README ergänzen."
        )
        st.error(
            "Configuration error: "
            f"{exc}\n\n"
            "Please update secrets.toml as documented in the README."
        )
        st.stop()
    except StreamlitSecretNotFoundError:
        # Ohne secrets.toml gelten die Standardwerte.
        return load_app_config({})
