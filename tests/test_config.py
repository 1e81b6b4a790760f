from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path

import pytest

import config
from constants import ErrorCorrection


class MappingLikeSection(Mapping[str, object]):
    """Mapping-ähnliche Secrets-Sektion ohne dict-Vererbung."""

    def __init__(self, values: Mapping[str, object]) -> None:
        self._values = values

    def __getitem__(self, key: str) -> object:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_key in (
        "APP_DATA_DIR",
        "APP_STORAGE_QUOTA_BYTES",
        "QR_SIZE",
        "QR_MARGIN",
        "QR_DARK_COLOR",
        "QR_LIGHT_COLOR",
        "QR_ERROR_CORRECTION",
    ):
        monkeypatch.delenv(env_key, raising=False)


def test_defaults_without_secrets(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    app_config = config.load_app_config({})

    assert app_config.local.data_dir == Path("./data")
    assert app_config.local.registrations_file == Path("./data/registrations.json")
    assert app_config.local.quota_bytes is None
    assert (tmp_path / "data").is_dir()
    assert app_config.qr == config.QrConfig(
        size=300,
        margin=2,
        dark_color="#000000",
        light_color="#FFFFFF",
        error_correction=ErrorCorrection.MEDIUM,
    )


def test_secrets_sections_are_read(tmp_path: Path) -> None:
    secrets = {
        "local": MappingLikeSection(
            {"data_dir": str(tmp_path / "store"), "quota_bytes": 5_000_000}
        ),
        "qr": {
            "size": 400,
            "margin": 4,
            "dark_color": "#112233",
            "light_color": "white",
            "error_correction": "q",
        },
    }

    app_config = config.load_app_config(secrets)

    assert app_config.local.registrations_file == tmp_path / "store" / "registrations.json"
    assert app_config.local.quota_bytes == 5_000_000
    options = app_config.qr.to_options()
    assert options.size == 400
    assert options.margin == 4
    assert options.dark_color == "#112233"
    assert options.light_color == "white"
    assert options.error_correction == ErrorCorrection.QUARTILE


def test_environment_fallback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path / "env-data"))
    monkeypatch.setenv("QR_SIZE", "512")
    monkeypatch.setenv("QR_ERROR_CORRECTION", "H")

    app_config = config.load_app_config({})

    assert app_config.local.data_dir == tmp_path / "env-data"
    assert app_config.qr.size == 512
    assert app_config.qr.error_correction == ErrorCorrection.HIGH


@pytest.mark.parametrize(
    ("secrets", "message"),
    [
        ({"qr": {"size": "abc"}}, "keine Ganzzahl"),
        ({"qr": {"size": 10}}, "mindestens 21"),
        ({"qr": {"margin": -1}}, "mindestens 0"),
        ({"qr": {"error_correction": "X"}}, "qr.error_correction"),
        ({"qr": {"dark_color": "nope"}}, "Ungültige Farbe"),
        ({"local": {"quota_bytes": 0}}, "mindestens 1"),
    ],
)
def test_invalid_values_raise_config_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    secrets: dict[str, object],
    message: str,
) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(config.ConfigError, match=message):
        config.load_app_config(secrets)


def test_get_app_config_reads_streamlit_secrets(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        config.st,
        "secrets",
        {"local": {"data_dir": str(tmp_path)}, "qr": {"size": 320}},
        raising=False,
    )
    config.get_app_config.clear()

    app_config = config.get_app_config()

    assert app_config.local.data_dir == tmp_path
    assert app_config.qr.size == 320
    config.get_app_config.clear()
