from __future__ import annotations

import json
from pathlib import Path

import pytest

import storage
from storage import PersistenceError, RegistrationStore, StorageQuotaExceededError


def test_storage_key_uses_student_prefix() -> None:
    assert storage.storage_key("2023-00011-TG-0") == "student_2023-00011-TG-0"


def test_put_writes_synchronously_and_get_reads_back(tmp_path: Path) -> None:
    file_path = tmp_path / "nested" / "registrations.json"
    store = RegistrationStore(file_path)

    store.put("student_1", '{"a":1}')

    assert json.loads(file_path.read_text(encoding="utf-8")) == {"student_1": '{"a":1}'}
    assert store.get("student_1") == '{"a":1}'
    assert store.get("student_2") is None


def test_put_overwrites_existing_key(tmp_path: Path) -> None:
    store = RegistrationStore(tmp_path / "registrations.json")

    store.put("student_1", "old")
    store.put("student_2", "other")
    store.put("student_1", "new")

    assert store.get("student_1") == "new"
    assert store.keys() == ["student_1", "student_2"]


def test_put_raises_when_quota_exceeded(tmp_path: Path) -> None:
    file_path = tmp_path / "registrations.json"
    store = RegistrationStore(file_path, quota_bytes=40)

    with pytest.raises(StorageQuotaExceededError):
        store.put("student_1", "x" * 100)

    assert not file_path.exists()


def test_quota_error_is_a_persistence_error(tmp_path: Path) -> None:
    store = RegistrationStore(tmp_path / "registrations.json", quota_bytes=1)

    with pytest.raises(PersistenceError):
        store.put("student_1", "value")


def test_put_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = RegistrationStore(blocker / "registrations.json")

    with pytest.raises(PersistenceError, match="nicht gespeichert"):
        store.put("student_1", "value")


def test_put_rejects_corrupt_store_file(tmp_path: Path) -> None:
    file_path = tmp_path / "registrations.json"
    file_path.write_text("{not json", encoding="utf-8")
    store = RegistrationStore(file_path)

    with pytest.raises(PersistenceError, match="nicht lesbar"):
        store.put("student_1", "value")


def test_store_file_with_non_object_json_is_rejected(tmp_path: Path) -> None:
    file_path = tmp_path / "registrations.json"
    file_path.write_text(json.dumps(["student_1"]), encoding="utf-8")
    store = RegistrationStore(file_path)

    with pytest.raises(PersistenceError, match="ungültiges Format"):
        store.put("student_2", "value")
    with pytest.raises(PersistenceError, match="ungültiges Format"):
        store.keys()

    assert json.loads(file_path.read_text(encoding="utf-8")) == ["student_1"]
