from __future__ import annotations

import json
from pathlib import Path

import pytest

from caja.infra.store import (
    JsonFileBackend,
    MemoryBackend,
    RecordStore,
    StoreQuotaExceeded,
    open_file_store,
)


def test_load_missing_key_returns_empty_list() -> None:
    store = RecordStore(MemoryBackend())
    assert store.load("cajaData") == []
    assert store.has("cajaData") is False


def test_save_then_load_roundtrip_whole_collection() -> None:
    store = RecordStore(MemoryBackend())
    records = [{"codigo": "CAJ-ABCD", "montoApertura": "10.00"}, {"codigo": "CAJ-EFGH"}]

    assert store.save("cajaData", records) is True
    assert store.load("cajaData") == records
    assert store.has("cajaData") is True


def test_load_corrupt_or_non_array_returns_empty() -> None:
    backend = MemoryBackend()
    backend.set_item("cajaData", "{not json")
    backend.set_item("otro", json.dumps({"a": 1}))
    store = RecordStore(backend)

    assert store.load("cajaData") == []
    assert store.load("otro") == []


def test_memory_backend_quota_rejects_write_and_keeps_previous() -> None:
    backend = MemoryBackend(quota_bytes=64)
    backend.set_item("k", "x" * 10)

    with pytest.raises(StoreQuotaExceeded):
        backend.set_item("k", "x" * 100)

    assert backend.get_item("k") == "x" * 10


def test_save_returns_false_when_quota_exceeded() -> None:
    store = RecordStore(MemoryBackend(quota_bytes=80))
    assert store.save("cajaData", [{"codigo": "CAJ-A"}]) is True

    big = [{"codigo": "CAJ-A", "descripcion": "x" * 200}]
    assert store.save("cajaData", big) is False
    assert store.load("cajaData") == [{"codigo": "CAJ-A"}]


def test_flags_roundtrip() -> None:
    store = RecordStore(MemoryBackend())
    assert store.get_flag("migration_caja_v2") is False
    assert store.set_flag("migration_caja_v2") is True
    assert store.get_flag("migration_caja_v2") is True


def test_json_file_backend_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "data" / "store.json"
    s1 = open_file_store(path)
    assert s1.save("cajaData", [{"codigo": "CAJ-ABCD"}]) is True
    assert s1.set_flag("migration_codes_v1") is True
    assert path.exists() is True

    s2 = open_file_store(path)
    assert s2.load("cajaData") == [{"codigo": "CAJ-ABCD"}]
    assert s2.get_flag("migration_codes_v1") is True
    assert not (tmp_path / "data" / "store.json.tmp").exists()


def test_json_file_backend_corrupt_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("NOT VALID JSON {{{", encoding="utf-8")

    backend = JsonFileBackend(path)
    assert backend.keys() == []
    assert RecordStore(backend).load("cajaData") == []


def test_json_file_backend_quota_leaves_file_untouched(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    store = open_file_store(path, quota_bytes=100)
    assert store.save("cajaData", []) is True
    before = path.read_text(encoding="utf-8")

    assert store.save("cajaData", [{"descripcion": "y" * 500}]) is False
    assert path.read_text(encoding="utf-8") == before
    assert store.load("cajaData") == []


def test_remove_item(tmp_path: Path) -> None:
    backend = JsonFileBackend(tmp_path / "store.json")
    backend.set_item("a", "1")
    backend.remove_item("a")
    backend.remove_item("missing")
    assert backend.get_item("a") is None


def test_json_file_backend_failed_write_leaves_no_tmp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "store.json"
    store = open_file_store(path)
    assert store.save("cajaData", [{"codigo": "CAJ-AAAA"}]) is True

    def _broken_fsync(fd: int) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("caja.infra.store.os.fsync", _broken_fsync)
    assert store.save("cajaData", [{"codigo": "CAJ-BBBB"}]) is False

    assert not (tmp_path / "store.json.tmp").exists()
    assert store.load("cajaData") == [{"codigo": "CAJ-AAAA"}]
    assert json.loads(json.loads(path.read_text(encoding="utf-8"))["cajaData"]) == [{"codigo": "CAJ-AAAA"}]
