"""Key/value record store (localStorage-like).

Cada colección vive bajo una clave string como un array JSON de registros.
Los flags de migración se guardan en el mismo backend con valor "true".

Backends:
- MemoryBackend: dict en memoria (tests, dry-run).
- JsonFileBackend: un solo archivo JSON, escritura atómica (tmp + os.replace).

Ambos respetan una cuota opcional de tamaño, igual que el navegador: si la
escritura la excede se lanza StoreQuotaExceeded y el estado anterior queda intacto.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import deal

from caja.infra.logging_std import get_logger

logger = get_logger(__name__)

FLAG_TRUE = "true"


class StoreError(Exception):
    """Base error for key/value backends."""


class StoreQuotaExceeded(StoreError):
    """Write would exceed the configured quota."""


class KeyValueBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


def _usage(data: Dict[str, str]) -> int:
    return sum(len(k) + len(v) for k, v in data.items())


def _check_quota(data: Dict[str, str], quota_bytes: Optional[int]) -> None:
    if quota_bytes is None:
        return
    used = _usage(data)
    if used > quota_bytes:
        raise StoreQuotaExceeded(f"quota exceeded: {used} > {quota_bytes}")


class MemoryBackend:
    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._data: Dict[str, str] = {}
        self._quota = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = dict(self._data)
        candidate[key] = value
        _check_quota(candidate, self._quota)
        self._data = candidate

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class JsonFileBackend:
    """
    Un archivo JSON con todas las claves.

    Lectura: si el archivo no existe o está corrupto, arranca vacío (se loguea).
    Escritura: todo el mapa, atómica; si falla, el mapa en memoria no cambia.
    """

    def __init__(self, path: Union[str, Path], quota_bytes: Optional[int] = None) -> None:
        self._path = Path(path)
        self._quota = quota_bytes
        self._data: Dict[str, str] = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError):
            logger.error("store file unreadable, starting empty: %s", self._path, exc_info=True)
            return {}
        if not isinstance(raw, dict):
            logger.error("store file root is not an object, starting empty: %s", self._path)
            return {}
        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in raw.items()}

    def _atomic_write(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        content = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(str(tmp_path), str(self._path))
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = dict(self._data)
        candidate[key] = value
        _check_quota(candidate, self._quota)
        self._atomic_write(candidate)
        self._data = candidate

    def remove_item(self, key: str) -> None:
        if key not in self._data:
            return
        candidate = dict(self._data)
        del candidate[key]
        self._atomic_write(candidate)
        self._data = candidate

    def keys(self) -> List[str]:
        return sorted(self._data)


class RecordStore:
    """
    load(key) -> list   (vacío si no existe o está corrupto)
    save(key, records) -> bool   (False si el backend falla; nunca lanza)
    """

    def __init__(self, backend: Optional[KeyValueBackend] = None) -> None:
        self._backend: KeyValueBackend = backend if backend is not None else MemoryBackend()

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    def has(self, key: str) -> bool:
        return self._backend.get_item(key) is not None

    @deal.pre(lambda self, key: isinstance(key, str) and key.strip() != "", message="key required")
    @deal.post(lambda result: isinstance(result, list), message="load must return list")
    def load(self, key: str) -> List[Dict[str, Any]]:
        raw = self._backend.get_item(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("corrupt collection, treating as empty", extra={"extra_data": {"key": key}})
            return []
        if not isinstance(data, list):
            logger.warning("collection is not an array, treating as empty", extra={"extra_data": {"key": key}})
            return []
        return data

    @deal.pre(lambda self, key, records: isinstance(key, str) and key.strip() != "", message="key required")
    @deal.pre(lambda self, key, records: isinstance(records, list), message="records must be a list")
    @deal.post(lambda result: isinstance(result, bool), message="save must return bool")
    def save(self, key: str, records: List[Dict[str, Any]]) -> bool:
        try:
            payload = json.dumps(records, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.error("collection not serializable", extra={"extra_data": {"key": key}}, exc_info=True)
            return False
        try:
            self._backend.set_item(key, payload)
        except (StoreError, OSError):
            logger.error(
                "No se pudieron guardar los datos; el almacenamiento puede estar lleno",
                extra={"extra_data": {"key": key, "records": len(records)}},
                exc_info=True,
            )
            return False
        logger.debug("collection saved", extra={"extra_data": {"key": key, "records": len(records)}})
        return True

    def get_flag(self, key: str) -> bool:
        return self._backend.get_item(key) == FLAG_TRUE

    def set_flag(self, key: str) -> bool:
        try:
            self._backend.set_item(key, FLAG_TRUE)
        except (StoreError, OSError):
            logger.error("flag write failed", extra={"extra_data": {"flag": key}}, exc_info=True)
            return False
        return True


def open_file_store(path: Union[str, Path], quota_bytes: Optional[int] = None) -> RecordStore:
    return RecordStore(JsonFileBackend(path, quota_bytes=quota_bytes))
