# caja/infra/__init__.py
"""
Infra package: result monad, store, settings, logging, time.

Regla:
- NO importar el CLI aquí, para evitar RuntimeWarning de runpy
  al ejecutar `python -m caja.cli`.
"""

from __future__ import annotations

from .result import Err, Ok, Result
from .store import (
    JsonFileBackend,
    KeyValueBackend,
    MemoryBackend,
    RecordStore,
    StoreError,
    StoreQuotaExceeded,
    open_file_store,
)

__all__ = [
    "Err",
    "Ok",
    "Result",
    "JsonFileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "RecordStore",
    "StoreError",
    "StoreQuotaExceeded",
    "open_file_store",
]
