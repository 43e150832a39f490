from __future__ import annotations

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Union

from caja.infra.logging_std import get_logger
from caja.infra.result import Err, Ok, Result
from caja.infra.store import RecordStore

logger = get_logger(__name__)


def _atomic_write_json(out_path: Path, data: List[Any]) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_name = tempfile.mkstemp(prefix=out_path.name + ".", suffix=".tmp", dir=str(out_path.parent))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8", newline="\n") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, str(out_path))
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


def export_collection(
    store: RecordStore,
    key: str,
    out_dir: Union[str, Path],
    *,
    name: str = "caja",
    today: Optional[date] = None,
) -> Path:
    """Escribe <name>_YYYY-MM-DD.json con la colección completa."""
    day = today or date.today()
    out_path = Path(out_dir) / f"{name}_{day.isoformat()}.json"
    records = store.load(key)
    _atomic_write_json(out_path, records)
    logger.info(
        "collection exported",
        extra={"extra_data": {"key": key, "path": str(out_path), "records": len(records)}},
    )
    return out_path


def import_collection(store: RecordStore, key: str, path: Union[str, Path]) -> Result[int, str]:
    """Reemplaza la colección con el array JSON del archivo. Ok(n registros)."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as exc:
        return Err(f"Error al leer el archivo: {exc}")
    except json.JSONDecodeError as exc:
        return Err(f"JSON inválido: {exc}")

    if not isinstance(data, list):
        return Err("El archivo no contiene un array válido")

    if not store.save(key, data):
        return Err("No se pudieron guardar los datos")

    logger.info(
        "collection imported",
        extra={"extra_data": {"key": key, "path": str(p), "records": len(data)}},
    )
    return Ok(len(data))
