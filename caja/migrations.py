"""
Migraciones de esquema del store (una sola vez por flag).

Orden:
  1. ensure_base_collections   -> clientesData = [] si no existe
  2. migration_codes_v1        -> códigos de caja ausentes o con prefijo CO
  3. migration_trabajadores_v1 -> numeroTrabajador ausente o sin prefijo TR-
  4. migration_caja_v2         -> forma legacy {monto} -> montoApertura/Disponible/Cierre

Cada migración lee la colección completa, la mapea y la reescribe completa.
El flag se marca sólo si la escritura tuvo éxito; si falla, se reintenta en
el próximo arranque. Una vez marcado, la migración es no-op para siempre.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from caja.codes import RandomSource, WORKER_PREFIX, generate_unique_code, generate_worker_number
from caja.infra.logging_std import get_logger, log_kv
from caja.infra.settings import CajaConfig
from caja.infra.store import RecordStore
from caja.infra.time_utils import Clock
from caja.models import KEY_CAJA, KEY_CLIENTES, KEY_TRABAJADORES, Estado
from caja.money import ZERO, fmt, from_stored

logger = get_logger(__name__)

FLAG_CODES = "migration_codes_v1"
FLAG_TRABAJADORES = "migration_trabajadores_v1"
FLAG_CAJA = "migration_caja_v2"

LEGACY_CODE_PREFIX = "CO"

Records = List[Any]
Transform = Callable[[Records], Records]


def _needs_new_code(item: Dict[str, Any]) -> bool:
    codigo = item.get("codigo")
    return not codigo or str(codigo).startswith(LEGACY_CODE_PREFIX)


def migrate_codes(records: Records, *, generate: Optional[Callable[[Iterable[str]], str]] = None) -> Records:
    """Regenera códigos ausentes o legacy (CO...); los demás quedan intactos."""
    gen = generate or generate_unique_code
    seen = {
        str(item["codigo"])
        for item in records
        if isinstance(item, dict) and not _needs_new_code(item)
    }

    out: Records = []
    for item in records:
        if isinstance(item, dict) and _needs_new_code(item):
            codigo = gen(seen)
            seen.add(codigo)
            out.append({**item, "codigo": codigo})
        else:
            out.append(item)
    return out


def _needs_new_number(item: Dict[str, Any]) -> bool:
    numero = item.get("numeroTrabajador")
    return not numero or not str(numero).startswith(WORKER_PREFIX)


def migrate_worker_numbers(records: Records, *, generate: Optional[Callable[[Iterable[str]], str]] = None) -> Records:
    gen = generate or generate_worker_number
    seen = {
        str(item["numeroTrabajador"])
        for item in records
        if isinstance(item, dict) and not _needs_new_number(item)
    }

    out: Records = []
    for item in records:
        if isinstance(item, dict) and _needs_new_number(item):
            numero = gen(seen)
            seen.add(numero)
            out.append({**item, "numeroTrabajador": numero})
        else:
            out.append(item)
    return out


def _legacy_amount(item: Dict[str, Any]) -> str:
    dec = from_stored(item.get("monto"))
    if dec is None or dec < ZERO:
        log_kv(
            logger,
            "legacy monto not parseable, using 0.00",
            level=logging.WARNING,
            codigo=item.get("codigo"),
            monto=repr(item.get("monto")),
        )
        dec = ZERO
    return fmt(dec)


def migrate_caja_shape(records: Records) -> Records:
    """
    {monto} -> {montoApertura, montoDisponible, montoCierre}, sin `monto`.

    montoCierre = monto si la caja ya estaba Cerrada, "0.00" si no.
    Registros ya en la forma nueva pasan sin cambios (salvo historial faltante).
    """
    out: Records = []
    for item in records:
        if not isinstance(item, dict):
            out.append(item)
            continue

        if "monto" in item and "montoApertura" not in item:
            monto = _legacy_amount(item)
            cerrado = item.get("estado") == Estado.CERRADO.value
            migrated = {k: v for k, v in item.items() if k != "monto"}
            migrated["montoApertura"] = monto
            migrated["montoDisponible"] = monto
            migrated["montoCierre"] = monto if cerrado else fmt(ZERO)
            item = migrated

        if not isinstance(item.get("historial"), list):
            item = {**item, "historial": []}

        out.append(item)
    return out


@dataclass(frozen=True)
class Migration:
    id: str
    key: str
    transform: Transform


@dataclass
class MigrationReport:
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class MigrationEngine:
    def __init__(
        self,
        store: RecordStore,
        *,
        config: Optional[CajaConfig] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._config = config or CajaConfig()
        self._rng = rng
        self._clock = clock

    def _code(self, existing: Iterable[str]) -> str:
        return generate_unique_code(
            existing,
            rng=self._rng,
            clock=self._clock,
            max_attempts=self._config.code_max_attempts,
            prefix=self._config.code_prefix,
            length=self._config.code_length,
        )

    def _worker_number(self, existing: Iterable[str]) -> str:
        return generate_worker_number(
            existing,
            rng=self._rng,
            clock=self._clock,
            max_attempts=self._config.code_max_attempts,
        )

    def migrations(self) -> Tuple[Migration, ...]:
        return (
            Migration(FLAG_CODES, KEY_CAJA, lambda rs: migrate_codes(rs, generate=self._code)),
            Migration(
                FLAG_TRABAJADORES,
                KEY_TRABAJADORES,
                lambda rs: migrate_worker_numbers(rs, generate=self._worker_number),
            ),
            Migration(FLAG_CAJA, KEY_CAJA, migrate_caja_shape),
        )

    def ensure_base_collections(self) -> bool:
        if self._store.has(KEY_CLIENTES):
            return True
        saved = self._store.save(KEY_CLIENTES, [])
        if saved:
            logger.info("Inicializado %s en el store", KEY_CLIENTES)
        return saved

    def apply(self, migration: Migration) -> Optional[bool]:
        """None = ya aplicada (flag), True = aplicada ahora, False = falló la escritura."""
        if self._store.get_flag(migration.id):
            return None

        records = self._store.load(migration.key)
        migrated = migration.transform(records)

        if not self._store.save(migration.key, migrated):
            log_kv(logger, "migration write failed", level=logging.ERROR, migration=migration.id)
            return False
        if not self._store.set_flag(migration.id):
            return False

        log_kv(logger, "migration applied", migration=migration.id, records=len(migrated))
        return True

    def run(self) -> MigrationReport:
        report = MigrationReport()

        if not self.ensure_base_collections():
            report.failed.append("ensure_base_collections")

        for migration in self.migrations():
            outcome = self.apply(migration)
            if outcome is None:
                report.skipped.append(migration.id)
            elif outcome:
                report.applied.append(migration.id)
            else:
                report.failed.append(migration.id)

        return report
