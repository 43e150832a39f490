"""
Ledger de caja: apertura, cargas, cierre, detalle y reporte de cierres.

Reglas:
- Cada operación lee la colección completa del store, muta una copia y
  reescribe la colección completa. No hay caché ni escrituras parciales.
- Ninguna operación pública lanza: todas devuelven Result (Ok/Err).
- Si el store rechaza la escritura → Err(PersistenceError) y el store queda
  como estaba.
- Un registro guardado con montos ilegibles no se muta (Err InvalidAmount);
  sólo se lee en modo tolerante (detail, records, delete).

Máquina de estados:
    Abierto --load--> Abierto
    Abierto --close--> Cerrado   (terminal)
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import deal

from caja.codes import RandomSource, generate_unique_code
from caja.errors import (
    CajaError,
    NotFoundError,
    OperationError,
    OperationErrorCode,
    PersistenceError,
    ValidationError,
)
from caja.infra.logging_std import get_logger, log_kv
from caja.infra.result import Err, Ok, Result
from caja.infra.settings import CajaConfig
from caja.infra.store import RecordStore
from caja.infra.time_utils import Clock, format_locale, now_local
from caja.models import KEY_CAJA, CajaRecord, CajaView, Estado, HistorialEntry, TipoMovimiento
from caja.money import ZERO, MoneyError, add, fmt, parse_amount, parse_positive, sub
from caja.report import ClosureReport, build_closure_report

logger = get_logger(__name__)

CIERRE_DESCRIPCION = "Cierre de caja"

OnChange = Callable[[str], None]


def _is_result(result: Any) -> bool:
    return isinstance(result, (Ok, Err))


class CajaLedger:
    def __init__(
        self,
        store: RecordStore,
        *,
        config: Optional[CajaConfig] = None,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        on_change: Optional[OnChange] = None,
        key: str = KEY_CAJA,
    ) -> None:
        self._store = store
        self._config = config or CajaConfig()
        self._clock: Clock = clock or now_local
        self._rng = rng
        self._on_change = on_change
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    # ------------------------------------------------------------------
    # INTERNAL
    # ------------------------------------------------------------------
    def _now(self) -> str:
        return format_locale(self._clock())

    def _collection(self) -> List[Dict[str, Any]]:
        return self._store.load(self._key)

    @staticmethod
    def _resolve(raw: List[Dict[str, Any]], index: Any) -> Optional[int]:
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if index < 0 or index >= len(raw):
            return None
        if not isinstance(raw[index], dict):
            return None
        return index

    def _commit(self, raw: List[Dict[str, Any]]) -> bool:
        if not self._store.save(self._key, raw):
            return False
        if self._on_change is not None:
            self._on_change(self._key)
        return True

    def _reject(self, op: str, error: CajaError, **kv: Any) -> Result[Any, CajaError]:
        log_kv(logger, f"caja {op} rejected", level=logging.WARNING, error=repr(error), **kv)
        return Err(error)

    def _not_found(self, op: str, index: Any) -> Result[Any, CajaError]:
        return self._reject(
            op,
            OperationError(OperationErrorCode.NOT_FOUND, "No se encontró el registro de caja"),
            index=index,
        )

    def _locate(
        self,
        op: str,
        raw: List[Dict[str, Any]],
        index: Any,
        *,
        strict: bool = True,
    ) -> Result[Tuple[int, CajaRecord], CajaError]:
        """Índice -> (i, registro). strict: un registro con montos ilegibles no se toca."""
        i = self._resolve(raw, index)
        if i is None:
            return self._not_found(op, index)
        try:
            return Ok((i, CajaRecord.from_dict(raw[i], strict=strict)))
        except ValueError as exc:
            return self._reject(
                op,
                OperationError(
                    OperationErrorCode.INVALID_AMOUNT,
                    "El registro guardado tiene montos ilegibles; no se modifica",
                ),
                index=i,
                cause=str(exc),
            )

    def _replace(self, raw: List[Dict[str, Any]], i: int, record: CajaRecord) -> Result[CajaRecord, CajaError]:
        updated = list(raw)
        updated[i] = record.to_dict()
        if not self._commit(updated):
            return Err(PersistenceError(self._key))
        return Ok(record)

    # ------------------------------------------------------------------
    # OPERATIONS
    # ------------------------------------------------------------------
    @deal.post(_is_result, message="open must return Result")
    def open(self, descripcion: Optional[str], monto_apertura: Any) -> Result[CajaRecord, CajaError]:
        """
        Abre una caja nueva.

        descripcion: >= min_descripcion caracteres tras strip().
        monto_apertura: número positivo (str|int|Decimal; un float entra por su repr()).
        """
        desc = (descripcion or "").strip()
        if len(desc) < self._config.min_descripcion:
            return self._reject(
                "open",
                ValidationError(
                    "descripcion",
                    f"La descripción debe tener al menos {self._config.min_descripcion} caracteres",
                ),
            )

        monto = parse_positive(monto_apertura)
        if monto is None:
            return self._reject(
                "open",
                ValidationError("montoApertura", "El monto de apertura debe ser un número positivo"),
            )

        raw = self._collection()
        existing = [str(r.get("codigo")) for r in raw if isinstance(r, dict) and r.get("codigo")]
        codigo = generate_unique_code(
            existing,
            rng=self._rng,
            clock=self._clock,
            max_attempts=self._config.code_max_attempts,
            prefix=self._config.code_prefix,
            length=self._config.code_length,
        )

        record = CajaRecord(
            codigo=codigo,
            fecha=self._now(),
            descripcion=desc,
            monto_apertura=monto,
            monto_disponible=monto,
            monto_cierre=ZERO,
            estado=Estado.ABIERTO,
            historial=[],
        )

        if not self._commit(raw + [record.to_dict()]):
            return Err(PersistenceError(self._key))

        log_kv(logger, "caja abierta", codigo=codigo, monto_apertura=fmt(monto))
        return Ok(record)

    @deal.post(_is_result, message="load must return Result")
    def load(self, index: int, monto: Any, descripcion: Optional[str] = None) -> Result[CajaRecord, CajaError]:
        """Carga dinero a una caja abierta: montoDisponible += monto, +1 entrada Carga."""
        raw = self._collection()
        return self._locate("load", raw, index).bind(
            lambda found: self._load_into(raw, found[0], found[1], monto, descripcion)
        )

    def _load_into(
        self,
        raw: List[Dict[str, Any]],
        i: int,
        record: CajaRecord,
        monto: Any,
        descripcion: Optional[str],
    ) -> Result[CajaRecord, CajaError]:
        if not record.is_open:
            return self._reject(
                "load",
                OperationError(OperationErrorCode.CLOSED, "No se puede cargar dinero a una caja cerrada"),
                codigo=record.codigo,
            )

        amount = parse_positive(monto)
        try:
            disponible = None if amount is None else add(record.monto_disponible, amount)
        except MoneyError:
            disponible = None
        if amount is None or disponible is None:
            return self._reject(
                "load",
                OperationError(OperationErrorCode.INVALID_AMOUNT, "El monto debe ser mayor a cero"),
                codigo=record.codigo,
            )

        record.monto_disponible = disponible
        record.historial.append(
            HistorialEntry(
                tipo=TipoMovimiento.CARGA,
                monto=amount,
                descripcion=(descripcion or "").strip() or self._config.default_carga_descripcion,
                fecha=self._now(),
            )
        )

        result = self._replace(raw, i, record)
        if result.is_ok():
            log_kv(
                logger,
                "caja cargada",
                codigo=record.codigo,
                monto=fmt(amount),
                monto_disponible=fmt(record.monto_disponible),
            )
        return result

    @deal.post(_is_result, message="close must return Result")
    def close(
        self,
        index: int,
        monto_cierre: Any,
        observaciones: Optional[str] = None,
    ) -> Result[CajaRecord, CajaError]:
        """Cierra la caja. 0 <= monto_cierre <= montoDisponible. Sin vuelta atrás."""
        raw = self._collection()
        return self._locate("close", raw, index).bind(
            lambda found: self._close(raw, found[0], found[1], monto_cierre, observaciones)
        )

    def _close(
        self,
        raw: List[Dict[str, Any]],
        i: int,
        record: CajaRecord,
        monto_cierre: Any,
        observaciones: Optional[str],
    ) -> Result[CajaRecord, CajaError]:
        if not record.is_open:
            return self._reject(
                "close",
                OperationError(OperationErrorCode.ALREADY_CLOSED, "Esta caja ya está cerrada"),
                codigo=record.codigo,
            )

        amount = parse_amount(monto_cierre)
        if amount is None or amount < ZERO:
            return self._reject(
                "close",
                OperationError(OperationErrorCode.INVALID_AMOUNT, "Ingrese un monto válido"),
                codigo=record.codigo,
            )
        if amount > record.monto_disponible:
            return self._reject(
                "close",
                OperationError(
                    OperationErrorCode.INVALID_AMOUNT,
                    "El monto de cierre no puede ser mayor al disponible",
                ),
                codigo=record.codigo,
                monto_cierre=fmt(amount),
                monto_disponible=fmt(record.monto_disponible),
            )

        obs = (observaciones or "").strip()
        now = self._now()
        record.monto_cierre = amount
        record.estado = Estado.CERRADO
        record.fecha_cierre = now
        record.observaciones = obs
        record.historial.append(
            HistorialEntry(
                tipo=TipoMovimiento.CIERRE,
                monto=amount,
                descripcion=CIERRE_DESCRIPCION,
                observaciones=obs,
                fecha=now,
            )
        )

        result = self._replace(raw, i, record)
        if result.is_ok():
            log_kv(
                logger,
                "caja cerrada",
                codigo=record.codigo,
                monto_cierre=fmt(amount),
                diferencia=fmt(sub(record.monto_disponible, amount)),
            )
        return result

    @deal.post(_is_result, message="detail must return Result")
    def detail(self, index: int) -> Result[CajaView, CajaError]:
        """
        Sólo lectura. diferencia:
          - abierta: montoDisponible - montoApertura
          - cerrada: montoDisponible - montoCierre
        """
        return (
            self._locate("detail", self._collection(), index, strict=False)
            .map_err(lambda _: NotFoundError(index))
            .map(lambda found: self._view(*found))
        )

    @staticmethod
    def _view(i: int, record: CajaRecord) -> CajaView:
        referencia = record.monto_apertura if record.is_open else record.monto_cierre
        return CajaView(index=i, record=record, diferencia=sub(record.monto_disponible, referencia))

    def report_closures(self) -> Optional[ClosureReport]:
        """None = no hay cajas cerradas."""
        return build_closure_report(self.records())

    def records(self) -> List[CajaRecord]:
        """Vista de sólo lectura: registros con montos ilegibles se muestran en 0.00."""
        return [CajaRecord.from_dict(r, strict=False) for r in self._collection() if isinstance(r, dict)]

    @deal.post(_is_result, message="delete must return Result")
    def delete(self, index: int) -> Result[CajaRecord, CajaError]:
        """Elimina la fila. La confirmación del usuario es responsabilidad de la UI."""
        raw = self._collection()
        return self._locate("delete", raw, index, strict=False).bind(lambda found: self._remove(raw, *found))

    def _remove(self, raw: List[Dict[str, Any]], i: int, removed: CajaRecord) -> Result[CajaRecord, CajaError]:
        updated = raw[:i] + raw[i + 1:]
        if not self._commit(updated):
            return Err(PersistenceError(self._key))

        log_kv(logger, "caja eliminada", codigo=removed.codigo, index=i)
        return Ok(removed)
