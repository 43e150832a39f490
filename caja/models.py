from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from caja.money import ZERO, MoneyError, fmt, from_stored

# Claves tal como se guardan en el store.
KEY_CAJA = "cajaData"
KEY_TRABAJADORES = "trabajadoresData"
KEY_CLIENTES = "clientesData"

_RECORD_KEYS = (
    "codigo",
    "fecha",
    "descripcion",
    "montoApertura",
    "montoDisponible",
    "montoCierre",
    "estado",
    "fechaCierre",
    "observaciones",
    "historial",
)


class Estado(str, Enum):
    ABIERTO = "Abierto"
    CERRADO = "Cerrado"


class TipoMovimiento(str, Enum):
    CARGA = "Carga"
    CIERRE = "Cierre"


def _amount(raw: Dict[str, Any], key: str, strict: bool) -> Decimal:
    """
    Ausente -> 0.00. Presente pero no parseable -> MoneyError en modo estricto.

    El modo estricto es el de las mutaciones: un registro así nunca se reescribe.
    """
    value = raw.get(key)
    if value is None:
        return ZERO
    dec = from_stored(value)
    if dec is not None:
        return dec
    if strict:
        raise MoneyError(f"stored {key} not parseable: {value!r}")
    return ZERO


@dataclass(frozen=True)
class HistorialEntry:
    tipo: TipoMovimiento
    monto: Decimal
    descripcion: str
    fecha: str
    observaciones: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "tipo": self.tipo.value,
            "monto": fmt(self.monto),
            "descripcion": self.descripcion,
        }
        if self.observaciones is not None:
            out["observaciones"] = self.observaciones
        out["fecha"] = self.fecha
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], *, strict: bool = True) -> "HistorialEntry":
        obs = raw.get("observaciones")
        return cls(
            tipo=TipoMovimiento.CIERRE if raw.get("tipo") == TipoMovimiento.CIERRE.value else TipoMovimiento.CARGA,
            monto=_amount(raw, "monto", strict),
            descripcion=str(raw.get("descripcion", "")),
            fecha=str(raw.get("fecha", "")),
            observaciones=None if obs is None else str(obs),
        )


@dataclass
class CajaRecord:
    """
    Una sesión de caja.

    Invariantes:
      - montos >= 0, siempre 2 decimales al serializar.
      - Abierto: monto_cierre == 0.00, sin fecha_cierre ni observaciones.
      - Cerrado es terminal; historial sólo crece.

    `extra` conserva claves desconocidas del registro guardado para no
    perderlas al reescribir la colección.
    """

    codigo: str
    fecha: str
    descripcion: str
    monto_apertura: Decimal
    monto_disponible: Decimal
    monto_cierre: Decimal = ZERO
    estado: Estado = Estado.ABIERTO
    fecha_cierre: Optional[str] = None
    observaciones: Optional[str] = None
    historial: List[HistorialEntry] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.estado is Estado.ABIERTO

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update(
            {
                "codigo": self.codigo,
                "fecha": self.fecha,
                "descripcion": self.descripcion,
                "montoApertura": fmt(self.monto_apertura),
                "montoDisponible": fmt(self.monto_disponible),
                "montoCierre": fmt(self.monto_cierre),
                "estado": self.estado.value,
            }
        )
        if self.fecha_cierre is not None:
            out["fechaCierre"] = self.fecha_cierre
        if self.observaciones is not None:
            out["observaciones"] = self.observaciones
        out["historial"] = [h.to_dict() for h in self.historial]
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], *, strict: bool = True) -> "CajaRecord":
        """
        strict=True (mutaciones): cualquier monto o entrada de historial ilegible
        lanza ValueError (MoneyError para montos), así el registro no se reescribe
        con datos inventados. strict=False (sólo lectura): ilegible -> 0.00 / se omite.
        """
        historial_raw = raw.get("historial") or []
        if strict and (
            not isinstance(historial_raw, list) or not all(isinstance(h, dict) for h in historial_raw)
        ):
            raise ValueError(f"historial not a list of entries: {historial_raw!r}")
        if not isinstance(historial_raw, list):
            historial_raw = []
        fecha_cierre = raw.get("fechaCierre")
        obs = raw.get("observaciones")
        return cls(
            codigo=str(raw.get("codigo") or ""),
            fecha=str(raw.get("fecha", "")),
            descripcion=str(raw.get("descripcion", "")),
            monto_apertura=_amount(raw, "montoApertura", strict),
            monto_disponible=_amount(raw, "montoDisponible", strict),
            monto_cierre=_amount(raw, "montoCierre", strict),
            estado=Estado.CERRADO if raw.get("estado") == Estado.CERRADO.value else Estado.ABIERTO,
            fecha_cierre=None if fecha_cierre is None else str(fecha_cierre),
            observaciones=None if obs is None else str(obs),
            historial=[HistorialEntry.from_dict(h, strict=strict) for h in historial_raw if isinstance(h, dict)],
            extra={k: v for k, v in raw.items() if k not in _RECORD_KEYS},
        )


@dataclass(frozen=True)
class CajaView:
    """Detalle de una caja para mostrar: registro + diferencia calculada."""

    index: int
    record: CajaRecord
    diferencia: Decimal

    @property
    def historial(self) -> Tuple[HistorialEntry, ...]:
        return tuple(self.record.historial)

    @property
    def monto_referencia(self) -> Decimal:
        """Monto de la segunda tarjeta: cierre si está cerrada, disponible si no."""
        if self.record.is_open:
            return self.record.monto_disponible
        return self.record.monto_cierre
