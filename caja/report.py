from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from caja.models import CajaRecord, Estado
from caja.money import sub, total


@dataclass(frozen=True)
class ClosureRow:
    codigo: str
    fecha: str
    monto_apertura: Decimal
    monto_cierre: Decimal
    diferencia: Decimal


@dataclass(frozen=True)
class ClosureReport:
    """
    Reporte de cierres: sólo cajas Cerradas.

    Invariante: total_diferencia == sum(row.diferencia).
    """

    rows: Tuple[ClosureRow, ...]
    total_apertura: Decimal
    total_cierre: Decimal
    total_diferencia: Decimal

    @property
    def count(self) -> int:
        return len(self.rows)


def build_closure_report(records: Iterable[CajaRecord]) -> Optional[ClosureReport]:
    """None cuando no hay cierres: el caller distingue "sin datos" de "totales en cero"."""
    rows = []

    for rec in records:
        if rec.estado is not Estado.CERRADO:
            continue
        rows.append(
            ClosureRow(
                codigo=rec.codigo,
                fecha=rec.fecha_cierre or rec.fecha,
                monto_apertura=rec.monto_apertura,
                monto_cierre=rec.monto_cierre,
                diferencia=sub(rec.monto_cierre, rec.monto_apertura),
            )
        )

    if not rows:
        return None

    total_apertura = total(r.monto_apertura for r in rows)
    total_cierre = total(r.monto_cierre for r in rows)
    return ClosureReport(
        rows=tuple(rows),
        total_apertura=total_apertura,
        total_cierre=total_cierre,
        total_diferencia=sub(total_cierre, total_apertura),
    )
