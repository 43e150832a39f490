from __future__ import annotations

from decimal import Decimal

import pytest

from caja.models import CajaRecord, Estado, HistorialEntry, TipoMovimiento


LEGACY = {
    "codigo": "CAJ-AAAA",
    "montoApertura": 80.0,
    "montoDisponible": "oops",
    "estado": "raro",
    "historial": [{"tipo": "Otro", "monto": "1"}, "no-dict"],
}


def test_read_only_parse_is_lenient_with_legacy_values() -> None:
    rec = CajaRecord.from_dict(LEGACY, strict=False)
    assert rec.monto_apertura == Decimal("80.00")
    assert rec.monto_disponible == Decimal("0.00")
    assert rec.monto_cierre == Decimal("0.00")
    assert rec.estado is Estado.ABIERTO
    assert len(rec.historial) == 1
    assert rec.historial[0].tipo is TipoMovimiento.CARGA


def test_strict_parse_refuses_unreadable_amounts() -> None:
    with pytest.raises(ValueError):
        CajaRecord.from_dict(LEGACY)
    with pytest.raises(ValueError):
        CajaRecord.from_dict({**LEGACY, "montoDisponible": "80", "historial": ["no-dict"]})


def test_strict_parse_defaults_missing_amounts_to_zero() -> None:
    rec = CajaRecord.from_dict({"codigo": "CAJ-AAAA", "montoApertura": "5"})
    assert rec.monto_cierre == Decimal("0.00")
    assert rec.monto_disponible == Decimal("0.00")


def test_to_dict_omits_close_fields_while_open() -> None:
    rec = CajaRecord(
        codigo="CAJ-AAAA",
        fecha="f",
        descripcion="d",
        monto_apertura=Decimal("5"),
        monto_disponible=Decimal("5"),
    )
    out = rec.to_dict()
    assert "fechaCierre" not in out
    assert "observaciones" not in out
    assert out["montoApertura"] == "5.00"
    assert out["estado"] == "Abierto"


def test_extra_keys_round_trip() -> None:
    raw = {"codigo": "CAJ-AAAA", "montoApertura": "1.00", "sucursal": "Centro"}
    out = CajaRecord.from_dict(raw).to_dict()
    assert out["sucursal"] == "Centro"


def test_historial_entry_serialization_order() -> None:
    entry = HistorialEntry(
        tipo=TipoMovimiento.CIERRE,
        monto=Decimal("3"),
        descripcion="Cierre de caja",
        fecha="f",
        observaciones="ok",
    )
    assert list(entry.to_dict()) == ["tipo", "monto", "descripcion", "observaciones", "fecha"]
    assert HistorialEntry.from_dict(entry.to_dict()) == entry
