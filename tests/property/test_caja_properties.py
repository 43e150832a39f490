import random
from datetime import datetime
from decimal import Decimal

from hypothesis import given, strategies as st

from caja.infra.result import Ok
from caja.infra.store import RecordStore
from caja.ledger import CajaLedger
from caja.migrations import migrate_caja_shape
from caja.models import CajaRecord, Estado
from caja.money import sub, total
from caja.report import build_closure_report

# Montos de caja con 2 decimales, muy por encima de los 28 dígitos del contexto decimal por defecto
amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("1e40"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


def _clock() -> datetime:
    return datetime(2026, 10, 17, 9, 30, 0)


def _ledger(seed: int = 0) -> CajaLedger:
    return CajaLedger(RecordStore(), rng=random.Random(seed), clock=_clock)


@given(n=st.integers(min_value=1, max_value=60), seed=st.integers(min_value=0, max_value=10_000))
def test_codes_never_repeat(n: int, seed: int) -> None:
    ledger = _ledger(seed)
    for i in range(n):
        assert ledger.open(f"Caja {i:03d}", "1").is_ok()

    codes = [r.codigo for r in ledger.records()]
    assert len(set(codes)) == n


@given(apertura=amounts, cargas=st.lists(amounts, max_size=30))
def test_available_is_opening_plus_loads(apertura: Decimal, cargas: list) -> None:
    ledger = _ledger()
    ledger.open("Caja turno", apertura)

    for monto in cargas:
        assert ledger.load(0, monto).is_ok()

    rec = ledger.records()[0]
    assert rec.monto_disponible == total([apertura, *cargas])
    assert rec.monto_apertura == apertura


@given(apertura=amounts, cierre=st.decimals(min_value=Decimal("-100"), max_value=Decimal("1e41"), places=2))
def test_close_only_within_available(apertura: Decimal, cierre: Decimal) -> None:
    ledger = _ledger()
    ledger.open("Caja turno", apertura)

    result = ledger.close(0, cierre)
    rec = ledger.records()[0]

    if Decimal("0") <= cierre <= apertura:
        assert isinstance(result, Ok)
        assert rec.estado is Estado.CERRADO
        assert ledger.load(0, "1.00").is_err()
    else:
        assert result.is_err()
        assert rec.estado is Estado.ABIERTO


ops = st.lists(
    st.one_of(
        st.tuples(st.just("load"), st.decimals(min_value=Decimal("-10"), max_value=Decimal("500"), places=2)),
        st.tuples(st.just("close"), st.decimals(min_value=Decimal("-10"), max_value=Decimal("1000"), places=2)),
        st.tuples(st.just("detail"), st.just(Decimal("0"))),
    ),
    max_size=25,
)


@given(steps=ops)
def test_historial_is_append_only(steps: list) -> None:
    """
    Cualquier secuencia de operaciones: el historial nunca se acorta y
    cada load/close exitoso agrega exactamente una entrada.
    """
    ledger = _ledger()
    ledger.open("Caja turno", "100.00")
    size = 0

    for op, monto in steps:
        if op == "load":
            result = ledger.load(0, monto)
        elif op == "close":
            result = ledger.close(0, monto)
        else:
            result = ledger.detail(0)

        new_size = len(ledger.records()[0].historial)
        if op != "detail" and result.is_ok():
            assert new_size == size + 1
        else:
            assert new_size == size
        size = new_size


legacy_records = st.lists(
    st.fixed_dictionaries(
        {
            "monto": st.one_of(
                st.decimals(min_value=0, max_value=10_000, places=2).map(str),
                st.integers(min_value=0, max_value=10_000),
                st.text(max_size=5),
            ),
            "estado": st.sampled_from(["Abierto", "Cerrado"]),
        },
        optional={"codigo": st.text(max_size=8), "historial": st.just([])},
    ),
    max_size=20,
)


@given(records=legacy_records)
def test_caja_shape_migration_is_idempotent(records: list) -> None:
    once = migrate_caja_shape(records)
    assert migrate_caja_shape(once) == once
    assert all("monto" not in r for r in once)


closed = st.tuples(amounts, amounts).map(
    lambda pair: CajaRecord(
        codigo="CAJ-TEST",
        fecha="17/10/2026, 09:30:00",
        descripcion="turno",
        monto_apertura=pair[0],
        monto_disponible=max(pair),
        monto_cierre=pair[1],
        estado=Estado.CERRADO,
    )
)


@given(records=st.lists(closed, min_size=1, max_size=40))
def test_report_totals_match_row_differences(records: list) -> None:
    report = build_closure_report(records)
    assert report is not None
    assert report.count == len(records)

    by_rows = total(r.diferencia for r in report.rows)
    assert abs(sub(report.total_diferencia, by_rows)) <= Decimal("0.01")
    assert report.total_diferencia == sub(report.total_cierre, report.total_apertura)

