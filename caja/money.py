"""
Montos de caja: Decimal de punto fijo, siempre 2 decimales.

- Sin tope: el contexto decimal se ensancha según el tamaño de los operandos,
  así que sumar a un saldo de 30 dígitos no pierde centavos ni lanza.
- Los float sólo se aceptan en el borde (parse_amount / from_stored) vía repr();
  to_decimal los rechaza.
- El formateo visual (S/ 1,234.56) es sólo para la UI.
"""
from __future__ import annotations

from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, ROUND_HALF_UP, Context, Decimal, InvalidOperation, getcontext
from typing import Any, Iterable, Optional, Union

import deal

MoneyInput = Union[Decimal, int, str]

ZERO = Decimal("0.00")
_Q2 = Decimal("0.01")

# Dígitos extra sobre el operando más ancho: centavos + acarreo de sumas.
_HEADROOM = 6

# Entradas por encima de 10**1000: el quantize ya cuesta memoria de verdad, se tratan como no parseables.
_MAX_ADJUSTED = 1000


class MoneyError(ValueError):
    """Monto no parseable o no finito."""


def _context_for(*values: Decimal) -> Context:
    widest = max((v.adjusted() for v in values if v.is_finite()), default=0)
    ctx = getcontext().copy()
    ctx.prec = min(MAX_PREC, max(ctx.prec, widest + _HEADROOM + len(str(len(values)))))
    ctx.Emax = MAX_EMAX
    ctx.Emin = MIN_EMIN
    ctx.rounding = ROUND_HALF_UP
    return ctx


def q2(value: Decimal) -> Decimal:
    """Redondeo a 2 decimales, estilo dinero."""
    try:
        dec = value.quantize(_Q2, context=_context_for(value))
    except InvalidOperation as e:
        raise MoneyError(f"amount out of range: {value!r}") from e
    # "-0" no debe terminar guardado como "-0.00"
    return ZERO if dec.is_zero() else dec


def add(*values: Decimal) -> Decimal:
    ctx = _context_for(*values)
    total = ZERO
    for v in values:
        total = ctx.add(total, v)
    return q2(total)


def total(values: Iterable[Decimal]) -> Decimal:
    return add(*values)


def sub(a: Decimal, b: Decimal) -> Decimal:
    return q2(_context_for(a, b).subtract(a, b))


def to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, bool) or isinstance(amount, float):
        raise MoneyError("float forbidden in money-path; use Decimal|int|str")
    if isinstance(amount, Decimal):
        dec = amount
    elif isinstance(amount, int):
        dec = Decimal(amount)
    elif isinstance(amount, str):
        try:
            dec = Decimal(amount.strip())
        except (InvalidOperation, ValueError) as e:
            raise MoneyError(f"invalid decimal string: {amount!r}") from e
    else:
        raise MoneyError("amount must be Decimal|int|str")
    if not dec.is_finite():
        raise MoneyError("amount must be finite")
    if dec.adjusted() > _MAX_ADJUSTED:
        raise MoneyError(f"amount out of range: {amount!r}")
    return q2(dec)


def parse_amount(amount: Any) -> Optional[Decimal]:
    """
    Como to_decimal, pero devuelve None en vez de lanzar.

    Un float se toma por su repr() (100.5 -> "100.5"), nunca por su valor binario.
    """
    if isinstance(amount, float):
        amount = repr(amount)
    try:
        return to_decimal(amount)
    except MoneyError:
        return None


def parse_positive(amount: Any) -> Optional[Decimal]:
    dec = parse_amount(amount)
    if dec is None or dec <= ZERO:
        return None
    return dec


def from_stored(value: Any) -> Optional[Decimal]:
    """
    Lee un monto tal como quedó en el store.

    Los registros viejos pueden traer números JSON (float) en vez de strings.
    """
    return parse_amount(value)


@deal.pre(lambda value: isinstance(value, Decimal), message="value must be Decimal")
@deal.post(lambda result: "." in result and len(result.rsplit(".", 1)[1]) == 2, message="must have 2 decimals")
def fmt(value: Decimal) -> str:
    return f"{q2(value):.2f}"


def format_currency(amount: Any, symbol: str = "S/", decimals: int = 2) -> str:
    """S/ 1,234.56; montos no parseables se muestran como 0."""
    dec = from_stored(amount)
    if dec is None:
        dec = ZERO
    return f"{symbol} {dec:,.{decimals}f}"
