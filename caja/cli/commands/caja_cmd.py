from __future__ import annotations

import argparse

from caja.cli.commands._context import build_context, confirm, fail, render_table
from caja.money import sub


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("list", help="Lista las cajas registradas.")
    p.set_defaults(_fn=_run_list)

    p = sub.add_parser("open", help="Abre una caja nueva.")
    p.add_argument("descripcion", help="Propósito de la caja (>= 3 caracteres).")
    p.add_argument("monto", help="Monto de apertura (> 0).")
    p.set_defaults(_fn=_run_open)

    p = sub.add_parser("load", help="Carga dinero a una caja abierta.")
    p.add_argument("index", type=int, help="Fila de la caja (ver `list`).")
    p.add_argument("monto", help="Monto a cargar (> 0).")
    p.add_argument("--descripcion", default=None, help="Nota de la carga (opcional).")
    p.set_defaults(_fn=_run_load)

    p = sub.add_parser("close", help="Cierra una caja (irreversible).")
    p.add_argument("index", type=int)
    p.add_argument("monto", nargs="?", default=None, help="Monto de cierre; por defecto el disponible.")
    p.add_argument("--observaciones", default=None)
    p.add_argument("--yes", action="store_true", help="No pedir confirmación.")
    p.set_defaults(_fn=_run_close)

    p = sub.add_parser("detail", help="Detalle de una caja con su historial.")
    p.add_argument("index", type=int)
    p.set_defaults(_fn=_run_detail)

    p = sub.add_parser("delete", help="Elimina la fila de una caja.")
    p.add_argument("index", type=int)
    p.add_argument("--yes", action="store_true", help="No pedir confirmación.")
    p.set_defaults(_fn=_run_delete)


def _run_list(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    render_table(ctx.ledger.records(), ctx.config.caja.currency_symbol)
    return 0


def _run_open(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    r = ctx.ledger.open(args.descripcion, args.monto)
    if r.is_err():
        return fail(r.error)
    rec = r.value
    print("Caja abierta")
    print(f"  Código       : {rec.codigo}")
    print(f"  Monto inicial: {ctx.money(rec.monto_apertura)}")
    return 0


def _run_load(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    r = ctx.ledger.load(args.index, args.monto, args.descripcion)
    if r.is_err():
        return fail(r.error)
    print(f"Carga exitosa. Nuevo saldo: {ctx.money(r.value.monto_disponible)}")
    return 0


def _run_close(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    view = ctx.ledger.detail(args.index)
    if view.is_err():
        return fail(view.error)

    rec = view.value.record
    monto = args.monto if args.monto is not None else rec.monto_disponible
    prompt = (
        f"Cerrar caja {rec.codigo} (disponible {ctx.money(rec.monto_disponible)}) "
        f"con {ctx.money(monto)}?"
    )
    if not confirm(prompt, assume_yes=args.yes):
        print("Cancelado")
        return 0

    r = ctx.ledger.close(args.index, monto, args.observaciones)
    if r.is_err():
        return fail(r.error)
    closed = r.value
    print("Caja cerrada")
    print(f"  Código     : {closed.codigo}")
    print(f"  Monto cierre: {ctx.money(closed.monto_cierre)}")
    print(f"  Diferencia : {ctx.money(sub(closed.monto_disponible, closed.monto_cierre))}")
    return 0


def _run_detail(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    r = ctx.ledger.detail(args.index)
    if r.is_err():
        print("Nada que mostrar: no se encontró el registro de caja")
        return 1

    view = r.value
    rec = view.record
    print(f"Detalle de caja: {rec.codigo}")
    print(f"  Estado         : {rec.estado.value}")
    print(f"  Fecha apertura : {rec.fecha}")
    if rec.fecha_cierre:
        print(f"  Fecha cierre   : {rec.fecha_cierre}")
    print(f"  Descripción    : {rec.descripcion}")
    print(f"  Apertura       : {ctx.money(rec.monto_apertura)}")
    print(f"  {'Cierre' if not rec.is_open else 'Disponible':<15}: {ctx.money(view.monto_referencia)}")
    print(f"  Diferencia     : {ctx.money(view.diferencia)}")
    if rec.observaciones:
        print(f"  Observaciones  : {rec.observaciones}")

    if not view.historial:
        print("No hay movimientos registrados")
        return 0

    print("Historial de movimientos")
    for h in view.historial:
        print(f"  {h.fecha} | {h.tipo.value:<6} | {ctx.money(h.monto):>14} | {h.descripcion}")
    return 0


def _run_delete(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    view = ctx.ledger.detail(args.index)
    if view.is_err():
        return fail(view.error)

    if not confirm(f"Eliminar caja {view.value.record.codigo}?", assume_yes=args.yes):
        print("Cancelado")
        return 0

    r = ctx.ledger.delete(args.index)
    if r.is_err():
        return fail(r.error)
    print(f"Caja {r.value.codigo} eliminada")
    return 0
