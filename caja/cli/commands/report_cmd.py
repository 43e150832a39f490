from __future__ import annotations

import argparse

from caja.cli.commands._context import build_context


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("report", help="Reporte de cierres de caja.")
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    report = ctx.ledger.report_closures()
    if report is None:
        print("No hay cierres registrados")
        return 0

    print("Reporte de Cierres de Caja")
    print(f"{'Código':<12} {'Fecha':<22} {'Apertura':>14} {'Cierre':>14} {'Diferencia':>14}")
    for row in report.rows:
        print(
            f"{row.codigo:<12} {row.fecha:<22} {ctx.money(row.monto_apertura):>14} "
            f"{ctx.money(row.monto_cierre):>14} {ctx.money(row.diferencia):>14}"
        )
    print(
        f"{'Total':<35} {ctx.money(report.total_apertura):>14} "
        f"{ctx.money(report.total_cierre):>14} {ctx.money(report.total_diferencia):>14}"
    )
    print(f"Total de cierres: {report.count}")
    return 0
