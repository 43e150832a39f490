from __future__ import annotations

import argparse
import sys

from caja.cli.commands._context import build_context, confirm
from caja.models import KEY_CAJA
from caja.transfer import export_collection, import_collection


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("export", help="Exporta las cajas a caja_YYYY-MM-DD.json.")
    p.add_argument("--out-dir", default=".", help="Directorio de salida.")
    p.set_defaults(_fn=_run_export)

    p = sub.add_parser("import", help="Reemplaza las cajas con un archivo JSON.")
    p.add_argument("path")
    p.add_argument("--yes", action="store_true", help="No pedir confirmación.")
    p.set_defaults(_fn=_run_import)


def _run_export(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    out = export_collection(ctx.store, KEY_CAJA, args.out_dir)
    print(f"Exportado: {out}")
    return 0


def _run_import(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    if not confirm("Reemplazar todas las cajas con el contenido del archivo?", assume_yes=args.yes):
        print("Cancelado")
        return 0

    r = import_collection(ctx.store, KEY_CAJA, args.path)
    if r.is_err():
        print(f"caja: ERROR {r.error}", file=sys.stderr)
        return 1
    print(f"Importados {r.value} registros")
    return 0
