from __future__ import annotations

import argparse
import logging
from typing import Sequence

from caja.cli.commands import caja_cmd, migrate_cmd, report_cmd, transfer_cmd

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="caja",
        description="Gestión de caja: apertura, cargas, cierre, detalle y reporte de cierres.",
    )
    p.add_argument("--store", default=None, help="Archivo JSON del store (por defecto: config store.path).")
    p.add_argument("--config", default=None, help="Archivo YAML de configuración.")
    p.add_argument("--no-table", dest="no_table", action="store_true", help="No refrescar la tabla tras cada cambio.")
    p.add_argument("-v", "--verbose", action="store_true", help="Logs DEBUG en stdout.")
    sub = p.add_subparsers(dest="command", required=True)

    migrate_cmd.register(sub)
    caja_cmd.register(sub)
    report_cmd.register(sub)
    transfer_cmd.register(sub)

    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    fn = getattr(args, "_fn", None)
    if fn is None:
        parser.print_help()
        return 2

    try:
        rc = fn(args)
        if rc is None:
            return 0
        if isinstance(rc, bool):
            return 0 if rc else 1
        return int(rc)

    except KeyboardInterrupt:
        print("caja: CANCELLED (KeyboardInterrupt)", flush=True)
        return 130

    except Exception as e:
        logger.error("unexpected CLI failure", exc_info=True)
        print(f"caja: ERROR {type(e).__name__}: {e}", flush=True)
        return 3
