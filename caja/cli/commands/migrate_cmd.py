from __future__ import annotations

import argparse

from caja.cli.commands._context import build_context
from caja.migrations import FLAG_CAJA, FLAG_CODES, FLAG_TRABAJADORES


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("migrate", help="Ejecuta las migraciones pendientes del store.")
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    # build_context ya corre el MigrationEngine; aquí sólo se reporta cada flag.
    ctx = build_context(args)
    pending = 0
    for flag in (FLAG_CODES, FLAG_TRABAJADORES, FLAG_CAJA):
        done = ctx.store.get_flag(flag)
        pending += 0 if done else 1
        print(f"{flag}: {'ok' if done else 'pendiente'}")
    return 1 if pending else 0
