from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from caja.errors import CajaError, describe
from caja.infra.logging_std import configure_logging
from caja.infra.settings import AppConfig, load_config
from caja.infra.store import RecordStore, open_file_store
from caja.ledger import CajaLedger
from caja.migrations import MigrationEngine
from caja.models import CajaRecord
from caja.money import format_currency


def render_table(records: Iterable[CajaRecord], symbol: str) -> None:
    rows = list(records)
    if not rows:
        print("No hay registros de caja")
        return
    print(f"{'#':>3}  {'Código':<12} {'Estado':<8} {'Apertura':>14} {'Disponible':>14} {'Cierre':>14}  Descripción")
    for i, rec in enumerate(rows):
        print(
            f"{i:>3}  {rec.codigo:<12} {rec.estado.value:<8} "
            f"{format_currency(rec.monto_apertura, symbol):>14} "
            f"{format_currency(rec.monto_disponible, symbol):>14} "
            f"{format_currency(rec.monto_cierre, symbol):>14}  {rec.descripcion}"
        )


@dataclass
class CliContext:
    config: AppConfig
    store: RecordStore
    ledger: CajaLedger

    def money(self, amount: Any) -> str:
        return format_currency(amount, symbol=self.config.caja.currency_symbol)


def build_context(args: argparse.Namespace) -> CliContext:
    """
    Config -> logging -> store -> migraciones -> ledger.

    Las migraciones corren siempre antes de que el ledger lea la colección.
    """
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path)) if config_path else load_config()

    level = "DEBUG" if getattr(args, "verbose", False) else "WARNING"
    configure_logging(level=level, fmt=config.logging.format)

    store_path = getattr(args, "store", None) or config.store.path
    store = open_file_store(store_path, quota_bytes=config.store.quota_bytes)

    report = MigrationEngine(store, config=config.caja).run()
    if not report.ok:
        print(f"caja: WARNING migraciones pendientes: {', '.join(report.failed)}", file=sys.stderr)

    symbol = config.caja.currency_symbol

    def _refresh(key: str) -> None:
        render_table((CajaRecord.from_dict(r, strict=False) for r in store.load(key) if isinstance(r, dict)), symbol)

    on_change = None if getattr(args, "no_table", False) else _refresh
    ledger = CajaLedger(store, config=config.caja, on_change=on_change)
    return CliContext(config=config, store=store, ledger=ledger)


def fail(error: CajaError) -> int:
    print(f"caja: ERROR {describe(error)}", file=sys.stderr)
    return 1


def confirm(message: str, *, assume_yes: bool) -> bool:
    """Confirmación s/n antes de acciones destructivas."""
    if assume_yes:
        return True
    answer = input(f"{message} [s/N]: ").strip().lower()
    return answer in ("s", "si", "sí", "y", "yes")
