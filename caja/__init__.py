# caja/__init__.py
"""
Caja - gestión de cajas registradoras sobre un record store local.

Módulos:
- ledger: apertura, cargas, cierre, detalle y reporte de cierres
- migrations: migraciones de esquema (una sola vez por flag)
- codes: códigos únicos CAJ-XXXX / TR-NNNN
- money: montos Decimal con 2 decimales
- infra: store, settings, logging, Result
"""

from .errors import NotFoundError, OperationError, OperationErrorCode, PersistenceError, ValidationError
from .ledger import CajaLedger
from .migrations import MigrationEngine, MigrationReport
from .models import CajaRecord, CajaView, Estado, HistorialEntry, TipoMovimiento
from .report import ClosureReport, ClosureRow

__all__ = [
    "CajaLedger",
    "CajaRecord",
    "CajaView",
    "ClosureReport",
    "ClosureRow",
    "Estado",
    "HistorialEntry",
    "MigrationEngine",
    "MigrationReport",
    "NotFoundError",
    "OperationError",
    "OperationErrorCode",
    "PersistenceError",
    "TipoMovimiento",
    "ValidationError",
]
