"""
caja.cli.commands

Command modules must stay import-light: el ledger y el store se construyen
en _context al ejecutar el comando, no al importar.
"""
__all__ = [
    "caja_cmd",
    "migrate_cmd",
    "report_cmd",
    "transfer_cmd",
]
