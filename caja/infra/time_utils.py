from __future__ import annotations

from datetime import datetime
from typing import Callable, Final

Clock = Callable[[], datetime]

# Mismo formato que toLocaleString('es-PE') en los registros ya guardados.
LOCALE_FMT: Final = "%d/%m/%Y, %H:%M:%S"


def now_local() -> datetime:
    """Hora local del equipo (la caja no maneja zonas horarias)."""
    return datetime.now()


def format_locale(dt: datetime) -> str:
    return dt.strftime(LOCALE_FMT)


def timestamp_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)
