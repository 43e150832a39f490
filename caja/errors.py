from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class OperationErrorCode(str, Enum):
    NOT_FOUND = "NotFound"
    CLOSED = "Closed"
    ALREADY_CLOSED = "AlreadyClosed"
    INVALID_AMOUNT = "InvalidAmount"


@dataclass(frozen=True)
class ValidationError:
    """
    Entrada del usuario inválida antes de tocar ningún registro.

    field usa el nombre del campo tal como se guarda (descripcion, montoApertura).
    """
    field: str
    message: str


@dataclass(frozen=True)
class OperationError:
    """Registro inexistente, estado incorrecto o monto que rompe el balance."""
    code: OperationErrorCode
    message: str


@dataclass(frozen=True)
class PersistenceError:
    """El store rechazó la escritura; la mutación en memoria se descartó."""
    key: str
    message: str = "No se pudieron guardar los datos. El almacenamiento local puede estar lleno."


@dataclass(frozen=True)
class NotFoundError:
    index: Any
    message: str = "No se encontró el registro de caja"


CajaError = Union[ValidationError, OperationError, PersistenceError, NotFoundError]


def describe(error: CajaError) -> str:
    if isinstance(error, ValidationError):
        return f"{error.field}: {error.message}"
    if isinstance(error, OperationError):
        return f"{error.code.value}: {error.message}"
    return error.message
