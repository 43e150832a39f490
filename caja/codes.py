from __future__ import annotations

import random
from typing import Iterable, Optional, Protocol

import deal

from caja.infra.time_utils import Clock, now_local, timestamp_ms

# Sin 0/O, 1/I: códigos que se dictan por teléfono o se copian a mano.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_PREFIX = "CAJ-"
CODE_LENGTH = 4

WORKER_PREFIX = "TR-"

MAX_ATTEMPTS = 100


class RandomSource(Protocol):
    def choice(self, seq: str) -> str: ...

    def randint(self, a: int, b: int) -> int: ...


_rng = random.SystemRandom()


@deal.pre(
    lambda existing_codes, *, rng=None, clock=None, max_attempts=MAX_ATTEMPTS, prefix=CODE_PREFIX, length=CODE_LENGTH, alphabet=CODE_ALPHABET: max_attempts >= 1 and length >= 1 and len(alphabet) > 1,
    message="max_attempts>=1, length>=1, alphabet len>1",
)
@deal.post(lambda result: isinstance(result, str) and len(result) > 0)
def generate_unique_code(
    existing_codes: Iterable[str],
    *,
    rng: Optional[RandomSource] = None,
    clock: Optional[Clock] = None,
    max_attempts: int = MAX_ATTEMPTS,
    prefix: str = CODE_PREFIX,
    length: int = CODE_LENGTH,
    alphabet: str = CODE_ALPHABET,
) -> str:
    """
    Genera un código de caja tipo CAJ-XXXX que no esté en existing_codes.

    Reintenta hasta max_attempts veces. Si se agotan, agrega un sufijo de 3
    dígitos del timestamp al último candidato; ese fallback no se vuelve a
    comparar contra existing_codes.
    """
    source = rng if rng is not None else _rng
    taken = set(existing_codes)

    code = ""
    for _ in range(max_attempts):
        code = prefix + "".join(source.choice(alphabet) for _ in range(length))
        if code not in taken:
            return code

    tick = (clock or now_local)()
    return code + str(timestamp_ms(tick))[-3:]


@deal.pre(
    lambda existing_numbers, *, rng=None, clock=None, max_attempts=MAX_ATTEMPTS: max_attempts >= 1,
    message="max_attempts>=1",
)
@deal.post(lambda result: result.startswith(WORKER_PREFIX))
def generate_worker_number(
    existing_numbers: Iterable[str],
    *,
    rng: Optional[RandomSource] = None,
    clock: Optional[Clock] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """TR- + 4 dígitos (1000-9999); fallback con los últimos 4 dígitos del timestamp."""
    source = rng if rng is not None else _rng
    taken = set(existing_numbers)

    for _ in range(max_attempts):
        numero = f"{WORKER_PREFIX}{source.randint(1000, 9999)}"
        if numero not in taken:
            return numero

    tick = (clock or now_local)()
    return WORKER_PREFIX + str(timestamp_ms(tick))[-4:]

