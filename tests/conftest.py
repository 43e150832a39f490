from __future__ import annotations

import random
from datetime import datetime
from typing import Callable, Iterator

import pytest
from hypothesis import HealthCheck, settings

from caja.infra.settings import reset_config_cache
from caja.infra.store import MemoryBackend, RecordStore
from caja.ledger import CajaLedger

# Hypothesis puede volverse "flaky" por velocidad en CI/CPU load.
# Esto NO es un bug funcional: es un healthcheck de performance.
settings.register_profile(
    "caja_stable",
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    deadline=None,
)

settings.load_profile("caja_stable")

FIXED_NOW = datetime(2026, 10, 17, 9, 30, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:
    reset_config_cache()
    yield
    reset_config_cache()


@pytest.fixture
def store() -> RecordStore:
    return RecordStore(MemoryBackend())


@pytest.fixture
def make_ledger() -> Callable[..., CajaLedger]:
    def _make(store: RecordStore, seed: int = 7, **kwargs) -> CajaLedger:
        return CajaLedger(store, rng=random.Random(seed), clock=fixed_clock, **kwargs)

    return _make


@pytest.fixture
def ledger(store: RecordStore, make_ledger: Callable[..., CajaLedger]) -> CajaLedger:
    return make_ledger(store)
