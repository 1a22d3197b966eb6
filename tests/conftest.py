"""
Fixtures compartidos por toda la suite PyTest.

Objetivo → correr los tests contra un SQLite temporal y un reloj
controlable, sin esperar segundos reales para que caduquen anuncios.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, List, Tuple

import pytest

from fileshare.catalog import CatalogStore, LivenessTracker
from fileshare.config import Config
from fileshare.service import CatalogService


# ════════════════════════════════════════════════════════════════════════════
# Entorno limpio: ninguna variable del host debe filtrarse en `Config`
# ════════════════════════════════════════════════════════════════════════════
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DB_PATH", "HOST", "PORT", "ANNOUNCE", "STALE_FILE_AGE", "REAP_GRACE", "REAP_INTERVAL"):
        monkeypatch.delenv(name, raising=False)


# ════════════════════════════════════════════════════════════════════════════
# Reloj falso
# ════════════════════════════════════════════════════════════════════════════
class FakeClock:
    """Reloj de pared manual; `advance()` simula el paso del tiempo."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ════════════════════════════════════════════════════════════════════════════
# Catálogo sobre un fichero temporal
# ════════════════════════════════════════════════════════════════════════════
@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    return Config(db_path=str(tmp_path / "catalog.db"), reap_interval="0.05")


@pytest.fixture
def store(cfg: Config, clock: FakeClock) -> CatalogStore:
    s = CatalogStore(cfg, clock=clock)
    s.verify_schema()
    return s


@pytest.fixture
def service(store: CatalogStore, cfg: Config) -> CatalogService:
    return CatalogService(store, LivenessTracker(store, cfg))


@pytest.fixture
def rows(cfg: Config) -> Callable[[], List[Tuple]]:
    """Lee la tabla tal cual está persistida: (id, file_name, peer_id, host, port, last_renewed)."""

    def _read() -> List[Tuple]:
        conn = sqlite3.connect(cfg.db_path)
        try:
            return conn.execute(
                "SELECT id, file_name, peer_id, owner_host, owner_port, last_renewed "
                "FROM file_entries ORDER BY id"
            ).fetchall()
        finally:
            conn.close()

    return _read
