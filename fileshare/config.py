# fileshare/config.py

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path


class ConfigError(ValueError):
    """Valor de configuración ilegible. Siempre fatal, nunca se usa un valor por defecto."""


# --- Funciones de ayuda ---
def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None: return default
    try: return int(raw)
    except (TypeError, ValueError): return default

def _getenv_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None: return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

def _parse_seconds(name: str, raw: str, *, integer: bool = False) -> float:
    """
    Convierte `raw` a segundos. A diferencia de `_getenv_int`, un valor
    corrupto lanza `ConfigError` en vez de caer al valor por defecto.
    """
    try:
        value = int(raw) if integer else float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name}={raw!r} no es un número de segundos válido") from exc
    if value < 0 or not math.isfinite(value):
        raise ConfigError(f"{name}={raw!r} debe ser un número finito >= 0")
    return value


@dataclass(slots=True)
class Config:
    # --- Parámetros del Servidor ---
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _getenv_int("PORT", 8000))
    announce: bool = field(default_factory=lambda: _getenv_bool("ANNOUNCE"))

    # --- Catálogo ---
    db_path: str = field(default_factory=lambda: os.getenv("DB_PATH", "fileshare.db"))

    # --- Reaper (texto crudo; se valida al usarse) ---
    stale_file_age: str = field(default_factory=lambda: os.getenv("STALE_FILE_AGE", "30"))
    reap_grace: str = field(default_factory=lambda: os.getenv("REAP_GRACE", "1"))
    reap_interval: str = field(default_factory=lambda: os.getenv("REAP_INTERVAL", "60"))

    def __post_init__(self) -> None:
        self.db_path = str(Path(self.db_path).expanduser())

    @property
    def stale_file_age_s(self) -> int:
        """Ventana de caducidad en segundos enteros (la que se anuncia como TTL)."""
        return int(_parse_seconds("STALE_FILE_AGE", self.stale_file_age, integer=True))

    @property
    def reap_grace_s(self) -> float:
        return _parse_seconds("REAP_GRACE", self.reap_grace)

    @property
    def reap_interval_s(self) -> float:
        value = _parse_seconds("REAP_INTERVAL", self.reap_interval)
        if value == 0:
            raise ConfigError("REAP_INTERVAL debe ser mayor que 0")
        return value

    def __repr__(self) -> str:
        announce_info = ", announce" if self.announce else ""
        params = (
            f"db='{self.db_path}', host='{self.host}:{self.port}', "
            f"ttl={self.stale_file_age}s, grace={self.reap_grace}s, "
            f"interval={self.reap_interval}s{announce_info}"
        )
        return f"<Config {params}>"
