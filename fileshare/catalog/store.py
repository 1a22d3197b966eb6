# fileshare/catalog/store.py
"""
Almacén persistente de anuncios (SQLite).

Cada operación abre su propia conexión y ejecuta **una** sentencia dentro
de su propia transacción; el motor de SQLite es el único punto de
sincronización entre las peticiones concurrentes y el *reaper*.

Errores de la base de datos durante una operación se registran y se
devuelve un resultado neutro (lista vacía, `None`, `0`, no-op). Sólo
`verify_schema()` lanza excepción.

Nota: `db_path` debe ser un fichero; `":memory:"` daría una base distinta
en cada conexión.
"""
from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from ..config import Config
from ..models import FileListing, FileOwner

logger = logging.getLogger(__name__)

_TABLE = "file_entries"
_REQUIRED_COLUMNS = frozenset(
    {"id", "file_name", "peer_id", "owner_host", "owner_port", "last_renewed"}
)
_UNIQUE_KEY = frozenset({"file_name", "owner_host", "owner_port"})
_SQLITE_INT_MIN, _SQLITE_INT_MAX = -(2**63), 2**63 - 1

# ────────────────────────────────────────────────────────────────────────────
# Esquema
# ────────────────────────────────────────────────────────────────────────────
_DDL = """
CREATE TABLE IF NOT EXISTS file_entries (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    file_name    TEXT    NOT NULL,
    peer_id      TEXT    NOT NULL,
    owner_host   TEXT    NOT NULL,
    owner_port   INTEGER NOT NULL,
    last_renewed REAL    NOT NULL DEFAULT ((julianday('now') - 2440587.5) * 86400.0),
    UNIQUE (file_name, owner_host, owner_port)
);
CREATE INDEX IF NOT EXISTS idx_file_name_search ON file_entries(file_name);
"""

_SQL_ADVERTISE = """
INSERT INTO file_entries (peer_id, file_name, owner_host, owner_port, last_renewed)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT (file_name, owner_host, owner_port)
DO UPDATE SET last_renewed = MAX(last_renewed, excluded.last_renewed)
"""
_SQL_SEARCH = (
    "SELECT id, file_name FROM file_entries "
    "WHERE instr(casefold(file_name), ?) > 0 ORDER BY id"
)
_SQL_RESOLVE = (
    "SELECT id, file_name, owner_host, owner_port FROM file_entries WHERE id = ?"
)
_SQL_DELIST = "DELETE FROM file_entries WHERE file_name = ? AND peer_id = ?"
_SQL_RENEW_PEER = (
    "UPDATE file_entries SET last_renewed = MAX(last_renewed, ?) WHERE peer_id = ?"
)
_SQL_DELETE_PEER = "DELETE FROM file_entries WHERE peer_id = ?"
_SQL_PURGE = "DELETE FROM file_entries WHERE last_renewed < ?"


class SchemaError(RuntimeError):
    """No se pudo confirmar ni crear la tabla `file_entries`."""


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class CatalogStore:
    """
    Fuente de verdad del catálogo.

    Parameters
    ----------
    config : Config
        Sólo se usa `config.db_path`.
    clock : Callable[[], float]
        Reloj de pared en segundos epoch (por defecto `time.time`).
    busy_timeout_s : float
        Espera máxima por el bloqueo de escritura de SQLite.
    """

    def __init__(
        self,
        config: Config,
        *,
        clock: Callable[[], float] = time.time,
        busy_timeout_s: float = 5.0,
    ) -> None:
        self._db_path = config.db_path
        self._clock = clock
        self._busy_timeout_s = busy_timeout_s
        self._ready = False

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def ready(self) -> bool:
        return self._ready

    def now(self) -> float:
        return self._clock()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path, timeout=self._busy_timeout_s)
        try:
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            with conn:  # commit / rollback
                yield conn
        finally:
            conn.close()

    def _refuse(self, op: str) -> bool:
        if not self._ready:
            logger.warning("[DB] %s rechazado: esquema sin verificar.", op)
            return True
        return False

    # ------------------------------------------------------------------ #
    # Arranque
    # ------------------------------------------------------------------ #
    def verify_schema(self) -> None:
        """
        Confirma (o crea) la tabla, su clave única y el índice de búsqueda.
        Lanza `SchemaError` si no es posible; el llamador debe abortar.
        """
        try:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                exists = conn.execute(
                    "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                    (_TABLE,),
                ).fetchone()
                if not exists:
                    logger.info("[DB] Tabla '%s' no encontrada; creando esquema…", _TABLE)
                conn.executescript(_DDL)

                columns = {row[1] for row in conn.execute(f"PRAGMA table_info({_TABLE})")}
                missing = _REQUIRED_COLUMNS - columns
                if missing:
                    raise SchemaError(
                        f"La tabla '{_TABLE}' no tiene las columnas {sorted(missing)}"
                    )
                if not self._has_unique_key(conn):
                    raise SchemaError(
                        f"La tabla '{_TABLE}' carece de UNIQUE(file_name, owner_host, owner_port)"
                    )
        except (sqlite3.Error, OSError) as exc:
            raise SchemaError(f"No se pudo verificar la base de datos {self._db_path!r}") from exc

        self._ready = True
        logger.info("[DB] Esquema verificado en %s", self._db_path)

    @staticmethod
    def _has_unique_key(conn: sqlite3.Connection) -> bool:
        for _seq, name, unique, *_ in conn.execute(f"PRAGMA index_list({_TABLE})"):
            if not unique:
                continue
            cols = {row[2] for row in conn.execute(f"PRAGMA index_info('{name}')")}
            if cols == _UNIQUE_KEY:
                return True
        return False

    # ------------------------------------------------------------------ #
    # Operaciones
    # ------------------------------------------------------------------ #
    def advertise(self, peer_id: str, file_name: str, owner_host: str, owner_port: int) -> None:
        """Inserta el anuncio o, si ya existe para esa dirección, lo renueva."""
        if self._refuse("advertise"):
            return
        try:
            with self._connect() as conn:
                conn.execute(
                    _SQL_ADVERTISE,
                    (peer_id, file_name, owner_host, owner_port, self.now()),
                )
            logger.info("[DB] Anuncio actualizado: %s desde %s:%s", file_name, owner_host, owner_port)
        except sqlite3.Error as exc:
            logger.error("[DB] Error en advertise: %s", exc)

    def search(self, query: str) -> List[FileListing]:
        """Coincidencia por subcadena, sin distinguir mayúsculas."""
        if self._refuse("search"):
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(_SQL_SEARCH, (query.casefold(),)).fetchall()
        except sqlite3.Error as exc:
            logger.error("[DB] Error en search: %s", exc)
            return []
        return [FileListing(id=row[0], file_name=row[1]) for row in rows]

    def resolve(self, file_id: int) -> Optional[FileOwner]:
        if self._refuse("resolve"):
            return None
        # fuera de INTEGER de SQLite: ningún anuncio puede tener ese id
        if not _SQLITE_INT_MIN <= file_id <= _SQLITE_INT_MAX:
            return None
        try:
            with self._connect() as conn:
                row = conn.execute(_SQL_RESOLVE, (file_id,)).fetchone()
        except sqlite3.Error as exc:
            logger.error("[DB] Error en resolve: %s", exc)
            return None
        if row is None:
            return None
        return FileOwner(id=row[0], file_name=row[1], owner_host=row[2], owner_port=row[3])

    def delist(self, file_name: str, peer_id: str) -> None:
        """
        Borra el anuncio sólo si `peer_id` es su dueño. Si nada coincide
        (no existe o el peer no es el dueño) no pasa nada: ambos casos
        son indistinguibles para el llamador.
        """
        if self._refuse("delist"):
            return
        try:
            with self._connect() as conn:
                rows = conn.execute(_SQL_DELIST, (file_name, peer_id)).rowcount
        except sqlite3.Error as exc:
            logger.error("[DB] Error en delist: %s", exc)
            return
        if rows == 0:
            logger.info("[AUTH] Delist sin efecto para '%s' (inexistente o no es el dueño)", file_name)
        else:
            logger.info("[DB] Retirado '%s'", file_name)

    def renew_all_for_peer(self, peer_id: str) -> int:
        """Renueva todos los anuncios del peer en una sola sentencia."""
        if self._refuse("renew_all_for_peer"):
            return 0
        try:
            with self._connect() as conn:
                return conn.execute(_SQL_RENEW_PEER, (self.now(), peer_id)).rowcount
        except sqlite3.Error as exc:
            logger.error("[DB] Error en renew_all_for_peer: %s", exc)
            return 0

    def delete_all_for_peer(self, peer_id: str) -> None:
        if self._refuse("delete_all_for_peer"):
            return
        try:
            with self._connect() as conn:
                rows = conn.execute(_SQL_DELETE_PEER, (peer_id,)).rowcount
        except sqlite3.Error as exc:
            logger.error("[DB] Error en delete_all_for_peer: %s", exc)
            return
        logger.info("[DB] Peer %s desconectado (%d anuncio(s) retirados)", peer_id, rows)

    def purge_older_than(self, threshold_s: float, grace_s: float = 0.0) -> int:
        """
        Elimina en bloque todo anuncio con `now - last_renewed` mayor que
        `threshold_s + grace_s`. Devuelve el número de filas borradas.
        """
        if self._refuse("purge_older_than"):
            return 0
        cutoff = self.now() - (threshold_s + grace_s)
        try:
            with self._connect() as conn:
                return conn.execute(_SQL_PURGE, (cutoff,)).rowcount
        except sqlite3.Error as exc:
            logger.error("[REAPER] Error durante la limpieza: %s", exc)
            return 0
