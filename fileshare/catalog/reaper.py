# fileshare/catalog/reaper.py
"""
Barrido periódico de anuncios caducados.

El hilo sólo llama a `CatalogStore.purge_older_than()`. `stop()` deja que
el barrido en curso termine y no arranca ninguno más.
"""
from __future__ import annotations

import logging
import threading

from ..config import Config
from .store import CatalogStore

logger = logging.getLogger(__name__)


class Reaper:
    def __init__(self, store: CatalogStore, config: Config) -> None:
        # ConfigError aquí, antes de arrancar el hilo
        self._store = store
        self.threshold_s = config.stale_file_age_s
        self.grace_s = config.reap_grace_s
        self.interval_s = config.reap_interval_s
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sweep(self) -> int:
        """Ejecuta un único barrido y devuelve cuántos anuncios se purgaron."""
        deleted = self._store.purge_older_than(self.threshold_s, self.grace_s)
        if deleted > 0:
            logger.info("[REAPER] Purgados %d anuncio(s) caducados.", deleted)
        return deleted

    def _run(self) -> None:
        logger.info(
            "[REAPER] En marcha: umbral=%ss, margen=%ss, periodo=%ss",
            self.threshold_s, self.grace_s, self.interval_s,
        )
        while not self._stop.wait(self.interval_s):
            try:
                self.sweep()
            except Exception as exc:
                logger.warning("[REAPER] sweep() falló: %s", exc)
        logger.info("[REAPER] Detenido.")

    def start(self) -> None:
        if self.running:
            logger.debug("Reaper.start() ya fue ejecutado, se ignora.")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="fileshare-reaper")
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Señala el fin y espera al hilo (incluido un barrido en curso)."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("[REAPER] El hilo no terminó en %ss.", timeout)
            else:
                self._thread = None
