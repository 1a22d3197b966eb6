# fileshare/catalog/liveness.py
from __future__ import annotations

import logging

from ..config import Config
from .store import CatalogStore

logger = logging.getLogger(__name__)


class LivenessTracker:
    """
    Protocolo de *heartbeat* sobre `CatalogStore`.

    Un heartbeat renueva todos los anuncios del peer. Si devuelve `False`
    el peer no tiene ningún anuncio vivo (nunca anunció nada, o todo fue
    retirado o purgado) y debe volver a anunciar sus ficheros.
    """

    def __init__(self, store: CatalogStore, config: Config) -> None:
        self._store = store
        self._config = config

    def heartbeat(self, peer_id: str) -> bool:
        renewed = self._store.renew_all_for_peer(peer_id)
        if renewed == 0:
            logger.info("[AUTH] Heartbeat sin anuncios para el peer %s", peer_id)
        return renewed > 0

    def get_staleness_threshold(self) -> int:
        """Segundos sin heartbeat tras los que un anuncio puede ser purgado."""
        return self._config.stale_file_age_s
