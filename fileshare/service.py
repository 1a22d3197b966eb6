"""Fachada del catálogo: las operaciones que ven los clientes remotos."""
from __future__ import annotations

from typing import List, Optional

from .catalog import CatalogStore, LivenessTracker
from .config import Config
from .models import FileListing, FileOwner


class CatalogService:
    """
    Paso directo a `CatalogStore` / `LivenessTracker`, sin validación,
    caché ni agrupación propias.
    """

    def __init__(self, store: CatalogStore, liveness: LivenessTracker) -> None:
        self.store = store
        self.liveness = liveness

    @classmethod
    def from_config(cls, config: Config) -> "CatalogService":
        store = CatalogStore(config)
        return cls(store, LivenessTracker(store, config))

    def list_file(self, peer_id: str, file_name: str, owner_host: str, owner_port: int) -> None:
        self.store.advertise(peer_id, file_name, owner_host, owner_port)

    def delist_file(self, file_name: str, peer_id: str) -> None:
        self.store.delist(file_name, peer_id)

    def search_files(self, query: str) -> List[FileListing]:
        return self.store.search(query)

    def get_file_owner(self, file_id: int) -> Optional[FileOwner]:
        return self.store.resolve(file_id)

    def keep_alive(self, peer_id: str) -> bool:
        return self.liveness.heartbeat(peer_id)

    def disconnect(self, peer_id: str) -> None:
        self.store.delete_all_for_peer(peer_id)

    def get_ttl(self) -> int:
        return self.liveness.get_staleness_threshold()
