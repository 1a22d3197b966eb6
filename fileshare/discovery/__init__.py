from __future__ import annotations

from typing import List

from .mdns import CatalogNode, announce_self, discover_catalogs, withdraw_self

__all__: List[str] = ["announce_self", "discover_catalogs", "withdraw_self", "CatalogNode"]
