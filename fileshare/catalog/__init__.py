from __future__ import annotations

from typing import List

from .liveness import LivenessTracker
from .reaper import Reaper
from .store import CatalogStore, SchemaError

__all__: List[str] = ["CatalogStore", "LivenessTracker", "Reaper", "SchemaError"]
