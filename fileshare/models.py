"""
Tipos de resultado del catálogo.

Búsqueda y resolución devuelven variantes distintas: una búsqueda nunca
expone la dirección del dueño, sólo `FileOwner` la lleva.
"""
from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field


class FileListing(BaseModel):
    """Resultado de búsqueda: identificador público y nombre, sin dirección."""
    id: int
    file_name: str


class FileOwner(BaseModel):
    """Resultado de resolución: lo necesario para conectar con el par."""
    id: int
    file_name: str
    owner_host: str
    owner_port: int = Field(..., ge=0, le=65535)


FileInfo = Union[FileListing, FileOwner]

__all__ = ["FileListing", "FileOwner", "FileInfo"]
