"""
FileShare – catálogo de ficheros compartidos
============================================

Paquete raíz.  Los peers anuncian ficheros, otros peers los buscan y
resuelven a una dirección conectable, y los anuncios cuyo dueño deja de
enviar *heartbeats* se purgan solos.
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

# ---------------------------------------------------------------------------#
# Metadatos
# ---------------------------------------------------------------------------#
try:
    __version__: str = _pkg_version(__name__)
except PackageNotFoundError:  # running from source tree
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------------#
# API pública mínima
# ---------------------------------------------------------------------------#
from .config import Config, ConfigError  # noqa: E402  (import tardío para evitar ciclos)
from .models import FileInfo, FileListing, FileOwner  # noqa: E402


def run_cli() -> None:
    """
    Punto de entrada “amigable” para lanzar la CLI desde código:

    ```python
    import fileshare
    fileshare.run_cli()
    ```
    """
    # Importación diferida para no forzar Typer si sólo se
    # usa `Config` en un entorno sin CLI.
    from .cli import cli  # noqa: WPS433, E402 (importación diferida)

    cli()


__all__ = [
    "__version__",
    "Config",
    "ConfigError",
    "FileInfo",
    "FileListing",
    "FileOwner",
    "run_cli",
]
