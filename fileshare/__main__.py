"""
Permite `python -m fileshare <comando>`.

Comandos:
  serve      – Arranca FastAPI + reaper
  init-db    – Verifica/crea el esquema SQLite
  reap       – Un barrido manual de anuncios caducados
  search     – Busca en el catálogo local
  discover   – Localiza catálogos en la LAN (mDNS)
"""
from .cli import _main

if __name__ == "__main__":
    _main()
