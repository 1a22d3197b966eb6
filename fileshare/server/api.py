# fileshare/server/api.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..catalog import Reaper
from ..config import Config
from ..discovery import announce_self, withdraw_self
from ..models import FileListing, FileOwner
from ..service import CatalogService

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Verifica el esquema (fatal si falla), arranca el reaper y, al apagar,
    espera a que termine el barrido en curso.
    """
    app.state.config = Config()
    service = CatalogService.from_config(app.state.config)
    service.store.verify_schema()
    reaper = Reaper(service.store, app.state.config)
    app.state.reaper = reaper
    reaper.start()
    try:
        if app.state.config.announce:
            announce_self(app.state.config.port, info="fileshare catalog")
        app.state.service = service
        logger.info("Catálogo listo: %r", app.state.config)
        yield
    finally:
        app.state.service = None
        if app.state.config.announce:
            withdraw_self()
        await asyncio.to_thread(reaper.stop)

app = FastAPI(
    title="FileShare – catálogo de ficheros compartidos",
    version="1.0.0",
    lifespan=lifespan,
)

# --------------------------------------------------------------------
# Modelos de entrada JSON
# --------------------------------------------------------------------
class ListFileRequest(BaseModel):
    peer_id: str = Field(..., description="Identificador opaco del peer que anuncia.")
    file_name: str = Field(..., description="Nombre del fichero compartido.")
    owner_host: str = Field(..., description="Host en el que el peer acepta conexiones.")
    owner_port: int = Field(..., ge=0, le=65535, description="Puerto en el que el peer acepta conexiones.")

class DelistFileRequest(BaseModel):
    file_name: str
    peer_id: str = Field(..., description="Debe coincidir con el dueño del anuncio.")

class TTLResponse(BaseModel):
    ttl: int

class KeepAliveResponse(BaseModel):
    alive: bool

def get_service(request: Request) -> CatalogService:
    """Dependencia que devuelve la fachada o 503 si el arranque no terminó."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Catalog is starting up, please wait.")
    return service

# --------------------------------------------------------------------
# Endpoints del catálogo
# --------------------------------------------------------------------
@app.post("/files", status_code=204)
def list_file(req: ListFileRequest, svc: CatalogService = Depends(get_service)) -> None:
    """Anuncia (o renueva) un fichero."""
    svc.list_file(req.peer_id, req.file_name, req.owner_host, req.owner_port)

@app.post("/files/delist", status_code=204)
def delist_file(req: DelistFileRequest, svc: CatalogService = Depends(get_service)) -> None:
    svc.delist_file(req.file_name, req.peer_id)

@app.get("/files", response_model=List[FileListing])
def search_files(
    q: str = Query("", description="Subcadena a buscar en el nombre."),
    svc: CatalogService = Depends(get_service),
) -> List[FileListing]:
    return svc.search_files(q)

@app.get("/files/{file_id}", response_model=Optional[FileOwner])
def get_file_owner(file_id: int, svc: CatalogService = Depends(get_service)) -> Optional[FileOwner]:
    """Dirección del dueño, o `null` si el id no existe."""
    return svc.get_file_owner(file_id)

@app.get("/ttl", response_model=TTLResponse)
def get_ttl(svc: CatalogService = Depends(get_service)) -> TTLResponse:
    return TTLResponse(ttl=svc.get_ttl())

@app.post("/peers/{peer_id}/keepalive", response_model=KeepAliveResponse)
def keep_alive(peer_id: str, svc: CatalogService = Depends(get_service)) -> KeepAliveResponse:
    return KeepAliveResponse(alive=svc.keep_alive(peer_id))

@app.delete("/peers/{peer_id}", status_code=204)
def disconnect(peer_id: str, svc: CatalogService = Depends(get_service)) -> None:
    svc.disconnect(peer_id)

@app.get("/health", response_class=PlainTextResponse)
async def health(request: Request) -> str:
    reaper: Reaper | None = getattr(request.app.state, "reaper", None)
    state = "activo" if reaper is not None and reaper.running else "parado"
    return f"ok – reaper {state}"

@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
def root() -> str:
    return "FileShare catalog is running."
