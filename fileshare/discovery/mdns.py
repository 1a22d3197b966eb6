from __future__ import annotations
import ipaddress
import logging
import socket
import time
from contextlib import suppress
from typing import List, NamedTuple
from zeroconf import ServiceBrowser, ServiceInfo, ServiceStateChange, Zeroconf

logger = logging.getLogger(__name__)
_SERVICE_TYPE = "_fileshare._tcp.local."

class CatalogNode(NamedTuple):
    host: str
    port: int
    info: str | None = None

_zeroconf_singleton: Zeroconf | None = None
_service_info: ServiceInfo | None = None

def announce_self(port: int, info: str = "") -> None:
    """Publica este servidor de catálogo en la LAN vía mDNS."""
    global _zeroconf_singleton, _service_info
    if _zeroconf_singleton:
        logger.debug("announce_self() ya fue ejecutado, se ignora.")
        return

    hostname = socket.gethostname()
    host_ip = _first_non_loopback_ip()
    logger.info("Anunciando catálogo %s:%s (%s)", host_ip, port, info or "sin descripción")

    _zeroconf_singleton = Zeroconf()
    _service_info = ServiceInfo(
        type_=_SERVICE_TYPE,
        name=f"{hostname}.{_SERVICE_TYPE}",
        addresses=[socket.inet_aton(host_ip)],
        port=port,
        properties={"info": info.encode("utf-8")},
    )
    _zeroconf_singleton.register_service(_service_info)

def withdraw_self() -> None:
    """Retira el anuncio publicado por `announce_self()`, si lo hay."""
    global _zeroconf_singleton, _service_info
    if not _zeroconf_singleton:
        return
    try:
        if _service_info:
            _zeroconf_singleton.unregister_service(_service_info)
    finally:
        _zeroconf_singleton.close()
        _zeroconf_singleton = None
        _service_info = None
        logger.info("Anuncio mDNS retirado.")

def _first_non_loopback_ip() -> str:
    for fam, _, _, _, sockaddr in socket.getaddrinfo(socket.gethostname(), None):
        if fam == socket.AF_INET:
            ip = sockaddr[0]
            if not ipaddress.ip_address(ip).is_loopback:
                return ip
    return "127.0.0.1"

class _Collector:
    def __init__(self) -> None:
        self.nodes: list[CatalogNode] = []
        self._seen: set[str] = set()

    def on_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        if state_change is not ServiceStateChange.Added:
            return
        with suppress(Exception):
            info = zeroconf.get_service_info(service_type, name, timeout=1000)
            if not info or not info.addresses:
                return
            host = socket.inet_ntoa(info.addresses[0])
            port = info.port
            desc = (info.properties or {}).get(b"info", b"").decode("utf-8")
            key = f"{host}:{port}"
            if key not in self._seen:
                self.nodes.append(CatalogNode(host, port, desc))
                self._seen.add(key)

def discover_catalogs(timeout: float = 5) -> List[CatalogNode]:
    """Escucha anuncios mDNS durante `timeout` segundos."""
    zc = Zeroconf()
    collector = _Collector()
    browser = ServiceBrowser(zc, _SERVICE_TYPE, handlers=[collector.on_change])

    try:
        time.sleep(timeout)
    finally:
        browser.cancel()
        zc.close()

    return collector.nodes
