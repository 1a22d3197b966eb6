"""
Escenarios de extremo a extremo sobre la fachada `CatalogService`.
"""
from __future__ import annotations

from fileshare.catalog import Reaper
from fileshare.models import FileListing, FileOwner


def test_catalog_walkthrough(service, cfg, clock, rows) -> None:
    # 1. anunciar → buscar → resolver
    service.list_file("p1", "movie.mp4", "10.0.0.5", 6000)
    assert service.search_files("movie") == [FileListing(id=1, file_name="movie.mp4")]
    assert service.get_file_owner(1) == FileOwner(
        id=1, file_name="movie.mp4", owner_host="10.0.0.5", owner_port=6000
    )

    # 2. repetir el anuncio → misma fila, renovada
    clock.advance(5)
    service.list_file("p1", "movie.mp4", "10.0.0.5", 6000)
    (row,) = rows()
    assert row[0] == 1
    assert row[5] == clock.now

    # 3. 32s sin heartbeat (umbral 30 + margen 1) → el barrido lo purga
    clock.advance(32)
    Reaper(service.store, cfg).sweep()
    assert service.get_file_owner(1) is None

    # 4. heartbeat tras la purga
    assert service.keep_alive("p1") is False


def test_delist_by_non_owner_leaves_listing(service) -> None:
    service.list_file("p1", "movie.mp4", "10.0.0.5", 6000)
    service.delist_file("movie.mp4", "p2")
    assert [r.file_name for r in service.search_files("movie")] == ["movie.mp4"]


def test_disconnect_and_ttl(service) -> None:
    service.list_file("p1", "a.txt", "10.0.0.5", 6000)
    service.list_file("p1", "b.txt", "10.0.0.5", 6000)

    service.disconnect("p1")
    service.disconnect("p1")

    assert service.search_files("") == []
    assert service.keep_alive("p1") is False
    assert service.get_ttl() == 30


def test_from_config_builds_unverified_store(cfg) -> None:
    from fileshare.service import CatalogService

    svc = CatalogService.from_config(cfg)
    assert not svc.store.ready
    svc.store.verify_schema()
    svc.list_file("p1", "x.bin", "127.0.0.1", 1)
    assert len(svc.search_files("x")) == 1
