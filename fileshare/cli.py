# fileshare/cli.py

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Annotated

import typer

from .config import Config, ConfigError

cli = typer.Typer(
    add_completion=False,
    help="CLI principal de FileShare. Usa ‘fileshare <comando> --help’ para detalles.",
    no_args_is_help=True,
)

# ───────────────── Opciones ─────────────────

HostOpt = Annotated[str, typer.Option("--host", "-H", help="Interfaz de red para el servidor.", rich_help_panel="Parámetros del Servidor")]
PortOpt = Annotated[int, typer.Option("--port", "-p", min=0, max=65535, help="Puerto HTTP para el servidor.", rich_help_panel="Parámetros del Servidor")]
AnnounceOpt = Annotated[bool, typer.Option("--announce/--no-announce", help="Anunciar el catálogo en la LAN vía mDNS.", rich_help_panel="Parámetros del Servidor")]
DbPathOpt = Annotated[Path, typer.Option("--db-path", "-d", envvar="DB_PATH", dir_okay=False, help="Fichero SQLite del catálogo.", rich_help_panel="Catálogo")]
StaleAgeOpt = Annotated[str, typer.Option("--stale-file-age", envvar="STALE_FILE_AGE", help="Segundos sin heartbeat antes de purgar un anuncio.", rich_help_panel="Reaper")]
GraceOpt = Annotated[str, typer.Option("--reap-grace", envvar="REAP_GRACE", help="Margen extra (s) que se suma al umbral al purgar.", rich_help_panel="Reaper")]
IntervalOpt = Annotated[str, typer.Option("--reap-interval", envvar="REAP_INTERVAL", help="Periodo (s) entre barridos.", rich_help_panel="Reaper")]


def _config(db_path: Path, stale_file_age: str = "30", reap_grace: str = "1") -> Config:
    return Config(db_path=str(db_path), stale_file_age=stale_file_age, reap_grace=reap_grace)


def _open_store(cfg: Config):
    from .catalog import CatalogStore, SchemaError

    store = CatalogStore(cfg)
    try:
        store.verify_schema()
    except SchemaError as exc:
        typer.secho(f"❌  {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return store


# ─────────────── Comandos ───────────────

@cli.command()
def serve(
    host: HostOpt = "0.0.0.0",
    port: PortOpt = 8000,
    db_path: DbPathOpt = Path("fileshare.db"),
    stale_file_age: StaleAgeOpt = "30",
    reap_grace: GraceOpt = "1",
    reap_interval: IntervalOpt = "60",
    announce: AnnounceOpt = False,
) -> None:
    """Lanza la API REST del catálogo y su reaper."""
    # Falla aquí, antes de levantar Uvicorn, si el reaper está mal configurado
    cfg = Config(
        db_path=str(db_path),
        stale_file_age=stale_file_age,
        reap_grace=reap_grace,
        reap_interval=reap_interval,
    )
    try:
        ttl, grace, interval = cfg.stale_file_age_s, cfg.reap_grace_s, cfg.reap_interval_s
    except ConfigError as exc:
        typer.secho(f"❌  {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    env = os.environ.copy()
    env.update({
        "HOST": host,
        "PORT": str(port),
        "DB_PATH": str(db_path.resolve()),
        "STALE_FILE_AGE": stale_file_age,
        "REAP_GRACE": reap_grace,
        "REAP_INTERVAL": reap_interval,
        "ANNOUNCE": "1" if announce else "0",
    })

    typer.echo(f"🚀  Levantando FileShare en http://{host}:{port}")
    typer.echo(f"   • Base de datos: {db_path}")
    typer.echo(f"   • TTL: {ttl}s (+{grace}s de margen), barrido cada {interval}s")
    if announce:
        typer.echo("   • Anuncio mDNS activado")

    try:
        subprocess.run(
            [sys.executable, "-m", "uvicorn", "fileshare.server.api:app", "--host", host, "--port", str(port)],
            check=True,
            env=env,
        )
    except subprocess.CalledProcessError:
        # Uvicorn usualmente es interrumpido con Ctrl+C, lo cual es normal.
        typer.echo("\n👋  Servidor detenido.")
    except Exception as e:
        typer.secho(f"💥 Error inesperado al lanzar Uvicorn: {e}", fg="red")
        raise typer.Exit(1)

@cli.command("init-db")
def init_db(db_path: DbPathOpt = Path("fileshare.db")) -> None:
    """Verifica (o crea) el esquema del catálogo."""
    _open_store(_config(db_path))
    typer.secho(f"✅  Esquema verificado en {db_path}", fg=typer.colors.GREEN)

@cli.command()
def reap(
    db_path: DbPathOpt = Path("fileshare.db"),
    stale_file_age: StaleAgeOpt = "30",
    reap_grace: GraceOpt = "1",
) -> None:
    """Ejecuta un único barrido de anuncios caducados."""
    cfg = _config(db_path, stale_file_age, reap_grace)
    try:
        threshold, grace = cfg.stale_file_age_s, cfg.reap_grace_s
    except ConfigError as exc:
        typer.secho(f"❌  {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    store = _open_store(cfg)
    deleted = store.purge_older_than(threshold, grace)
    typer.echo(f"🧹  {deleted} anuncio(s) purgados.")

@cli.command()
def search(
    query: Annotated[str, typer.Argument(help="Subcadena a buscar.")] = "",
    db_path: DbPathOpt = Path("fileshare.db"),
) -> None:
    """Busca ficheros en el catálogo local (sin mostrar direcciones)."""
    results = _open_store(_config(db_path)).search(query)
    if not results:
        typer.secho("🙁  Sin resultados.", fg=typer.colors.YELLOW)
        return
    for r in results:
        typer.echo(f" • [{r.id}] {r.file_name}")

@cli.command()
def discover(timeout: Annotated[float, typer.Option("--timeout", "-t", help="Segundos de búsqueda.")] = 5) -> None:
    """Busca servidores de catálogo FileShare vía mDNS."""
    from .discovery.mdns import discover_catalogs
    nodes = discover_catalogs(timeout=timeout)
    if nodes:
        typer.secho("🌐  Catálogos encontrados:", bold=True)
        for n in nodes:
            typer.echo(f" • {n.host}:{n.port} – {n.info or 'sin descripción'}")
    else:
        typer.secho("🙁  No se detectaron catálogos.", fg=typer.colors.YELLOW)

def _main() -> None:
    cli()

if __name__ == "__main__":
    _main()
