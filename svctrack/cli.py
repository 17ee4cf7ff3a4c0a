# svctrack/cli.py

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Optional

import typer

from .config import Config

cli = typer.Typer(
    add_completion=False,
    help="CLI principal de svctrack. Usa ‘svctrack <comando> --help’ para detalles.",
    no_args_is_help=True,
)

# ───────────────── Opciones ─────────────────

# --- Opciones del Servidor ---
HostOpt = Annotated[str, typer.Option("--hostname", "-H", envvar="HOST", help="Interfaz de red para el tracker.", rich_help_panel="Parámetros del Servidor")]
PortOpt = Annotated[int, typer.Option("--port", "-p", envvar="PORT", min=0, max=65535, help="Puerto HTTP para el tracker.", rich_help_panel="Parámetros del Servidor")]
RetryBindOpt = Annotated[int, typer.Option("--retry-bind", envvar="RETRY_BIND", min=0, help="Si el puerto está ocupado, reintentar cada N ms (0 → fallar).", rich_help_panel="Parámetros del Servidor")]
MaxBodyOpt = Annotated[int, typer.Option("--max-body", envvar="MAX_BODY", min=0, help="Tamaño máximo del cuerpo en bytes (0 → sin límite).", rich_help_panel="Parámetros del Servidor")]
LogLevelOpt = Annotated[str, typer.Option("--log-level", envvar="LOG_LEVEL", help="Nivel de logging.", rich_help_panel="Parámetros del Servidor")]

# --- Opciones del Registro ---
TimeoutOpt = Annotated[int, typer.Option("--timeout", "-t", envvar="TIMEOUT", min=0, help="ms sin refresco tras los cuales un servicio se marca no disponible (0 → nunca).", rich_help_panel="Parámetros del Registro")]

# --- Opciones de cliente ---
UrlOpt = Annotated[str, typer.Option("--url", "-u", envvar="TRACKER_URL", help="URL del tracker.")]
ClientTimeoutOpt = Annotated[float, typer.Option("--request-timeout", help="Timeout HTTP en segundos.")]


# ─────────────── Comandos ───────────────

@cli.command()
def serve(
    hostname: HostOpt = "0.0.0.0",
    port: PortOpt = 8000,
    timeout: TimeoutOpt = 0,
    retry_bind: RetryBindOpt = 0,
    max_body: MaxBodyOpt = 0,
    log_level: LogLevelOpt = "INFO",
) -> None:
    """Lanza el tracker HTTP."""
    from .server.listener import BindError, serve as run_server

    try:
        cfg = Config(
            hostname=hostname,
            port=port,
            timeout=timeout,
            retry_bind=retry_bind,
            max_body=max_body,
            log_level=log_level,
        )
    except ValueError as e:
        typer.secho(f"❌  {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)

    typer.echo(f"🚀  Levantando svctrack en http://{hostname}:{port}")
    typer.echo(f"   • Expiración: {f'{timeout} ms' if timeout else 'desactivada'}")
    if retry_bind:
        typer.echo(f"   • Reintento de bind cada {retry_bind} ms")

    try:
        run_server(cfg)
    except BindError as e:
        typer.secho(f"💥 {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\n👋  Servidor detenido.")


@cli.command()
def query(url: UrlOpt = "http://127.0.0.1:8000", request_timeout: ClientTimeoutOpt = 10.0) -> None:
    """Muestra la vista actual del tracker sin reportar nada."""
    import requests

    from .client import TrackerClient

    try:
        view = TrackerClient(url, timeout=request_timeout).query()
    except requests.exceptions.RequestException as e:
        typer.secho(f"❌  Error de conexión: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(view, indent=2, ensure_ascii=False))


def _parse_fields(pairs: List[str]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Se esperaba clave=valor, recibido {pair!r}", param_hint="--field")
        try:
            fields[key] = json.loads(raw)
        except ValueError:
            fields[key] = raw
    return fields


@cli.command()
def report(
    name: Annotated[str, typer.Argument(help="Nombre del servicio.")],
    descriptor: Annotated[Optional[str], typer.Option("--descriptor", "-d", help="Descriptor como objeto JSON.")] = None,
    field: Annotated[Optional[List[str]], typer.Option("--field", "-f", help="Campo clave=valor (repetible).")] = None,
    url: UrlOpt = "http://127.0.0.1:8000",
    request_timeout: ClientTimeoutOpt = 10.0,
) -> None:
    """Publica un servicio en el tracker y muestra la vista resultante."""
    import requests

    from .client import TrackerClient

    data: Dict[str, Any] = {}
    if descriptor:
        try:
            data = json.loads(descriptor)
        except ValueError as e:
            raise typer.BadParameter(f"JSON inválido: {e}", param_hint="--descriptor")
        if not isinstance(data, dict):
            raise typer.BadParameter("El descriptor debe ser un objeto JSON.", param_hint="--descriptor")
    data.update(_parse_fields(field or []))

    try:
        view = TrackerClient(url, timeout=request_timeout).report({name: data})
    except requests.exceptions.RequestException as e:
        typer.secho(f"❌  Error de conexión: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(view, indent=2, ensure_ascii=False))


def _main() -> None:
    cli()

if __name__ == "__main__":
    _main()
