# svctrack/server/listener.py
"""
Arranque del tracker: `bind` (con reintento opcional), aviso de
disponibilidad al supervisor y bucle de uvicorn.

El socket se abre aquí y no en uvicorn para poder reintentar el `bind`
cuando el puerto está ocupado y avisar justo después de conseguirlo.
"""
from __future__ import annotations

import errno
import logging
import os
import socket
import time

import uvicorn

from ..config import Config
from .api import create_app

logger = logging.getLogger(__name__)

_BACKLOG = 2048


class BindError(OSError):
    """No se pudo abrir el puerto de escucha."""

    def __init__(self, host: str, port: int, cause: OSError) -> None:
        super().__init__(cause.errno, f"No se pudo escuchar en {host}:{port}: {cause.strerror or cause}")
        self.host = host
        self.port = port


def bind_socket(host: str, port: int, retry_bind_s: float = 0) -> socket.socket:
    """
    Abre un socket TCP en `host:port` y lo deja escuchando.

    Si el puerto está en uso y `retry_bind_s > 0`, reintenta cada
    `retry_bind_s` segundos indefinidamente (sin backoff).  Cualquier otro
    error, o el puerto ocupado sin reintento, lanza `BindError`.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    while True:
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE and retry_bind_s > 0:
                logger.warning("%s:%s en uso; reintento en %.3gs", host, port, retry_bind_s)
                time.sleep(retry_bind_s)
                continue
            raise BindError(host, port, e) from e
        sock.listen(_BACKLOG)
        sock.set_inheritable(True)
        logger.info("Escuchando en %s:%s", *sock.getsockname()[:2])
        return sock


def notify_ready(state: str = "READY=1") -> bool:
    """
    Avisa al proceso supervisor (protocolo sd_notify) de que ya aceptamos tráfico.

    Sin `NOTIFY_SOCKET` en el entorno no hace nada.
    """
    addr = os.getenv("NOTIFY_SOCKET")
    if not addr:
        logger.debug("NOTIFY_SOCKET no definido; sin supervisor que avisar.")
        return False
    if addr.startswith("@"):
        addr = "\0" + addr[1:]  # socket abstracto
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as s:
            s.connect(addr)
            s.sendall(state.encode())
    except OSError as e:
        logger.warning("No se pudo notificar al supervisor (%s): %s", addr, e)
        return False
    logger.debug("Supervisor notificado: %s", state)
    return True


def serve(cfg: Config) -> None:
    """Levanta el tracker y bloquea hasta que uvicorn termine."""
    logging.getLogger().setLevel(cfg.log_level)
    app = create_app(cfg)
    sock = bind_socket(cfg.hostname, cfg.port, cfg.retry_bind_s)
    notify_ready()

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            log_level=cfg.log_level.lower(),
            lifespan="on",
        )
    )
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
