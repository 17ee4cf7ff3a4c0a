# svctrack/server/tracker.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import Config
from ..registry import RegistryStore

logger = logging.getLogger(__name__)


class ExpiryTimers:
    """
    Tabla `nombre → TimerHandle | None` con como mucho un timer vivo por nombre.

    Al disparar (o al cancelar) la entrada vuelve a `None` en lugar de
    borrarse, así cancelar dos veces no tiene efecto.
    """
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: Dict[str, Optional[asyncio.TimerHandle]] = {}

    def arm(self, name: str, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        """Cancela el timer pendiente de `name` (si lo hay) y programa uno nuevo."""
        self.cancel(name)
        loop = self._loop or asyncio.get_running_loop()
        handle = loop.call_later(delay, self._fire, name, callback, args)
        self._handles[name] = handle
        return handle

    def _fire(self, name: str, callback: Callable[..., Any], args: tuple) -> None:
        try:
            callback(*args)
        finally:
            self._handles[name] = None

    def cancel(self, name: str) -> bool:
        handle = self._handles.get(name)
        if handle is None:
            return False
        handle.cancel()
        self._handles[name] = None
        return True

    def cancel_all(self) -> int:
        cancelled = [name for name in list(self._handles) if self.cancel(name)]
        return len(cancelled)

    def pending(self, name: str) -> bool:
        return self._handles.get(name) is not None

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return sum(1 for h in self._handles.values() if h is not None)


class Tracker:
    """
    Fusiona los reportes de los clientes en el `RegistryStore` y gestiona
    la expiración de cada servicio.

    Con `timeout_ms == 0` los servicios nunca expiran.
    """
    def __init__(
        self,
        store: RegistryStore,
        timeout_ms: int = 0,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.store = store
        self.timeout_ms = timeout_ms
        self.timers = ExpiryTimers(loop)

    @property
    def expiry_enabled(self) -> bool:
        return self.timeout_ms > 0

    @classmethod
    def from_config(cls, cfg: Config, store: RegistryStore | None = None) -> "Tracker":
        return cls(store if store is not None else RegistryStore(), timeout_ms=cfg.timeout)

    def update(self, services: Mapping[str, Any], reporter_address: Optional[str]) -> List[str]:
        """
        Fusiona `services` y (re)arma el timer de cada nombre fusionado.

        Los descriptores que no son objetos JSON se descartan uno a uno;
        el resto del reporte se fusiona igualmente.
        """
        reports: Dict[str, Dict[str, Any]] = {}
        for name, descriptor in services.items():
            if not isinstance(descriptor, dict):
                logger.warning(
                    "Servicio %r de %s ignorado: el descriptor no es un objeto (%s)",
                    name, reporter_address, type(descriptor).__name__,
                )
                continue
            reports[name] = descriptor

        merged = self.store.merge(reports, reporter_address)
        if self.expiry_enabled:
            delay = self.timeout_ms / 1000
            for name in merged:
                self.timers.arm(name, delay, self._expire, name)
        if merged:
            logger.info("%s reportó %d servicio(s): %s", reporter_address, len(merged), ", ".join(merged))
        return merged

    def _expire(self, name: str) -> None:
        if self.store.mark_unavailable(name):
            logger.info("Servicio %r sin refresco en %d ms → unavailable", name, self.timeout_ms)
        else:
            logger.debug("Timer de %r disparado pero la entrada ya no existe", name)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return self.store.snapshot()

    def close(self) -> None:
        """Cancela todos los timers pendientes."""
        n = self.timers.cancel_all()
        logger.debug("Tracker cerrado, %d timer(s) cancelado(s).", n)
