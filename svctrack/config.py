# svctrack/config.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

# --- Funciones de ayuda ---
def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None: return default
    try: return int(raw)
    except (TypeError, ValueError): return default

def _env_int(name: str, default: int):
    return field(default_factory=lambda: _getenv_int(name, default))

def _env_str(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default))

@dataclass(slots=True)
class Config:
    # --- Parámetros del Servidor ---
    hostname: str = _env_str("HOST", "0.0.0.0")
    port: int = _env_int("PORT", 8000)
    # Reintento de `bind` en ms cuando el puerto está ocupado (0 → fallar)
    retry_bind: int = _env_int("RETRY_BIND", 0)
    # Tamaño máximo del cuerpo en bytes (0 → sin límite)
    max_body: int = _env_int("MAX_BODY", 0)
    log_level: str = _env_str("LOG_LEVEL", "INFO")

    # --- Parámetros del Registro ---
    # ms sin refresco tras los cuales un servicio pasa a `available: false`
    timeout: int = _env_int("TIMEOUT", 0)


    def __post_init__(self) -> None:
        """Valida rangos y normaliza el nivel de log."""
        for name in ("port", "retry_bind", "max_body", "timeout"):
            if getattr(self, name) < 0:
                raise ValueError(f"`{name}` no puede ser negativo (recibido {getattr(self, name)}).")
        if self.port > 65535:
            raise ValueError(f"Puerto fuera de rango: {self.port}")
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Nivel de log desconocido: {self.log_level}")

    @property
    def retry_bind_s(self) -> float:
        return self.retry_bind / 1000


    def __repr__(self) -> str:
        expiry_info = f", timeout={self.timeout}ms" if self.timeout else ", timeout=off"
        retry_info = f", retry_bind={self.retry_bind}ms" if self.retry_bind else ""
        body_info = f", max_body={self.max_body}" if self.max_body else ""
        params = f"host='{self.hostname}:{self.port}'{expiry_info}{retry_info}{body_info}"
        return f"<Config {params}>"
