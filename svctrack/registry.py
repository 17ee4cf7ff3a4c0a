# svctrack/registry.py
"""
Registro en memoria de servicios reportados por los clientes.

Cada entrada es el descriptor JSON tal cual lo envió el cliente, más dos
campos añadidos por el servidor:

* ``reporterAddress`` – dirección de quien lo reportó por última vez.
* ``available``       – ``True`` al (re)reportar, ``False`` tras expirar.

Las entradas nunca se borran al expirar; sólo cambia ``available``.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

REPORTER_FIELD = "reporterAddress"
AVAILABLE_FIELD = "available"

Descriptor = Dict[str, Any]


class RegistryStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: Dict[str, Descriptor] = {}

    def merge(self, reports: Mapping[str, Mapping[str, Any]], reporter_address: Optional[str]) -> List[str]:
        """
        Inserta o sobrescribe cada servicio de `reports`.

        Los campos desconocidos del descriptor se conservan; los campos del
        servidor siempre pisan lo que haya enviado el cliente.
        Devuelve los nombres fusionados.
        """
        merged: List[str] = []
        with self._lock:
            for name, descriptor in reports.items():
                entry = dict(descriptor)
                entry[REPORTER_FIELD] = reporter_address
                entry[AVAILABLE_FIELD] = True
                self._store[name] = entry
                merged.append(name)
        logger.debug("merge: %d servicio(s) de %s", len(merged), reporter_address)
        return merged

    def mark_unavailable(self, name: str) -> bool:
        with self._lock:
            entry = self._store.get(name)
            if entry is None:
                return False
            entry[AVAILABLE_FIELD] = False
        return True

    def snapshot(self) -> Dict[str, Descriptor]:
        """Copia consistente de todo el registro, lista para serializar."""
        with self._lock:
            return {name: dict(entry) for name, entry in self._store.items()}

    def get(self, name: str) -> Optional[Descriptor]:
        with self._lock:
            entry = self._store.get(name)
            return dict(entry) if entry is not None else None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
