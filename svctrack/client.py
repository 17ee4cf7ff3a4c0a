# svctrack/client.py
"""Cliente HTTP mínimo para hablar con un tracker (`POST /`)."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

HEADERS = {"Content-Type": "application/json"}


class TrackerClient:
    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None) -> None:
        self.url = url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = session or requests.Session()

    def query(self) -> Dict[str, Any]:
        """Devuelve la vista actual del tracker sin reportar nada."""
        return self._post({})

    def report(self, services: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
        """Publica `services` y devuelve la vista fusionada."""
        return self._post({"services": dict(services)})

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.session.post(self.url, json=payload, headers=HEADERS, timeout=self.timeout)
        r.raise_for_status()
        return r.json()
