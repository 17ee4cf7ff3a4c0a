"""
Fixtures compartidos por toda la suite PyTest.

Objetivo → correr los tests sin abrir puertos reales (salvo los de
`test_listener.py`) y sin que el entorno de la máquina altere la config.
"""
from __future__ import annotations

from typing import Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from svctrack.config import Config
from svctrack.server.api import create_app

_ENV_VARS = ("HOST", "PORT", "TIMEOUT", "RETRY_BIND", "MAX_BODY", "LOG_LEVEL", "NOTIFY_SOCKET", "TRACKER_URL")


# ════════════════════════════════════════════════════════════════════════════
# Fixture: entorno limpio para `Config`
# ════════════════════════════════════════════════════════════════════════════
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):  # noqa: D401
    """Quita las variables que `Config` lee para que valgan los defaults."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


# ════════════════════════════════════════════════════════════════════════════
# Fixture: fábrica de apps con su propio registro
# ════════════════════════════════════════════════════════════════════════════
@pytest.fixture
def make_app() -> Callable[..., FastAPI]:
    """`make_app(timeout=300)` → app nueva con un `RegistryStore` vacío."""
    apps: list[FastAPI] = []

    def _factory(**overrides) -> FastAPI:
        app = create_app(Config(**overrides))
        apps.append(app)
        return app

    yield _factory
    for app in apps:
        app.state.tracker.close()


@pytest.fixture
def client_for() -> Callable[..., AsyncClient]:
    """`client_for(app, "10.0.0.1")` → cliente httpx simulando esa IP de origen."""

    def _client(app: FastAPI, host: str = "127.0.0.1", port: int = 40000) -> AsyncClient:
        transport = ASGITransport(app=app, client=(host, port))
        return AsyncClient(base_url="http://test", transport=transport)

    return _client
