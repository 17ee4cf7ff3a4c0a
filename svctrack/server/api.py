# svctrack/server/api.py
from __future__ import annotations

import json
import logging
import math
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from .. import __version__
from ..config import Config
from ..registry import RegistryStore
from .tracker import Tracker

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdateRequest(BaseModel):
    """Cuerpo de `POST /`.  Sin `services` (o con otra forma) es una consulta."""
    model_config = ConfigDict(extra="ignore")

    services: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, data: Any) -> "UpdateRequest":
        try:
            return cls.model_validate(data)
        except ValidationError:
            return cls()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Constante JSON no válida: {name}")


def _parse_float(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Número fuera de rango: {raw}")
    return value


def decode_json(body: bytes) -> Any:
    """
    `json.loads` estricto: rechaza `NaN`/`Infinity` y números que desbordan
    a infinito, y cadenas con *surrogates* sueltos (`"\\ud800"`), que luego
    no se podrían codificar en UTF-8 al responder.
    """
    data = json.loads(body, parse_constant=_reject_constant, parse_float=_parse_float)
    # UnicodeEncodeError es ValueError
    json.dumps(data, ensure_ascii=False).encode("utf-8")
    return data


async def read_body(request: Request, limit: int = 0) -> bytes:
    """
    Acumula el cuerpo completo de la petición.

    Con `limit > 0` aborta con 413 en cuanto se supera el tamaño.
    `ClientDisconnect` se propaga si el cliente corta la conexión.
    """
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if limit and size > limit:
            raise HTTPException(status_code=413)
        chunks.append(chunk)
    return b"".join(chunks)


def _peer(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/")
async def update(request: Request) -> Response:
    """Fusiona `services` (si viene) y devuelve siempre el registro completo."""
    tracker: Tracker = request.app.state.tracker
    cfg: Config = request.app.state.config
    peer = _peer(request)

    try:
        body = await read_body(request, cfg.max_body)
    except ClientDisconnect:
        logger.warning("Cliente %s desconectado antes de terminar el cuerpo; petición abortada.", peer)
        return Response(status_code=400)

    try:
        data = decode_json(body)
    except (ValueError, RecursionError) as e:
        logger.debug("JSON inválido de %s: %s", peer, e)
        raise HTTPException(status_code=400) from e

    req = UpdateRequest.from_payload(data)
    if req.services is not None:
        tracker.update(req.services, peer)

    return JSONResponse(tracker.snapshot())


async def _http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Errores de cliente como texto plano con la frase estándar; 405 se trata como 404."""
    status = 404 if exc.status_code == 405 else exc.status_code
    return PlainTextResponse(HTTPStatus(status).phrase, status_code=status)


def create_app(cfg: Config | None = None, store: RegistryStore | None = None) -> FastAPI:
    """
    Construye la app con su propio `RegistryStore` y `Tracker`.

    El estado vive en `app.state`, así cada app (y cada test) arranca vacía.
    """
    cfg = cfg or Config()
    tracker = Tracker.from_config(cfg, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Al apagar, cancela los timers pendientes."""
        logger.info("Tracker listo: %r", cfg)
        yield
        app.state.tracker.close()

    app = FastAPI(
        title="svctrack – tracker de servicios",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = cfg
    app.state.tracker = tracker
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.include_router(router)
    return app
