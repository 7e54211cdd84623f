"""FastAPI application serving the generated API document."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Iterable, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..assembler import DocumentBuilder
from ..errors import RoutedocError
from ..models import RouteNode

TableFactory = Callable[[], Iterable[RouteNode]]
BuilderFactory = Callable[[], DocumentBuilder]


class HealthResponse(BaseModel):
    status: str


class RebuildResponse(BaseModel):
    status: str
    paths: int
    tags: int


class _DocumentState:
    """Holds the most recently built document; rebuilds replace it wholesale."""

    def __init__(self, table_factory: TableFactory, builder_factory: BuilderFactory) -> None:
        self._table_factory = table_factory
        self._builder_factory = builder_factory
        self.document: Optional[Dict[str, Any]] = None

    def rebuild(self) -> Dict[str, Any]:
        document = self._builder_factory().build(self._table_factory())
        self.document = document
        return document


def create_app(table_factory: TableFactory, builder_factory: BuilderFactory) -> FastAPI:
    """Create the FastAPI application exposing the document and a rebuild trigger."""

    app = FastAPI(title="routedoc", version="1.0.0", openapi_url=None, docs_url=None, redoc_url=None)
    state = _DocumentState(table_factory, builder_factory)
    app.state.documents = state

    async def get_state() -> _DocumentState:
        return state

    async def _rebuild(current: _DocumentState) -> Dict[str, Any]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover - fallback path when not in async context
            return current.rebuild()
        return await loop.run_in_executor(None, current.rebuild)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/openapi.json")
    async def document(current: _DocumentState = Depends(get_state)) -> JSONResponse:
        payload = current.document
        if payload is None:
            payload = await _rebuild(current)
        return JSONResponse(content=payload)

    @app.post("/rebuild", response_model=RebuildResponse)
    async def rebuild(current: _DocumentState = Depends(get_state)) -> RebuildResponse:
        payload = await _rebuild(current)
        return RebuildResponse(
            status="ok", paths=len(payload["paths"]), tags=len(payload["tags"])
        )

    @app.exception_handler(RoutedocError)
    async def routedoc_error_handler(
        _: Any, exc: RoutedocError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    table_factory: TableFactory,
    builder_factory: BuilderFactory,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:  # pragma: no cover - integration path
    app = create_app(table_factory, builder_factory)
    uvicorn.run(app, host=host, port=port)
