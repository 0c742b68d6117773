"""FastAPI application exposing the documentation tools."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from sdkdocs.config import AppConfig
from sdkdocs.index.indexer import IndexBuilder
from sdkdocs.index.search import QueryService
from sdkdocs.index.state import IndexState
from sdkdocs.tools import (
    DeclarationKind,
    ListPackage,
    PackageName,
    SearchArgs,
    call_tool,
    status_message,
    tool_definitions,
)

LOGGER = logging.getLogger(__name__)


def build_state(config: AppConfig, base_dir: Path | None = None) -> IndexState:
    builder = IndexBuilder.from_repo(config.repo_url, config.resolve_repo_dir(base_dir))
    return IndexState(config.resolve_db_path(base_dir), builder)


def _state(request: Request) -> IndexState:
    return request.app.state.index


def _queries(request: Request) -> QueryService:
    state = _state(request)
    blocked = status_message(state)
    queries = state.queries()
    if blocked is not None or queries is None:
        raise HTTPException(status_code=503, detail=blocked or "Index is not ready")
    return queries


def create_app(config: AppConfig | None = None, *, state: IndexState | None = None) -> FastAPI:
    config = config or AppConfig()
    index_state = state or build_state(config, Path.cwd())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        if not index_state.status().ready and not index_state.open_existing():
            LOGGER.info("Index not found, building in background...")
            index_state.start_background_build()
        yield
        await index_state.stop_background_build()
        index_state.close()

    app = FastAPI(title="sdkdocs", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.index = index_state
    app.state.config = config

    @app.get("/status")
    async def get_status(request: Request) -> Dict[str, Any]:
        return _state(request).status().to_dict()

    @app.get("/tools")
    async def list_tools() -> Dict[str, List[Dict[str, Any]]]:
        return {"tools": tool_definitions()}

    @app.post("/tools/{name}")
    async def run_tool(
        name: str, request: Request, arguments: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        text = call_tool(_state(request), name, arguments)
        return {"content": [{"type": "text", "text": text}]}

    @app.post("/search")
    async def search(payload: SearchArgs, request: Request) -> Dict[str, Any]:
        query = payload.query.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Empty query")
        results = _queries(request).search(
            query,
            package=payload.package,
            type_filter=payload.type,
            limit=payload.limit,
        )
        return {"results": [result.to_dict() for result in results]}

    @app.get("/classes/{name}")
    async def get_class(
        name: str, request: Request, package: Optional[PackageName] = None
    ) -> Dict[str, Any]:
        stored = _queries(request).get_declaration(name, package)
        if stored is None:
            raise HTTPException(status_code=404, detail=f'Class/interface "{name}" not found')
        return stored.to_dict()

    @app.get("/methods/{name}")
    async def get_method(
        name: str, request: Request, package: Optional[PackageName] = None
    ) -> Dict[str, Any]:
        matches = _queries(request).get_member(name, package)
        if not matches:
            raise HTTPException(status_code=404, detail=f'Method "{name}" not found')
        return {"methods": [match.to_dict() for match in matches]}

    @app.get("/modules")
    async def list_modules(
        request: Request, package: ListPackage = "all", type: DeclarationKind = "all"
    ) -> Dict[str, Any]:
        modules = _queries(request).list_declarations(package, type)
        return {"modules": [module.to_dict() for module in modules]}

    @app.post("/rebuild", status_code=202)
    async def rebuild(request: Request) -> Dict[str, Any]:
        index_state = _state(request)
        if index_state.building:
            raise HTTPException(status_code=409, detail="A rebuild is already running")
        index_state.start_background_build()
        return {"status": "building"}

    return app


app = create_app()
