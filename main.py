"""
Main API module for the Shortener platform.

Responsibilities:
    - Expose the HTTP surface: plain-text and JSON creation, batch creation,
      redirect, per-user listing and deletion, health and internal stats
    - Map service error kinds to HTTP statuses in one place
    - Log one access line per request

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Settings are built once (Settings.from_env) and injected; the storage
      backend comes from the factory unless a test passes one in.
    - ShortURLManager owns validation, uniqueness handling and retries; the
      routes only translate between HTTP and the manager.

Status mapping:
    AlreadyExists -> 409 (body carries the existing short URL)
    NotFound -> 404, Deleted -> 410
    InvalidSourceURL / EmptyAlias -> 422
    ExhaustedRetries / StorageUnavailable -> 503
    InvalidBaseURL and other storage errors -> 500
"""

import ipaddress
import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Type

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from auth.dependencies import get_current_user, get_optional_user
from shortener.config import Settings
from shortener.errors import (
    AlreadyExists,
    Deleted,
    EmptyAlias,
    ExhaustedRetries,
    InvalidBaseURL,
    InvalidSourceURL,
    NotFound,
    ShortenerError,
    StorageUnavailable,
    WriteFailed,
)
from shortener.logging_config import configure_logging
from shortener.manager.generator import AliasGenerator
from shortener.manager.shorturl_manager import ShortURLManager
from shortener.models import BatchItem
from shortener.storage.base import BaseStorage
from shortener.storage.storage_factory import get_storage

log = logging.getLogger("shortener.api")

ERROR_STATUS: Dict[Type[ShortenerError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Deleted: status.HTTP_410_GONE,
    InvalidSourceURL: status.HTTP_422_UNPROCESSABLE_ENTITY,
    EmptyAlias: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AlreadyExists: status.HTTP_409_CONFLICT,
    ExhaustedRetries: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    WriteFailed: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidBaseURL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: ShortenerError) -> int:
    for kind in type(exc).__mro__:
        if kind in ERROR_STATUS:
            return ERROR_STATUS[kind]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class ShortenRequest(BaseModel):
    """Request payload for POST /api/shorten."""
    url: str


class ShortenResponse(BaseModel):
    result: str


class BatchRequestItem(BaseModel):
    correlation_id: str
    original_url: str


class BatchResponseItem(BaseModel):
    correlation_id: str
    short_url: str


class UserURLResponse(BaseModel):
    short_url: str
    original_url: str


class StatsResponse(BaseModel):
    urls: int
    users: int


def create_app(settings: Optional[Settings] = None, storage: Optional[BaseStorage] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        settings: process configuration; read from the environment when omitted.
        storage: backend override (tests); built by the storage factory when omitted.

    Returns:
        FastAPI: a configured app with its own storage and manager.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if storage is None:
        storage = get_storage(settings)
    manager = ShortURLManager(
        storage=storage,
        generator=AliasGenerator(settings.alias_length),
        base_url=settings.base_url,
        max_generation_attempts=settings.max_generation_attempts,
    )
    trusted_subnet = ipaddress.ip_network(settings.trusted_subnet, strict=False) if settings.trusted_subnet else None

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        log.info("Shortener started: backend=%s base_url=%s", storage.name, settings.base_url)
        yield
        storage.close()

    app = FastAPI(
        title="Shortener",
        description="URL shortener with pluggable storage backends",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.manager = manager

    # ----------------------------------------------------------------
    # Cross-cutting
    # ----------------------------------------------------------------
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        log.info(
            "%s %s -> %d (%.1f ms)",
            request.method, request.url.path, response.status_code,
            (time.perf_counter() - started) * 1000.0,
        )
        return response

    @app.exception_handler(ShortenerError)
    async def shortener_error_handler(request: Request, exc: ShortenerError):
        code = status_for(exc)
        if code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    def _client_ip(request: Request) -> Optional[str]:
        return request.headers.get("x-real-ip") or (request.client.host if request.client else None)

    def _is_trusted(request: Request) -> bool:
        if trusted_subnet is None:
            return False
        ip = _client_ip(request)
        try:
            return ip is not None and ipaddress.ip_address(ip) in trusted_subnet
        except ValueError:
            return False

    def _delete_in_background(owner_id: str, aliases: List[str]) -> None:
        try:
            manager.mark_deleted(owner_id, aliases)
        except ShortenerError:
            log.exception("Deleting %d aliases for %r failed", len(aliases), owner_id)

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/ping")
    def ping() -> Response:
        """Liveness of the storage backend: 200 when healthy, 500 otherwise."""
        try:
            manager.ping()
        except StorageUnavailable as e:
            log.warning("Ping failed: %s", e)
            return PlainTextResponse("storage is not healthy", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return PlainTextResponse("OK")

    @app.post("/")
    async def create_plain(request: Request, owner_id: Optional[str] = Depends(get_optional_user)) -> Response:
        """
        Create a short URL from a plain-text body.

        Returns:
            201 with the short URL as text, or 409 with the existing one.
        """
        source_url = (await request.body()).decode("utf-8", errors="replace").strip()
        try:
            record = await run_in_threadpool(manager.save, source_url, owner_id)
        except AlreadyExists as e:
            return PlainTextResponse(manager.short_url(e.record), status_code=status.HTTP_409_CONFLICT)
        return PlainTextResponse(manager.short_url(record), status_code=status.HTTP_201_CREATED)

    @app.post("/api/shorten", status_code=status.HTTP_201_CREATED, response_model=ShortenResponse)
    def create_json(req: ShortenRequest, owner_id: Optional[str] = Depends(get_optional_user)):
        """
        Create a short URL from {"url": ...}.

        Returns:
            201 {"result": short_url}, or 409 {"result": existing_short_url}.
        """
        try:
            record = manager.save(req.url, owner_id)
        except AlreadyExists as e:
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={"result": manager.short_url(e.record)},
            )
        return ShortenResponse(result=manager.short_url(record))

    @app.post("/api/shorten/batch", status_code=status.HTTP_201_CREATED, response_model=List[BatchResponseItem])
    def create_batch(items: List[BatchRequestItem]):
        """Best-effort batch creation; failed items are omitted from the response."""
        results = manager.batch_save(
            BatchItem(correlation_id=i.correlation_id, original_url=i.original_url) for i in items
        )
        return [BatchResponseItem(correlation_id=r.correlation_id, short_url=r.short_url) for r in results]

    @app.get("/api/user/urls", response_model=List[UserURLResponse])
    def user_urls(owner_id: str = Depends(get_current_user)):
        urls = manager.get_user_urls(owner_id)
        if not urls:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return [UserURLResponse(short_url=u.short_url, original_url=u.original_url) for u in urls]

    @app.delete("/api/user/urls", status_code=status.HTTP_202_ACCEPTED)
    def delete_user_urls(
        background_tasks: BackgroundTasks,
        aliases: List[str] = Body(...),
        owner_id: str = Depends(get_current_user),
    ):
        """Accept a list of aliases for deletion; the work runs after the response."""
        background_tasks.add_task(_delete_in_background, owner_id, aliases)
        return {"accepted": len(aliases)}

    @app.get("/api/internal/stats", response_model=StatsResponse)
    def internal_stats(request: Request):
        if not _is_trusted(request):
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": "Forbidden"})
        stats = manager.get_stats()
        return StatsResponse(urls=stats.urls, users=stats.users)

    @app.get("/{alias}")
    def redirect(alias: str) -> Response:
        """307 to the source URL; 404 for unknown aliases, 410 for deleted ones."""
        record = manager.find_by_alias(alias)
        return RedirectResponse(url=record.source_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()
