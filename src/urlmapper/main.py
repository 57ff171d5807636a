import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from urlmapper.api.middleware import LoggingMiddleware
from urlmapper.api.routes import SUPPORTED_METHODS, router as api_router
from urlmapper.core.config import Settings, get_settings
from urlmapper.core.errors import ApiError, StoreError, error_body, normalize_http_exception
from urlmapper.core.logging import setup_logging
from urlmapper.services.mappings import MappingService
from urlmapper.stores.base import MappingStore
from urlmapper.stores.factory import build_store

logger = logging.getLogger("urlmapper")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings or get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    store: MappingStore = app.state.store or build_store(settings)
    if not store.ping():
        store.close()
        raise RuntimeError(f"mapping store {settings.store_backend!r} is unreachable")

    app.state.service = MappingService(
        store,
        code_length=settings.short_code_length,
        max_create_attempts=settings.max_create_attempts,
    )
    logger.info("Serving mappings from %s store %r", settings.store_backend, settings.store_name)

    yield

    logger.info("Shutting down")
    store.close()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None)
    # dispatch is by method first: an unsupported method is 405 on any path
    if exc.status_code == 405 or (exc.status_code == 404 and request.method not in SUPPORTED_METHODS):
        return PlainTextResponse("Method not allowed", status_code=405)
    error = normalize_http_exception(exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(error), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected body on %s %s: %s", request.method, request.url.path, exc.errors())
    error = ApiError(code="BAD_REQUEST", message="Invalid request body")
    return JSONResponse(status_code=400, content=error_body(error))


async def store_exception_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    # no store detail leaves the process
    error = ApiError(code="INTERNAL_SERVER_ERROR", message="Internal server error")
    return JSONResponse(status_code=500, content=error_body(error))


def create_app(settings: Optional[Settings] = None, store: Optional[MappingStore] = None) -> FastAPI:
    """
    Builds the application. Settings and the store are resolved at startup
    when not passed in, so importing this module needs no environment.
    """
    app = FastAPI(title="URL Mapping Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)

    app.include_router(api_router)
    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
