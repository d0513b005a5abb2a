import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.container import build_container
from .core.logging import init_logging, request_context_middleware
from .db.migrate import apply_migrations
from .core import errors
from .routers import convert, health
from .routers.deps import rate_limit_headers_middleware
from .services.rates.base import RateSource


def create_app(
    settings_override: Settings | None = None,
    rate_source: Optional[RateSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    rate_source / clock: replace the upstream rate source and the time source
    (tests inject fakes here).
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(
        debug=settings.debug, level_name=settings.log_level, log_dir=settings.log_dir
    )

    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        # Failing to init DB is fatal; re-raise after logging
        logging.getLogger("fxconvert").exception("failed to apply migrations on startup")
        raise

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        description="Converts amounts between FIAT and crypto currencies using cached live rates.",
    )
    app.state.services = build_container(settings, rate_source=rate_source, clock=clock)

    # Middleware (request id / structured logging)
    app.middleware("http")(rate_limit_headers_middleware)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ConversionError, errors.conversion_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(convert.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()
