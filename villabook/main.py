import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import Settings, settings as default_settings
from .db import Database
from .errors import BookingError
from .limiter import limiter
from .routers import admin_api, bookings_api
from .services.booking_service import BookingService
from .services.catalog import seed_default_catalog

logger = logging.getLogger("villabook.startup")


def configure_logging(settings: Settings) -> None:
    _level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
    logging.basicConfig(
        level=_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Align uvicorn loggers with our level (useful under Docker Compose)
    for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(_name).setLevel(_level)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL, busy_timeout=settings.SQLITE_BUSY_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Runs startup tasks: schema and default catalog."""
        logger.info("Running startup tasks...")
        database.ensure_schema()
        if settings.SEED_DEFAULT_CATALOG:
            with database.unit_of_work() as db:
                seed_default_catalog(db)
        logger.info("Startup tasks complete.")
        yield
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description=(
            f"{settings.APP_NAME}: conflict-checked villa and room bookings.\n\n"
            "Guests request stays under /api/v1/bookings; hosts decide on them "
            "and block dates under /api/v1/admin."
        ),
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.booking_service = BookingService.from_settings(database, settings)

    # Add the limiter to the app state
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    # Add the exception handler for rate limit exceeded errors
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(bookings_api.router)
    app.include_router(admin_api.router)

    @app.get("/healthz")
    @limiter.exempt
    def healthz():
        return {"status": "ok"}

    return app


configure_logging(default_settings)
logger.info("Starting %s (DEBUG=%s)", default_settings.APP_NAME, getattr(default_settings, "DEBUG", False))
app = create_app()
