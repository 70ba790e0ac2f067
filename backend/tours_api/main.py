import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from tours_api.core.config import settings
from tours_api.core.errors import StorageUnavailable, ToursApiError
from tours_api.core.log_config import configure_logging
import tours_api.models  # noqa: F401  # force model registration

from tours_api.api.v1.auth import router as auth_router
from tours_api.api.v1.tours import router as tours_router

logger = structlog.get_logger()


async def _tours_api_error_handler(request: Request, exc: ToursApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


async def _storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Surfaced, never retried: a retry could repeat the registration write.
    logger.error(
        "storage_unavailable",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    return await _tours_api_error_handler(request, StorageUnavailable())


def create_application() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Scottsdale Tours API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ToursApiError, _tours_api_error_handler)
    for exc_type in (OperationalError, InterfaceError, PoolTimeoutError):
        app.add_exception_handler(exc_type, _storage_error_handler)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "scottsdale-tours"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(tours_router, prefix="/api/v1")

    logger.info("application_created", environment=settings.ENVIRONMENT)
    return app


app = create_application()
