import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aqualink import __version__
from aqualink.core.config import Settings, settings as default_settings
from aqualink.core.logging import setup_logging
from aqualink.routers import anomalies, auth, drivers, locations, requests, users
from aqualink.storage import Storage, build_storage

logger = logging.getLogger("aqualink.app")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON and schema violations: 400 with one entry per field."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        field = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc)
        errors.append({"field": field, "message": error.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the API. The storage backend is chosen from settings unless one is
    passed in, which is how tests get an isolated store per app.
    """
    settings = settings or default_settings
    setup_logging(settings)
    if storage is None:
        storage = build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await storage.init()
        logger.info(f"{settings.PROJECT_NAME} started with {storage.backend} storage")
        yield
        await storage.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for AquaLink - water delivery requests between residents, drivers and operators",
        version=__version__,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Authentication"])
    app.include_router(users.router, prefix=settings.API_PREFIX, tags=["Users"])
    app.include_router(requests.router, prefix=settings.API_PREFIX, tags=["Requests"])
    app.include_router(drivers.router, prefix=settings.API_PREFIX, tags=["Drivers"])
    app.include_router(locations.router, prefix=settings.API_PREFIX, tags=["Locations"])
    app.include_router(anomalies.router, prefix=settings.API_PREFIX, tags=["Anomalies"])

    @app.get(f"{settings.API_PREFIX}/health", tags=["Health"])
    async def health_check():
        return {"status": "ok", "storage": storage.backend}

    return app
