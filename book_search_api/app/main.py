"""
Main entrypoint for the Book Search API.

This module assembles the FastAPI application, sets up logging, loads
the token signing key and includes versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn book_search_api.app.main:app --reload

Importing this module without ``JWT_SECRET_KEY`` set fails with
``RuntimeError``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import ErrorKind, ServiceError, ValidationErrorFromPydantic
from .core.logging_config import setup_logging
from .core.security import load_signing_key
from .services.catalog_service import CatalogError


logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create the database file if needed and apply pending migrations.
    init_db()
    yield


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.AUTHENTICATION else None
    return JSONResponse(status_code=ERROR_STATUS[exc.kind], content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies use the same 400 error body as invalid variables.
    return await service_error_handler(request, ValidationErrorFromPydantic(exc.errors()))


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "code": "CATALOG_UNAVAILABLE", "field": None},
    )


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Configures logging, loads the signing key (raising
    ``RuntimeError`` if it is missing), registers the error handlers
    and mounts the v1 routes under ``/api/v1``.
    """
    setup_logging(settings.log_level, settings.log_file)
    load_signing_key()

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.include_router(v1_router, prefix="/api/v1")
    logger.debug("Application created")
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
