from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.config import get_settings
from backend.app.database import engine, init_db
from backend.app.routers import forms, health
from tour_builder.exceptions import (
    FormNotFoundError,
    InvalidPayloadError,
    PDFGenerationError,
    StorageError,
)
from tour_builder.logging_utils import get_logger

logger = get_logger(__name__)

ERROR_STATUS = (
    (FormNotFoundError, 404),
    (InvalidPayloadError, 400),
    (StorageError, 503),
    (PDFGenerationError, 500),
)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type, status_code in ERROR_STATUS:

        def handler(request: Request, exc: Exception, status_code: int = status_code) -> JSONResponse:
            if status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        app.add_exception_handler(exc_type, handler)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
    )
    init_db(engine)
    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(forms.router)
    app.include_router(forms.drafts_router)
    return app


app = create_app()
