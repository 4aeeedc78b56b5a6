from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .logging_setup import configure_logging
from .repositories import StorageContext
from .routers import notes as notes_router
from .schemas import HealthOut
from .service import NotesService
from .settings import Settings, get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and storage mode."},
    {
        "name": "notes",
        "description": "Create, read, update, delete and search personal notes.",
    },
]


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application. Storage is selected once here, from the
    given settings or the environment.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    storage = StorageContext(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        storage.close()

    app = FastAPI(
        title="Notes Backend",
        description="Personal notes API with local or remote relational storage.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    app.state.storage = storage
    app.state.notes_service = NotesService(storage.provider, storage_info=storage.storage_info)

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # PUBLIC_INTERFACE
    @app.get("/", response_model=HealthOut, summary="Health Check", tags=["health"])
    def health_check() -> HealthOut:
        """
        Health check endpoint.

        Returns:
            Service health, the active storage mode and whether storage is degraded.
        """
        service: NotesService = app.state.notes_service
        return HealthOut(
            message="Healthy",
            storage=service.storage_info,
            degraded=service.last_fallback is not None,
        )

    app.include_router(notes_router.router)
    return app


app = create_app()
