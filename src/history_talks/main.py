"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from history_talks import __version__
from history_talks.api.routes import admin, health, messages, personas, uploads
from history_talks.config import settings
from history_talks.db.session import get_session_context, init_db
from history_talks.logging import get_logger, setup_logging
from history_talks.services.catalog import PersonaCatalog
from history_talks.services.storage import URL_PREFIX, MediaStorage

# Setup logging
setup_logging()
logger = get_logger(__name__)


def prepare_catalog() -> dict[str, int]:
    """Create tables and media folders, seed an empty catalog, reconcile video URLs."""
    init_db()
    storage = MediaStorage()
    with get_session_context() as session:
        catalog = PersonaCatalog(session)
        seeded = catalog.seed_if_empty()
        reconciled = catalog.reconcile_video_urls(storage)
    return {"seeded": seeded, **reconciled}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__)

    try:
        startup = prepare_catalog()
        logger.info("catalog_ready", **startup)
    except SQLAlchemyError as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    yield

    # Shutdown
    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="History Talks",
    description="Conversations with historical figures, with video avatars and voices",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as {"message": ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


# Register routers
app.include_router(health.router)
app.include_router(personas.router, prefix="/api")
app.include_router(uploads.router, prefix="/api")
app.include_router(messages.router, prefix="/api")
app.include_router(admin.router, prefix="/api")

# Uploaded and optimized media
app.mount(
    URL_PREFIX,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    return {
        "name": "History Talks",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "history_talks.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
