"""HTTP entry point.

Builds the FastAPI app: startup wiring of the catalog, matcher and message
store, CORS, the messages router and JSON error handlers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wishgen import __version__
from wishgen.api.messages import router as messages_router
from wishgen.api.schemas import ErrorResponse
from wishgen.core.config import Settings, get_settings
from wishgen.core.factory import ComponentFactory
from wishgen.core.logging_config import setup_logging
from wishgen.db.session import close_db, init_db

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET /messages/categories",
    "GET /messages/templates",
    "POST /messages/generate",
    "POST /messages/edit",
    "GET /messages/history",
    "GET /messages/stats",
    "DELETE /messages/{message_id}",
    "POST /messages/examples",
    "GET /messages/export",
    "POST /messages/import",
    "DELETE /messages",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire shared components for the lifetime of the app.

    Builds the template catalog and matcher, then initializes the database.
    An invalid catalog aborts startup. A database failure only aborts
    startup when ``database_required`` is set; otherwise messages are
    generated without being stored.
    """
    settings: Settings = app.state.settings

    logger.info("Starting Greeting Message Generator API...")

    factory = ComponentFactory(settings)
    try:
        app.state.catalog = factory.get_catalog()
        app.state.matcher = factory.get_matcher()
    except Exception as e:
        logger.critical(f"Template catalog unavailable, refusing to start: {e}", exc_info=True)
        raise

    try:
        await init_db(settings)
    except Exception as e:
        if settings.database_required:
            logger.error(f"Required database is unavailable: {e}", exc_info=True)
            raise
        logger.warning(f"Database unavailable, messages will not be stored: {e}")

    yield

    logger.info("Shutting down Greeting Message Generator API...")

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Database shutdown failed: {e}", exc_info=True)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to run with. Defaults to the global settings read
            from the environment.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Greeting Message Generator",
        description="Turns a free-text prompt into a greeting template with placeholders",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(messages_router)
    logger.info("Registered messages router")

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "message": "Greeting Message Generator API is running!",
            "version": __version__,
            "endpoints": ENDPOINTS,
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness probe. Does not touch the database."""
        return {
            "status": "healthy",
            "service": "wishgen-api",
            "version": __version__,
        }

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation error",
                "errors": jsonable_errors(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                detail="Internal server error",
                error_code="INTERNAL_ERROR",
            ).model_dump(),
        )

    return app


def jsonable_errors(errors: list[dict]) -> list[dict]:
    """Drop non-serializable exception objects from validation errors."""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in errors]


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    logger.info("Starting uvicorn server on port 8000...")
    uvicorn.run(
        "wishgen.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
