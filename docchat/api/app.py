"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error translation and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docchat.agent.gemini_agent import LLMServiceError
from docchat.api.auth import router as auth_router
from docchat.api.chat import router as chat_router
from docchat.api.context import router as context_router
from docchat.api.routes import router as documents_router
from docchat.errors import ConfigurationError
from docchat.storage.supabase_store import StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting DocChat API...")
    yield
    # Shutdown
    logger.info("Shutting down DocChat API...")


async def configuration_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate Gemini and Supabase failures into 502 responses."""
    logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="DocChat API",
        description=(
            "Upload images, PDFs and text documents, have them summarized by "
            "Gemini, and chat with the summaries as context. Token budgeting "
            "keeps the selected context within the model's limit. Replies "
            "stream as Server-Sent Events."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(ConfigurationError, configuration_error_handler)
    application.add_exception_handler(StorageError, upstream_error_handler)
    application.add_exception_handler(LLMServiceError, upstream_error_handler)

    application.include_router(auth_router)
    application.include_router(documents_router)
    application.include_router(context_router)
    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "docchat"}

    return application


app = create_app()
