"""FastAPI application for the streaming relay.

Wires the chat router, CORS for the browser client and a health probe. A
relay that cannot be configured (no API key) does not stop the server; its
requests are answered with 503 instead.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from streamchat.agent.relay import get_relay
from streamchat.api.chat import router as chat_router
from streamchat.errors import RelayNotConfiguredError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Build the relay once at startup so configuration errors show early."""
    try:
        relay = get_relay()
    except RelayNotConfiguredError as e:
        logger.error(f"Relay not configured, /chat/stream will answer 503: {e}")
    else:
        logger.info(f"Relay ready with a {relay.max_duration:g}s execution limit")
    yield
    logger.info("Relay shutting down")


async def relay_unavailable(request: Request, exc: RelayNotConfiguredError) -> JSONResponse:
    logger.warning(f"Rejected {request.url.path}: relay not configured")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Relay is not configured"},
    )


def cors_origins() -> list[str]:
    """Allowed browser origins from ``CORS_ORIGINS`` (comma separated)."""
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Stream Chat Relay",
        description=(
            "Stateless relay that forwards a conversation, including image "
            "attachments, to a generative model and streams the reply back "
            "as Server-Sent Events."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = cors_origins()
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    application.add_exception_handler(RelayNotConfiguredError, relay_unavailable)

    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "streamchat-relay"}

    return application


app = create_app()
