"""Main entry point for the Relay Chat application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relay_chat.api.v1 import (
    auth_router,
    community_router,
    contacts_router,
    messages_router,
    stories_router,
    system_router,
    users_router,
)
from relay_chat.client import ChatClient
from relay_chat.core.errors import ChatError, RateLimited
from relay_chat.core.settings import Settings, settings
from relay_chat.schemas.common import ErrorResponse
from relay_chat.services.retention import RetentionWorker

logger = logging.getLogger(__name__)


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Map every ``ChatError`` to its status code and error body."""
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    body = ErrorResponse(detail=exc.detail, code=exc.code, retryable=exc.retryable)
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(max(1, round(exc.retry_after)))}
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=headers)


def create_app(client: ChatClient | None = None, config: Settings | None = None) -> FastAPI:
    """Build the API around ``client`` (a new one from settings by default)."""
    config = config or (client.config if client is not None else settings)
    chat_client = client or ChatClient(config)

    app = FastAPI(
        title=config.app_name,
        description="Ephemeral realtime chat API",
        version=config.app_version,
    )
    app.state.chat_client = chat_client
    app.state.retention_worker = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )
    app.add_exception_handler(ChatError, chat_error_handler)

    for router in (
        auth_router,
        users_router,
        contacts_router,
        messages_router,
        community_router,
        stories_router,
        system_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.on_event("startup")
    async def on_startup() -> None:
        await chat_client.connect()
        await chat_client.addressing.community_key()
        if config.sweeper_enabled:
            worker = RetentionWorker(chat_client.sweeper, config=config)
            await worker.start()
            app.state.retention_worker = worker

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        worker: RetentionWorker | None = app.state.retention_worker
        if worker:
            await worker.stop()
            app.state.retention_worker = None
        await chat_client.close()

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "name": config.app_name,
            "version": config.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("relay_chat.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
