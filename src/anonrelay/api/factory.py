"""FastAPI application factory."""

import os

from fastapi import FastAPI, Request, Response

from anonrelay.infra.settings import DEFAULT_WEBHOOK_PATH
from anonrelay.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .routers import public
from .routes import webhooks_telegram


def create_app(webhook_path: str | None = None) -> FastAPI:
    """Create FastAPI app with the health and webhook routes.

    Args:
        webhook_path: Explicit webhook path override. If None, reads
              WEBHOOK_PATH from the environment (default "/endpoint").

    Returns:
        Configured FastAPI application.
    """
    if webhook_path is None:
        webhook_path = os.environ.get("WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH)
    if not webhook_path.startswith("/"):
        webhook_path = "/" + webhook_path

    app = FastAPI(
        title="anonrelay",
        docs_url=None,
        redoc_url=None,
    )

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(webhooks_telegram.build_router(webhook_path))

    return app
