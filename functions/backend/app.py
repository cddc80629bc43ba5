"""
FastAPI application entry point for the Wally backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.routes import router
from shared.errors import WallyError

logger = logging.getLogger(__name__)


async def handle_wally_error(request: Request, exc: WallyError) -> JSONResponse:
    logger.info("%s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status, content={"error": exc.to_dict()})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Wally Backend (FastAPI)", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    app.add_exception_handler(WallyError, handle_wally_error)
    return app


app = create_app()
