"""Render storefront failures as JSON with their own status codes."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.errors import StorefrontError

logger = structlog.get_logger(__name__)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    logger.info(
        "request_failed",
        path=request.url.path,
        error=exc.code,
        status_code=exc.status_code,
        retryable=exc.retryable,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_storefront_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
