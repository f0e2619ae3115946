"""
Exception handlers rendering gateway failures as JSON error bodies.
"""
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exceptions import GatewayError, NetworkError

logger = logging.getLogger(__name__)


def error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(
        {
            "error": {
                "message": exc.message,
                "type": exc.error_type,
            }
        },
        status_code=exc.status_code,
    )


async def gateway_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map a GatewayError to its HTTP status"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return error_response(exc)


async def httpx_request_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Transport errors that escaped a provider are reported as network failures"""
    logger.error(f"HTTPX request error: {exc}", exc_info=True)
    return error_response(NetworkError(f"Failed to communicate with upstream: {exc}"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(httpx.RequestError, httpx_request_error_handler)
