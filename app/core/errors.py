"""
Opaque error codes.

Authentication failures and upstream errors are reported as a bare code in a
``text/plain`` body (``NOT_TOKEN``, ``NOT_SESSION``, ...). Everything else
goes through FastAPI's ``HTTPException`` and its JSON ``detail``.
"""
import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)


class HttpError(Exception):
    def __init__(self, code: str, status_code: int = 500):
        super().__init__(code)
        self.code = code
        self.status_code = status_code


async def http_error_handler(request: Request, exc: HttpError) -> PlainTextResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed with %s", request.method, request.url.path, exc.code)
    return PlainTextResponse(exc.code, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return PlainTextResponse("INTERNAL_SERVER_ERROR", status_code=500)
