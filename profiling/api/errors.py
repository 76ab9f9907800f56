"""
Exception handlers

Translates domain errors from ``profiling.core.exceptions`` into JSON error
responses of the form ``{"error": <type>, "detail": <message>}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from profiling.core.exceptions import (
    ConcurrentModificationError,
    GenerationError,
    InvalidStateError,
    ProfilingError,
    SessionNotFoundError,
    SubmissionValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
STATUS_CODES: list[tuple[type[ProfilingError], int]] = [
    (SessionNotFoundError, 404),
    (InvalidStateError, 409),
    (ConcurrentModificationError, 409),
    (SubmissionValidationError, 422),
    (GenerationError, 503),
]


def status_code_for(exc: ProfilingError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def profiling_error_handler(request: Request, exc: ProfilingError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")

    headers = {"Retry-After": "5"} if isinstance(exc, GenerationError) else None
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProfilingError, profiling_error_handler)
