"""
Exception handlers for errors raised while the career form is being parsed.

Only the two upload problems are mapped here; anything else keeps going to
FastAPI's default handling.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.career_service import (
    FILE_TOO_LARGE_MESSAGE,
    FileTooLargeError,
    UnsupportedFileTypeError,
)
from app.utils.logging import logger


async def file_too_large_handler(request: Request, exc: FileTooLargeError) -> JSONResponse:
    logger.warning(f"Rejected CV upload on {request.url.path}: over size limit")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": FILE_TOO_LARGE_MESSAGE},
    )


async def unsupported_file_type_handler(request: Request, exc: UnsupportedFileTypeError) -> JSONResponse:
    logger.warning(f"Rejected CV upload on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FileTooLargeError, file_too_large_handler)
    app.add_exception_handler(UnsupportedFileTypeError, unsupported_file_type_handler)
