"""Error types and the exception handlers that turn them into `{"error": ...}` responses."""

import logging
from typing import Union

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

NO_FILE_PROVIDED = "No file provided"
NO_FILE_SPECIFIED = "No file specified"
FAILED_TO_LIST = "Failed to list files"
FAILED_TO_UPLOAD = "Failed to upload file"
FAILED_TO_DELETE = "Failed to delete file"


class FileManagerApiError(Exception):
    """An error whose message is safe to show to API callers."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class MissingInputError(FileManagerApiError):
    """A required form field or query parameter was not supplied."""

    def __init__(self, message: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, message)


class StorageError(FileManagerApiError):
    """The object store rejected or failed a call; detail stays in the server logs."""

    def __init__(self, message: str):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


async def handle_file_manager_api_errors(request: Request, exc: FileManagerApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )


async def handle_validation_errors(
    request: Request,
    exc: Union[RequestValidationError, pydantic.ValidationError],
) -> JSONResponse:
    """Render request and model validation failures with the same `{"error": ...}` body as every other error."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Invalid request",
            "detail": [
                {
                    "loc": [str(part) for part in error.get("loc", ())],
                    "msg": error["msg"],
                }
                for error in exc.errors()
            ],
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception:  # pylint: disable=broad-except
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
