"""Custom exception classes for the Newsdesk API."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.database import StorageError

logger = logging.getLogger(__name__)


class NewsdeskException(Exception):
    status_code = 500

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class BadRequestError(NewsdeskException):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, "BAD_REQUEST")


class NotFoundError(NewsdeskException):
    status_code = 404

    def __init__(self, message: str):
        super().__init__(message, "NOT_FOUND")


class ConflictError(NewsdeskException):
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, "CONFLICT")


class DatabaseError(NewsdeskException):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, "DATABASE_ERROR")


@contextmanager
def storage_errors(message: str) -> Iterator[None]:
    """Turn a StorageError into a DatabaseError carrying a generic message.

    The driver text is logged, never sent to the client.
    """
    try:
        yield
    except StorageError as e:
        logger.error("%s: %s", message, e)
        raise DatabaseError(message) from e


def _message(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _handle_newsdesk_exception(_: Request, exc: NewsdeskException) -> JSONResponse:
    return _message(exc.message, exc.status_code)


async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request payload: %s", exc.errors())
    return _message("Invalid request payload", 400)


async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NewsdeskException, _handle_newsdesk_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
