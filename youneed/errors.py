# youneed/errors.py

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class ConflictError(BookingError):
    """Scheduling clash or booking outside opening hours."""

    status_code = 400


class AuthorizationError(BookingError):
    status_code = 403


class NotFoundError(BookingError):
    status_code = 404


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
        )
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Validation failed for {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={
                "message": "Nieprawidłowe dane wejściowe",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": "Błąd serwera"})
