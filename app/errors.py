from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from app import settings


class CapacityExceeded(Exception):
    """Not enough free spots on an experience date for the requested attendees."""

    def __init__(
        self,
        available_spots: int,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        detail: str = "Not enough spots available",
        confirmed_attendees: int | None = None,
    ):
        super().__init__(detail)
        self.available_spots = available_spots
        self.status_code = status_code
        self.detail = detail
        self.confirmed_attendees = confirmed_attendees


async def capacity_exceeded_handler(_: Request, exc: CapacityExceeded) -> JSONResponse:
    content = {"detail": exc.detail, "available_spots": exc.available_spots}
    if exc.confirmed_attendees is not None:
        content["confirmed_attendees"] = exc.confirmed_attendees
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        "Unhandled error on {} {}", request.method, request.url.path
    )
    content = {"detail": "Internal Server Error"}
    if settings.environment == "development":
        content["message"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CapacityExceeded, capacity_exceeded_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
