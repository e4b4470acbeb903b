from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse

from core.logger import app_logger
from model.dto.base import BaseResponseDTO


class TabularyServiceException(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TabularyServiceException):
    """Invalid builder config, column definition or request arguments."""

    status_code = status.HTTP_400_BAD_REQUEST


class ParseError(TabularyServiceException):
    """Malformed JSON handed to an import path."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(TabularyServiceException):
    status_code = status.HTTP_404_NOT_FOUND


class BackendError(TabularyServiceException):
    """Wraps a failure of the backing store, keeping its message verbatim."""

    status_code = status.HTTP_502_BAD_GATEWAY


class DAOException(BackendError): ...


# Exception Handlers
async def service_exception_handler(
    request: Request, exc: TabularyServiceException
) -> JSONResponse:
    app_logger.error(f"{exc.__class__.__name__}: {exc.message}")

    response_dto = BaseResponseDTO(message=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=response_dto.model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    app_logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")

    response_dto = BaseResponseDTO(message="An error occurred")

    if isinstance(exc.detail, str):
        response_dto.message = exc.detail
    elif isinstance(exc.detail, list):
        response_dto.errors = exc.detail
    else:
        response_dto.errors = [exc.detail]

    return JSONResponse(
        status_code=exc.status_code,
        content=response_dto.model_dump(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []

    for error in exc.errors():
        location = ".".join([str(loc) for loc in error.get("loc", [])])
        message = error.get("msg", "")

        errors.append({"location": location, "error": message})

    response_dto = BaseResponseDTO(message="Validation Error")

    if errors:
        response_dto.errors = errors

    app_logger.error(f"Validation Error: {errors}")

    return JSONResponse(
        status_code=400,
        content=response_dto.model_dump(),
    )
