"""Error types and FastAPI error handlers for the pipelines API."""

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from cicd_api.monitoring.logger import log_response_info

__all__ = [
    "ApiError",
    "ForbiddenError",
    "NotFoundError",
    "ScmError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "handle_api_errors",
    "handle_broad_exceptions",
    "handle_pydantic_validation_errors",
    "handle_request_validation_errors",
    "handle_scm_errors",
]


class ApiError(Exception):
    """An error with a known HTTP classification and a caller-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ServiceUnavailableError(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ScmError(Exception):
    """The source control service failed or answered with something unusable."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"detail": "Internal server error", "error_type": type(err).__name__}

        logger.opt(exception=err).error(
            f"Unhandled exception: {type(err).__name__}",
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            error_message=str(err),
            response_body=error_response,
        )

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_api_errors(request: Request, exc: ApiError) -> JSONResponse:
    """Convert a classified ApiError into its HTTP response."""
    error_type = type(exc).__name__
    error_response = {"detail": exc.message, "error_type": error_type}

    logger.warning(
        f"Request rejected: {error_type}",
        error_message=exc.message,
        http_status=exc.status_code,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
        response_body=error_response,
    )

    response = JSONResponse(status_code=exc.status_code, content=error_response)
    log_response_info(response)
    return response


async def handle_scm_errors(request: Request, exc: ScmError) -> JSONResponse:
    """
    Handle source control failures raised while resolving permissions (502 Bad Gateway).
    """
    error_response = {
        "detail": f"Source control service error: {exc.message}",
        "error_type": type(exc).__name__,
    }

    logger.error(
        "SCM error",
        error_message=exc.message,
        http_status=502,
        http_method=request.method,
        url_path=str(request.url.path),
        scm_status_code=exc.status_code,
        response_body=error_response,
    )

    response = JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=error_response)
    log_response_info(response)
    return response


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors (path, query, header and body parameters).

    These are rejected with 400 before any handler logic or store access runs.
    """
    errors = exc.errors()
    error_response = {
        "detail": [
            {
                "loc": list(error["loc"]),
                "msg": error["msg"],
                "input": error.get("input"),
            }
            for error in errors
        ],
        "error_type": "RequestValidationError",
    }

    logger.warning(
        f"Validation error: {len(errors)} validation errors",
        http_status=400,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="RequestValidationError",
        validation_errors=errors,
        response_body=error_response,
    )

    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response,
    )
    log_response_info(response)
    return response


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised while building models from stored or upstream data."""
    errors = exc.errors()
    error_response = {
        "detail": [
            {
                "msg": error["msg"],
                "input": error["input"],
            }
            for error in errors
        ]
    }

    logger.warning(
        f"Validation error: {len(errors)} validation errors",
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=errors,
        response_body=error_response,
    )

    response = JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=error_response,
    )
    log_response_info(response)

    return response
