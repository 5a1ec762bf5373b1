"""Domain errors and the FastAPI handlers that render them.

Every error carries a machine-stable ``code`` and an HTTP status. Handlers
turn them into ``{"status", "error", "message", "timestamp"}`` bodies; the
frontend shows ``message`` as-is.
"""

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ProjectHubError(Exception):
    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ProjectHubError):
    code = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ProjectHubError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ProjectHubError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidState(ProjectHubError):
    code = "INVALID_STATE"
    status_code = status.HTTP_409_CONFLICT


class DuplicateInvitation(ProjectHubError):
    code = "DUPLICATE_INVITATION"
    status_code = status.HTTP_409_CONFLICT


class AlreadyMember(ProjectHubError):
    code = "ALREADY_MEMBER"
    status_code = status.HTTP_409_CONFLICT


class InvalidCode(ProjectHubError):
    code = "INVALID_CODE"
    status_code = status.HTTP_400_BAD_REQUEST


class CyclicDependency(ProjectHubError):
    code = "CYCLIC_DEPENDENCY"
    status_code = status.HTTP_409_CONFLICT


class DependencyUnmet(ProjectHubError):
    code = "DEPENDENCY_UNMET"
    status_code = status.HTTP_409_CONFLICT


class ValidationFailed(ProjectHubError):
    code = "VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


def error_body(status_code: int, code: str, message: str) -> dict:
    return {
        "status": status_code,
        "error": code,
        "message": message,
        "timestamp": int(time.time() * 1000),
    }


async def handle_projecthub_error(request: Request, exc: ProjectHubError) -> JSONResponse:
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.code, exc.message))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = {}
    for err in exc.errors():
        # drop the "body"/"query" prefix so the keys match the payload fields
        field = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        field_errors[field] = err["msg"]
    logger.warning("%s %s -> VALIDATION: %s", request.method, request.url.path, field_errors)

    body = error_body(status.HTTP_400_BAD_REQUEST, ValidationFailed.code, "Input validation failed")
    body["fieldErrors"] = field_errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=error_body(code, "INTERNAL", "An unexpected error occurred"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProjectHubError, handle_projecthub_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
