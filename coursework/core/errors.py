import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class CourseworkError(Exception):
    """Base class for failures reported to the caller with an explicit reason."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.message, "error": self.code}
        if self.field is not None:
            body["field"] = self.field
        return body


class AuthorizationDenied(CourseworkError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "authorization_denied"

    def __init__(self, action: str):
        super().__init__(f"Not allowed to {action}")
        self.action = action


class ValidationFailed(CourseworkError):
    status_code = 422
    code = "validation_failed"

    def __init__(self, field: str, message: str):
        super().__init__(message, field=field)


class UniqueViolation(ValidationFailed):
    status_code = status.HTTP_409_CONFLICT
    code = "unique_violation"


class NotFound(CourseworkError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, entity: str, ident=None):
        message = f"{entity} not found" if ident is None else f"{entity} {ident} not found"
        super().__init__(message)
        self.entity = entity


class TransientIOFailure(CourseworkError):
    """The data store could not be reached; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "transient_io_failure"

    def __init__(self, message: str = "Data store unavailable"):
        super().__init__(message)


async def coursework_error_handler(request: Request, exc: CourseworkError) -> JSONResponse:
    if isinstance(exc, TransientIOFailure):
        logger.warning("%s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    # reads outside commit_or_raise land here
    return await coursework_error_handler(request, TransientIOFailure())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CourseworkError, coursework_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
