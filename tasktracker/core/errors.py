"""Domain error taxonomy and its translation to HTTP responses."""

import enum
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    """Stable error codes clients can branch on."""

    VALIDATION_ERROR = 'VALIDATION_ERROR'
    UNAUTHORIZED = 'UNAUTHORIZED'
    DUPLICATE_EMAIL = 'DUPLICATE_EMAIL'
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    NOT_FOUND_OR_FORBIDDEN = 'NOT_FOUND_OR_FORBIDDEN'
    NOT_FOUND = 'NOT_FOUND'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or unsafe."""


class TaskTrackerError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Internal error.'

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(TaskTrackerError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Authentication required.'


class DuplicateEmailError(TaskTrackerError):
    kind = ErrorKind.DUPLICATE_EMAIL
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Email already registered.'


class InvalidCredentialsError(TaskTrackerError):
    kind = ErrorKind.INVALID_CREDENTIALS
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Invalid email or password.'


class TaskNotFoundError(TaskTrackerError):
    """Covers both a missing task and a task owned by someone else."""

    kind = ErrorKind.NOT_FOUND_OR_FORBIDDEN
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Task not found or access denied.'


class UserNotFoundError(TaskTrackerError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'User not found.'


def error_response(kind: ErrorKind, status_code: int, detail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'error': kind.value, 'detail': jsonable_encoder(detail)},
        headers=headers,
    )


async def handle_task_tracker_error(request: Request, exc: TaskTrackerError) -> JSONResponse:
    headers = {'WWW-Authenticate': 'Bearer'} if isinstance(exc, UnauthorizedError) else None
    return error_response(exc.kind, exc.status_code, exc.message, headers=headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg', ''), 'type': error.get('type', '')}
        for error in exc.errors()
    ]
    return error_response(ErrorKind.VALIDATION_ERROR, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception('Database failure while handling %s %s', request.method, request.url.path)
    return error_response(
        ErrorKind.INTERNAL_ERROR,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        'Database unavailable.',
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskTrackerError, handle_task_tracker_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
