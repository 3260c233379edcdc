"""Exception handlers mapping domain errors to the error envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dealflow.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    CRMException,
    NotFoundError,
    ValidationError,
)
from dealflow.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)

_STATUS_BY_EXCEPTION: list[tuple[type[CRMException], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def status_for(exc: CRMException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _envelope(status_code: int, error_code: str, detail: str) -> JSONResponse:
    body = ErrorEnvelope(error_code=error_code, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _handle_crm_exception(request: Request, exc: CRMException) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "http.domain_error",
        extra={
            "event": "http.domain_error",
            "path": request.url.path,
            "error_code": exc.error_code,
            "status_code": status_code,
        },
    )
    return _envelope(status_code, exc.error_code, str(exc))


async def _handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "http.integrity_error",
        extra={"event": "http.integrity_error", "path": request.url.path, "error": str(exc.orig)},
    )
    return _envelope(status.HTTP_409_CONFLICT, ConflictError.error_code, "Write conflicts with existing data.")


async def _handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "http.database_error",
        extra={"event": "http.database_error", "path": request.url.path},
        exc_info=exc,
    )
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error", "Database operation failed.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMException, _handle_crm_exception)
    app.add_exception_handler(IntegrityError, _handle_integrity_error)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
