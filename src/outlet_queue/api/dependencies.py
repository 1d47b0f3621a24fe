"""Shared route dependencies and error translation."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from ..errors import (
    CapacityExceeded,
    DuplicateRegistration,
    InvalidTransition,
    NotFound,
    QueueError,
    RepositoryError,
    ValidationError,
)
from ..services.queue.service import QueueService

logger = logging.getLogger(__name__)

_STATUS_CODES: tuple[tuple[type[QueueError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateRegistration, status.HTTP_409_CONFLICT),
    (CapacityExceeded, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (RepositoryError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_queue_service(request: Request) -> QueueService:
    return request.app.state.queue_service


def to_http_exception(exc: QueueError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    if isinstance(exc, RepositoryError):
        logger.error(f"Repository unavailable: {exc.message}")
    return HTTPException(
        status_code=status_code,
        detail={"success": False, "error": type(exc).__name__, "message": exc.message, "data": exc.data},
    )
