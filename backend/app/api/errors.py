"""Translate domain errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from backend.app.services.errors import (
    DuplicatePeriodError,
    ExternalServiceError,
    InvalidTransitionError,
    InvoiceStateError,
    ValidationError,
    WorkforceError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: WorkforceError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Validation failed", "violations": exc.violations},
        )
    if isinstance(exc, DuplicatePeriodError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "existing_timesheet_id": exc.existing_id},
        )
    if isinstance(exc, (InvalidTransitionError, InvoiceStateError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ExternalServiceError):
        logger.error("External service failure: %s", exc)
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The request could not be completed. Please try again.",
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
