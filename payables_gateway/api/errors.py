"""Translation of domain failures into HTTP responses with an operator notice"""

import logging
from fastapi import HTTPException

from payables_gateway.domain.exceptions import (
    DomainException,
    NotFoundError,
    ParseError,
    PersistenceError,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 422,
    ParseError: 400,
    NotFoundError: 404,
    PersistenceError: 503,
}


def notice(title: str, description: str, severity: str = "info") -> dict:
    return {"severity": severity, "title": title, "description": description}


def http_error(error: DomainException, request_id: str) -> HTTPException:
    """Log the failure and build the HTTPException carrying its notice"""
    status_code = STATUS_CODES.get(type(error), 500)
    if isinstance(error, PersistenceError):
        logging.error(f"Store error: {error}", extra={"request_id": request_id})
    else:
        logging.warning(f"{type(error).__name__}: {error}", extra={"request_id": request_id})
    return HTTPException(
        status_code=status_code,
        detail=notice(error.title, error.message, severity="error"),
    )
