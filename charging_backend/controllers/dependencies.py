"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from charging_backend.domain.errors import (
    CapacityExceededError,
    ChargingError,
    EntityNotFoundError,
    InvalidFieldError,
    StorageUnavailableError,
    StructuralRuleViolationError,
)
from charging_backend.services.mutation_service import ChargingMutationService


_STATUS_BY_ERROR: tuple[tuple[type[ChargingError], int], ...] = (
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidFieldError, status.HTTP_400_BAD_REQUEST),
    (CapacityExceededError, status.HTTP_409_CONFLICT),
    (StructuralRuleViolationError, status.HTTP_409_CONFLICT),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_mutation_service(request: Request) -> ChargingMutationService:
    service = getattr(request.app.state, "mutation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Mutation service is not initialized",
        )
    return service


def to_http_exception(exc: ChargingError) -> HTTPException:
    """Translate a rejected request into a structured HTTP error."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    return HTTPException(
        status_code=status_code,
        detail={"kind": exc.kind, "reason": exc.reason},
    )
