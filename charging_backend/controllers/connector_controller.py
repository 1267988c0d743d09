"""HTTP controller layer for connectors."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from charging_backend.controllers.dependencies import get_mutation_service, to_http_exception
from charging_backend.controllers.schemas import ConnectorRequest, ConnectorResponse
from charging_backend.domain.errors import ChargingError
from charging_backend.services.mutation_service import ChargingMutationService
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/connectors", tags=["connectors"])


@router.get("", response_model=list[ConnectorResponse])
async def list_connectors(
    service: ChargingMutationService = Depends(get_mutation_service),
) -> list[ConnectorResponse]:
    try:
        return [ConnectorResponse.from_domain(item) for item in service.list_connectors()]
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=ConnectorResponse, status_code=status.HTTP_201_CREATED)
async def create_connector(
    payload: ConnectorRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ConnectorResponse:
    """Add a connector; rejected when the owning group would be over capacity."""
    try:
        connector = service.create_connector(
            charge_station_id=payload.charge_station_id,
            identifier=payload.identifier,
            max_current_in_amps=payload.max_current_in_amps,
        )
        return ConnectorResponse.from_domain(connector)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure creating connector")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create connector",
        ) from exc


@router.get("/{connector_id}", response_model=ConnectorResponse)
async def get_connector(
    connector_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ConnectorResponse:
    try:
        return ConnectorResponse.from_domain(service.get_connector(connector_id))
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{connector_id}", response_model=ConnectorResponse)
async def update_connector(
    connector_id: int,
    payload: ConnectorRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ConnectorResponse:
    try:
        connector = service.update_connector(
            connector_id=connector_id,
            charge_station_id=payload.charge_station_id,
            identifier=payload.identifier,
            max_current_in_amps=payload.max_current_in_amps,
        )
        return ConnectorResponse.from_domain(connector)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure updating connector %s", connector_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update connector",
        ) from exc


@router.delete("/{connector_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connector(
    connector_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> Response:
    try:
        service.delete_connector(connector_id)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
