"""HTTP controller layer for charge stations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from charging_backend.controllers.dependencies import get_mutation_service, to_http_exception
from charging_backend.controllers.schemas import ChargeStationRequest, ChargeStationResponse
from charging_backend.domain.errors import ChargingError
from charging_backend.services.mutation_service import ChargingMutationService
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/charge_stations", tags=["charge_stations"])


@router.get("", response_model=list[ChargeStationResponse])
async def list_charge_stations(
    service: ChargingMutationService = Depends(get_mutation_service),
) -> list[ChargeStationResponse]:
    try:
        return [
            ChargeStationResponse.from_domain(station)
            for station in service.list_charge_stations()
        ]
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=ChargeStationResponse, status_code=status.HTTP_201_CREATED)
async def create_charge_station(
    payload: ChargeStationRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ChargeStationResponse:
    try:
        station = service.create_charge_station(group_id=payload.group_id, name=payload.name)
        return ChargeStationResponse.from_domain(station)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure creating charge station")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create charge station",
        ) from exc


@router.get("/{station_id}", response_model=ChargeStationResponse)
async def get_charge_station(
    station_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ChargeStationResponse:
    try:
        return ChargeStationResponse.from_domain(service.get_charge_station(station_id))
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{station_id}", response_model=ChargeStationResponse)
async def update_charge_station(
    station_id: int,
    payload: ChargeStationRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ChargeStationResponse:
    """Rename a station or reassign it to another group."""
    try:
        station = service.update_charge_station(
            station_id=station_id,
            group_id=payload.group_id,
            name=payload.name,
        )
        return ChargeStationResponse.from_domain(station)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure updating charge station %s", station_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update charge station",
        ) from exc


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_charge_station(
    station_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> Response:
    try:
        service.delete_charge_station(station_id)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
