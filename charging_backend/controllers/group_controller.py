"""HTTP controller layer for groups and their structural membership."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from charging_backend.controllers.dependencies import get_mutation_service, to_http_exception
from charging_backend.controllers.schemas import (
    AttachChargeStationRequest,
    CapacityCheckResponse,
    ChargeStationResponse,
    GroupDetailResponse,
    GroupRequest,
    GroupResponse,
)
from charging_backend.domain.errors import ChargingError
from charging_backend.services.mutation_service import ChargingMutationService
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=list[GroupResponse])
async def list_groups(
    service: ChargingMutationService = Depends(get_mutation_service),
) -> list[GroupResponse]:
    try:
        return [GroupResponse.from_domain(group) for group in service.list_groups()]
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> GroupResponse:
    try:
        group = service.create_group(
            name=payload.name,
            capacity_in_amps=payload.capacity_in_amps,
        )
        return GroupResponse.from_domain(group)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure creating group")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create group",
        ) from exc


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> GroupDetailResponse:
    """Group details plus whether a station can currently be added or removed."""
    try:
        return GroupDetailResponse.from_domain(service.get_group_structure(group_id))
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: int,
    payload: GroupRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> GroupResponse:
    try:
        group = service.update_group(
            group_id=group_id,
            name=payload.name,
            capacity_in_amps=payload.capacity_in_amps,
        )
        return GroupResponse.from_domain(group)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected failure updating group %s", group_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update group",
        ) from exc


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> Response:
    try:
        service.delete_group(group_id)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/capacity", response_model=CapacityCheckResponse)
async def check_group_capacity(
    group_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> CapacityCheckResponse:
    try:
        return CapacityCheckResponse.from_domain(service.check_group_capacity(group_id))
    except ChargingError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/{group_id}/charge_stations",
    response_model=ChargeStationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def attach_charge_station(
    group_id: int,
    payload: AttachChargeStationRequest,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> ChargeStationResponse:
    try:
        station = service.attach_charge_station(group_id=group_id, name=payload.name)
        return ChargeStationResponse.from_domain(station)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected failure attaching charge station to group %s", group_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to attach charge station",
        ) from exc


@router.delete(
    "/{group_id}/charge_stations/{station_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def detach_charge_station(
    group_id: int,
    station_id: int,
    service: ChargingMutationService = Depends(get_mutation_service),
) -> Response:
    try:
        service.detach_charge_station(group_id=group_id, station_id=station_id)
    except ChargingError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:
        logger.exception(
            "Unexpected failure detaching charge station %s from group %s", station_id, group_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to detach charge station",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
