"""Request and response DTOs shared by the HTTP controllers."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from charging_backend.domain.constraints import (
    AMPS_MAX,
    CONNECTOR_IDENTIFIER_MAX,
    CONNECTOR_IDENTIFIER_MIN,
)
from charging_backend.domain.models import (
    CapacityCheck,
    ChargeStation,
    Connector,
    Group,
    GroupStructure,
)


class _NamedRequest(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must be a non-empty string")
        return value


class GroupRequest(_NamedRequest):
    capacity_in_amps: int = Field(gt=0, le=AMPS_MAX)


class ChargeStationRequest(_NamedRequest):
    group_id: int = Field(gt=0)


class AttachChargeStationRequest(_NamedRequest):
    pass


class ConnectorRequest(BaseModel):
    charge_station_id: int = Field(gt=0)
    identifier: int = Field(ge=CONNECTOR_IDENTIFIER_MIN, le=CONNECTOR_IDENTIFIER_MAX)
    max_current_in_amps: int = Field(gt=0, le=AMPS_MAX)


class ConnectorResponse(BaseModel):
    id: int
    charge_station_id: int
    identifier: int
    max_current_in_amps: int

    @classmethod
    def from_domain(cls, connector: Connector) -> "ConnectorResponse":
        return cls(
            id=connector.connector_id,
            charge_station_id=connector.charge_station_id,
            identifier=connector.identifier,
            max_current_in_amps=connector.max_current_in_amps,
        )


class ChargeStationResponse(BaseModel):
    id: int
    name: str
    group_id: int
    connectors: list[ConnectorResponse]

    @classmethod
    def from_domain(cls, station: ChargeStation) -> "ChargeStationResponse":
        return cls(
            id=station.station_id,
            name=station.name,
            group_id=station.group_id,
            connectors=[ConnectorResponse.from_domain(item) for item in station.connectors],
        )


class GroupResponse(BaseModel):
    id: int
    name: str
    capacity_in_amps: int
    total_max_current_in_amps: int = Field(ge=0)
    charge_stations: list[ChargeStationResponse]

    @classmethod
    def from_domain(cls, group: Group) -> "GroupResponse":
        return cls(
            id=group.group_id,
            name=group.name,
            capacity_in_amps=group.capacity_in_amps,
            total_max_current_in_amps=group.total_max_current_in_amps,
            charge_stations=[
                ChargeStationResponse.from_domain(item) for item in group.charge_stations
            ],
        )


class CapacityCheckResponse(BaseModel):
    group_id: int
    capacity_in_amps: int
    total_max_current_in_amps: int = Field(ge=0)
    headroom_in_amps: int
    is_valid: bool

    @classmethod
    def from_domain(cls, check: CapacityCheck) -> "CapacityCheckResponse":
        return cls(
            group_id=check.group_id,
            capacity_in_amps=check.capacity_in_amps,
            total_max_current_in_amps=check.total_max_current_in_amps,
            headroom_in_amps=check.headroom_in_amps,
            is_valid=check.is_valid,
        )


class GroupDetailResponse(BaseModel):
    group: GroupResponse
    capacity: CapacityCheckResponse
    can_add_charge_station: bool
    can_remove_charge_station: bool

    @classmethod
    def from_domain(cls, structure: GroupStructure) -> "GroupDetailResponse":
        return cls(
            group=GroupResponse.from_domain(structure.group),
            capacity=CapacityCheckResponse.from_domain(structure.capacity),
            can_add_charge_station=structure.can_add_charge_station,
            can_remove_charge_station=structure.can_remove_charge_station,
        )
