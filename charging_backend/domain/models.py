"""Domain models for the group / charge station / connector hierarchy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


@dataclass(frozen=True)
class Connector:
    connector_id: int
    charge_station_id: int
    identifier: int
    max_current_in_amps: int


@dataclass(frozen=True)
class ChargeStation:
    """Station row plus the connectors the repository loaded for it."""

    station_id: int
    name: str
    group_id: int
    connectors: tuple[Connector, ...] = ()


def total_max_current(charge_stations: Iterable[ChargeStation]) -> int:
    return sum(
        connector.max_current_in_amps
        for station in charge_stations
        for connector in station.connectors
    )


@dataclass(frozen=True)
class Group:
    """Capacity allocation unit owning zero or more charge stations."""

    group_id: int
    name: str
    capacity_in_amps: int
    charge_stations: tuple[ChargeStation, ...] = ()

    @property
    def total_max_current_in_amps(self) -> int:
        return total_max_current(self.charge_stations)


@dataclass(frozen=True)
class CapacityCheck:
    group_id: int
    capacity_in_amps: int
    total_max_current_in_amps: int

    @property
    def is_valid(self) -> bool:
        return self.capacity_in_amps >= self.total_max_current_in_amps

    @property
    def headroom_in_amps(self) -> int:
        return self.capacity_in_amps - self.total_max_current_in_amps


class StructuralReason(str, Enum):
    GROUP_ALREADY_HAS_STATION = "GroupAlreadyHasStation"
    STATION_HAS_CONNECTORS = "StationHasConnectors"


@dataclass(frozen=True)
class RuleDecision:
    """Outcome of a structural attach/detach rule."""

    allowed: bool
    reason: Optional[StructuralReason] = None

    def __post_init__(self) -> None:
        if not self.allowed and self.reason is None:
            raise ValueError("a denied RuleDecision needs a reason")


@dataclass(frozen=True)
class GroupStructure:
    """Read model behind the group detail view."""

    group: Group
    capacity: CapacityCheck
    can_add_charge_station: bool
    can_remove_charge_station: bool
