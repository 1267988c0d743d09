"""Capacity invariant: a group's rating must cover every connector under it.

All functions here are pure. Callers pass the *prospective* membership of a
group (what it would own after the mutation) and the total is recomputed from
that snapshot on every call.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from charging_backend.domain.errors import CapacityExceededError
from charging_backend.domain.models import (
    CapacityCheck,
    ChargeStation,
    Connector,
    Group,
    total_max_current,
)


def validate_group_capacity(
    group: Group,
    charge_stations: Sequence[ChargeStation],
) -> CapacityCheck:
    """Compare the group's capacity with the summed draw of ``charge_stations``."""
    return CapacityCheck(
        group_id=group.group_id,
        capacity_in_amps=group.capacity_in_amps,
        total_max_current_in_amps=total_max_current(charge_stations),
    )


def ensure_group_capacity(
    group: Group,
    charge_stations: Sequence[ChargeStation],
) -> CapacityCheck:
    check = validate_group_capacity(group, charge_stations)
    if not check.is_valid:
        raise CapacityExceededError(
            total_in_amps=check.total_max_current_in_amps,
            capacity_in_amps=check.capacity_in_amps,
            group_id=group.group_id,
        )
    return check


def with_station(
    charge_stations: Sequence[ChargeStation],
    station: ChargeStation,
) -> tuple[ChargeStation, ...]:
    """Return membership with ``station`` added, replacing any row with its id."""
    kept = tuple(item for item in charge_stations if item.station_id != station.station_id)
    return kept + (station,)


def without_connector(
    charge_stations: Sequence[ChargeStation],
    connector_id: int,
) -> tuple[ChargeStation, ...]:
    return tuple(
        replace(
            station,
            connectors=tuple(
                item for item in station.connectors if item.connector_id != connector_id
            ),
        )
        for station in charge_stations
    )


def with_connector(
    charge_stations: Sequence[ChargeStation],
    connector: Connector,
) -> tuple[ChargeStation, ...]:
    """Return membership with ``connector`` placed on its owning station.

    An existing connector with the same id is removed first, so this models
    both additions and edits (including moves between stations).
    """
    stations = without_connector(charge_stations, connector.connector_id)
    return tuple(
        replace(station, connectors=station.connectors + (connector,))
        if station.station_id == connector.charge_station_id
        else station
        for station in stations
    )
