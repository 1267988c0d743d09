"""Coordinates hierarchy mutations against the capacity and structural rules."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Optional

from charging_backend.domain.capacity import (
    ensure_group_capacity,
    validate_group_capacity,
    with_connector,
    with_station,
)
from charging_backend.domain.constraints import (
    is_storable_id,
    validate_charge_station_fields,
    validate_connector_fields,
    validate_group_fields,
)
from charging_backend.domain.errors import ChargingError, EntityNotFoundError
from charging_backend.domain.models import (
    CapacityCheck,
    ChargeStation,
    Connector,
    Group,
    GroupStructure,
)
from charging_backend.domain.rules import (
    can_attach_station_to_group,
    can_detach_station_from_group,
    ensure_allowed,
)
from charging_backend.repository.charging_repository import ChargingRepository, ChargingStore
from charging_backend.utils.config import Settings, get_settings
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)


class ChargingMutationService:
    """Applies create/update/delete requests or rejects them untouched.

    Every request runs in a single repository transaction: current state is
    read, validated and written under the same write lock, and any
    ``ChargingError`` rolls the whole request back.
    """

    def __init__(
        self,
        repository: Optional[ChargingRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or ChargingRepository(self._settings)

    @contextmanager
    def _unit_of_work(self, operation: str, readonly: bool = False) -> Iterator[ChargingStore]:
        try:
            with self._repository.transaction(readonly=readonly) as store:
                yield store
        except ChargingError as exc:
            logger.warning("%s rejected [%s]: %s", operation, exc.kind, exc.reason)
            raise

    # --- lookups shared by every operation ---

    @staticmethod
    def _require_group(store: ChargingStore, group_id: int) -> Group:
        group = store.load_group_hierarchy(group_id) if is_storable_id(group_id) else None
        if group is None:
            raise EntityNotFoundError("Group", group_id)
        return group

    @staticmethod
    def _require_charge_station(store: ChargingStore, station_id: int) -> ChargeStation:
        station = store.get_charge_station(station_id) if is_storable_id(station_id) else None
        if station is None:
            raise EntityNotFoundError("ChargeStation", station_id)
        return station

    @staticmethod
    def _require_connector(store: ChargingStore, connector_id: int) -> Connector:
        connector = (
            store.get_connector(connector_id) if is_storable_id(connector_id) else None
        )
        if connector is None:
            raise EntityNotFoundError("Connector", connector_id)
        return connector

    @staticmethod
    def _warn_on_duplicate_identifier(station: ChargeStation, connector: Connector) -> None:
        for existing in station.connectors:
            if (
                existing.connector_id != connector.connector_id
                and existing.identifier == connector.identifier
            ):
                logger.warning(
                    "Charge station %s has more than one connector with identifier %s",
                    station.station_id,
                    connector.identifier,
                )
                return

    # --- groups ---

    def list_groups(self) -> List[Group]:
        with self._unit_of_work("list_groups", readonly=True) as store:
            return [
                self._require_group(store, group.group_id) for group in store.list_groups()
            ]

    def get_group(self, group_id: int) -> Group:
        with self._unit_of_work("get_group", readonly=True) as store:
            return self._require_group(store, group_id)

    def get_group_structure(self, group_id: int) -> GroupStructure:
        """Return the group with its capacity check and structural flags."""
        with self._unit_of_work("get_group_structure", readonly=True) as store:
            group = self._require_group(store, group_id)
        return GroupStructure(
            group=group,
            capacity=validate_group_capacity(group, group.charge_stations),
            can_add_charge_station=can_attach_station_to_group(group.charge_stations).allowed,
            can_remove_charge_station=any(
                can_detach_station_from_group(station.connectors).allowed
                for station in group.charge_stations
            ),
        )

    def check_group_capacity(self, group_id: int) -> CapacityCheck:
        with self._unit_of_work("check_group_capacity", readonly=True) as store:
            group = self._require_group(store, group_id)
        return validate_group_capacity(group, group.charge_stations)

    def create_group(self, name: str, capacity_in_amps: int) -> Group:
        with self._unit_of_work("create_group") as store:
            validate_group_fields(name, capacity_in_amps)
            # An unsaved group has no members yet.
            ensure_group_capacity(
                Group(group_id=0, name=name, capacity_in_amps=capacity_in_amps),
                (),
            )
            group = store.insert_group(name, capacity_in_amps)
        logger.info("Group %s created with capacity %s A", group.group_id, capacity_in_amps)
        return group

    def update_group(self, group_id: int, name: str, capacity_in_amps: int) -> Group:
        with self._unit_of_work("update_group") as store:
            validate_group_fields(name, capacity_in_amps)
            current = self._require_group(store, group_id)
            updated = replace(current, name=name, capacity_in_amps=capacity_in_amps)
            ensure_group_capacity(updated, current.charge_stations)
            store.update_group(group_id, name, capacity_in_amps)
        logger.info("Group %s updated with capacity %s A", group_id, capacity_in_amps)
        return updated

    def delete_group(self, group_id: int) -> None:
        """Delete the group together with its stations and their connectors."""
        with self._unit_of_work("delete_group") as store:
            self._require_group(store, group_id)
            connectors_removed = store.delete_connectors_by_group(group_id)
            stations_removed = store.delete_charge_stations_by_group(group_id)
            store.delete_group(group_id)
        logger.info(
            "Group %s deleted with %s charge stations and %s connectors",
            group_id,
            stations_removed,
            connectors_removed,
        )

    # --- charge stations ---

    def list_charge_stations(self) -> List[ChargeStation]:
        with self._unit_of_work("list_charge_stations", readonly=True) as store:
            return store.list_charge_stations()

    def get_charge_station(self, station_id: int) -> ChargeStation:
        with self._unit_of_work("get_charge_station", readonly=True) as store:
            return self._require_charge_station(store, station_id)

    def create_charge_station(self, group_id: int, name: str) -> ChargeStation:
        with self._unit_of_work("create_charge_station") as store:
            validate_charge_station_fields(name)
            self._require_group(store, group_id)
            station = store.insert_charge_station(group_id, name)
        logger.info("Charge station %s created in group %s", station.station_id, group_id)
        return station

    def update_charge_station(self, station_id: int, group_id: int, name: str) -> ChargeStation:
        """Rename a station or move it, with its connectors, to another group."""
        with self._unit_of_work("update_charge_station") as store:
            validate_charge_station_fields(name)
            current = self._require_charge_station(store, station_id)
            target_group = self._require_group(store, group_id)
            updated = replace(current, name=name, group_id=group_id)
            if current.group_id != group_id:
                ensure_group_capacity(
                    target_group,
                    with_station(target_group.charge_stations, updated),
                )
            store.update_charge_station(station_id, group_id, name)
        logger.info("Charge station %s updated in group %s", station_id, group_id)
        return updated

    def delete_charge_station(self, station_id: int) -> None:
        """Delete a station and its connectors without any structural check."""
        with self._unit_of_work("delete_charge_station") as store:
            self._require_charge_station(store, station_id)
            connectors_removed = store.delete_connectors_by_station(station_id)
            store.delete_charge_station(station_id)
        logger.info(
            "Charge station %s deleted with %s connectors",
            station_id,
            connectors_removed,
        )

    def attach_charge_station(self, group_id: int, name: str) -> ChargeStation:
        """Add a new station to a group through the rule-checked structural path."""
        with self._unit_of_work("attach_charge_station") as store:
            validate_charge_station_fields(name)
            group = self._require_group(store, group_id)
            ensure_allowed(can_attach_station_to_group(group.charge_stations))
            station = store.insert_charge_station(group_id, name)
        logger.info("Charge station %s attached to group %s", station.station_id, group_id)
        return station

    def detach_charge_station(self, group_id: int, station_id: int) -> None:
        """Remove a connector-free station from its group."""
        with self._unit_of_work("detach_charge_station") as store:
            station = self._require_charge_station(store, station_id)
            if station.group_id != group_id:
                raise EntityNotFoundError("ChargeStation", station_id)
            ensure_allowed(can_detach_station_from_group(station.connectors))
            store.delete_charge_station(station_id)
        logger.info("Charge station %s detached from group %s", station_id, group_id)

    # --- connectors ---

    def list_connectors(self) -> List[Connector]:
        with self._unit_of_work("list_connectors", readonly=True) as store:
            return store.list_connectors()

    def get_connector(self, connector_id: int) -> Connector:
        with self._unit_of_work("get_connector", readonly=True) as store:
            return self._require_connector(store, connector_id)

    def create_connector(
        self,
        charge_station_id: int,
        identifier: int,
        max_current_in_amps: int,
    ) -> Connector:
        with self._unit_of_work("create_connector") as store:
            validate_connector_fields(identifier, max_current_in_amps)
            station = self._require_charge_station(store, charge_station_id)
            group = self._require_group(store, station.group_id)
            # Unsaved connectors carry id 0 until the insert assigns one.
            candidate = Connector(
                connector_id=0,
                charge_station_id=charge_station_id,
                identifier=identifier,
                max_current_in_amps=max_current_in_amps,
            )
            ensure_group_capacity(group, with_connector(group.charge_stations, candidate))
            self._warn_on_duplicate_identifier(station, candidate)
            connector = store.insert_connector(charge_station_id, identifier, max_current_in_amps)
        logger.info(
            "Connector %s created on charge station %s drawing %s A",
            connector.connector_id,
            charge_station_id,
            max_current_in_amps,
        )
        return connector

    def update_connector(
        self,
        connector_id: int,
        charge_station_id: int,
        identifier: int,
        max_current_in_amps: int,
    ) -> Connector:
        with self._unit_of_work("update_connector") as store:
            validate_connector_fields(identifier, max_current_in_amps)
            current = self._require_connector(store, connector_id)
            station = self._require_charge_station(store, charge_station_id)
            updated = Connector(
                connector_id=connector_id,
                charge_station_id=charge_station_id,
                identifier=identifier,
                max_current_in_amps=max_current_in_amps,
            )
            draw_changed = (
                current.max_current_in_amps != max_current_in_amps
                or current.charge_station_id != charge_station_id
            )
            if draw_changed:
                # Only the receiving group can gain load; the source group only sheds it.
                group = self._require_group(store, station.group_id)
                ensure_group_capacity(group, with_connector(group.charge_stations, updated))
            self._warn_on_duplicate_identifier(station, updated)
            store.update_connector(connector_id, charge_station_id, identifier, max_current_in_amps)
        logger.info("Connector %s updated on charge station %s", connector_id, charge_station_id)
        return updated

    def delete_connector(self, connector_id: int) -> None:
        with self._unit_of_work("delete_connector") as store:
            self._require_connector(store, connector_id)
            store.delete_connector(connector_id)
        logger.info("Connector %s deleted", connector_id)
