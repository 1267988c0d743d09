from __future__ import annotations

import logging
import random

import pytest

from conftest import storage_snapshot

from charging_backend.domain.errors import (
    CapacityExceededError,
    ChargingError,
    EntityNotFoundError,
    InvalidFieldError,
    StructuralRuleViolationError,
)
from charging_backend.domain.models import StructuralReason


def _assert_invariant(repository) -> None:
    for group in repository.list_groups():
        hierarchy = repository.load_group_hierarchy(group.group_id)
        assert hierarchy.capacity_in_amps >= hierarchy.total_max_current_in_amps


# --- Scenarios ---

def test_connector_over_group_capacity_is_rejected(service, repository):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    before = storage_snapshot(repository)

    with pytest.raises(CapacityExceededError) as excinfo:
        service.create_connector(station.station_id, identifier=1, max_current_in_amps=150)

    assert excinfo.value.total_in_amps == 150
    assert excinfo.value.capacity_in_amps == 100
    assert storage_snapshot(repository) == before


def test_second_station_cannot_be_attached(service, repository):
    group = service.create_group("Depot", 100)
    station = service.attach_charge_station(group.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=1, max_current_in_amps=100)
    before = storage_snapshot(repository)

    with pytest.raises(StructuralRuleViolationError) as excinfo:
        service.attach_charge_station(group.group_id, "Station 2")

    assert excinfo.value.rule is StructuralReason.GROUP_ALREADY_HAS_STATION
    assert storage_snapshot(repository) == before


def test_detach_requires_station_without_connectors(service, repository):
    group = service.create_group("Depot", 100)
    station = service.attach_charge_station(group.group_id, "Station 1")
    connector = service.create_connector(station.station_id, identifier=1, max_current_in_amps=30)

    with pytest.raises(StructuralRuleViolationError) as excinfo:
        service.detach_charge_station(group.group_id, station.station_id)
    assert excinfo.value.rule is StructuralReason.STATION_HAS_CONNECTORS
    assert repository.count_charge_stations() == 1

    service.delete_connector(connector.connector_id)
    service.detach_charge_station(group.group_id, station.station_id)

    assert repository.count_charge_stations() == 0
    assert repository.count_groups() == 1


def test_connector_identifier_out_of_range_is_rejected(service, repository):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    before = storage_snapshot(repository)

    with pytest.raises(InvalidFieldError) as excinfo:
        service.create_connector(station.station_id, identifier=6, max_current_in_amps=10)

    assert excinfo.value.field == "identifier"
    assert storage_snapshot(repository) == before


def test_delete_group_cascades_to_whole_subtree(service, repository):
    group = service.create_group("Depot", 200)
    other = service.create_group("Other", 50)
    kept_station = service.create_charge_station(other.group_id, "Kept")
    service.create_connector(kept_station.station_id, identifier=1, max_current_in_amps=10)

    first = service.create_charge_station(group.group_id, "Station 1")
    second = service.create_charge_station(group.group_id, "Station 2")
    service.create_connector(first.station_id, identifier=1, max_current_in_amps=20)
    service.create_connector(first.station_id, identifier=2, max_current_in_amps=20)
    service.create_connector(second.station_id, identifier=1, max_current_in_amps=20)

    service.delete_group(group.group_id)

    assert [item.group_id for item in repository.list_groups()] == [other.group_id]
    assert [item.station_id for item in repository.list_charge_stations()] == [
        kept_station.station_id
    ]
    assert [item.charge_station_id for item in repository.list_connectors()] == [
        kept_station.station_id
    ]


# --- Boundary ---

def test_connector_filling_capacity_exactly_is_accepted(service):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=1, max_current_in_amps=60)
    service.create_connector(station.station_id, identifier=2, max_current_in_amps=40)

    check = service.check_group_capacity(group.group_id)
    assert check.is_valid
    assert check.headroom_in_amps == 0


def test_lowering_capacity_below_membership_is_rejected(service, repository):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=1, max_current_in_amps=80)
    before = storage_snapshot(repository)

    with pytest.raises(CapacityExceededError):
        service.update_group(group.group_id, "Depot", 79)
    assert storage_snapshot(repository) == before

    updated = service.update_group(group.group_id, "Depot renamed", 80)
    assert updated.capacity_in_amps == 80
    assert repository.load_group_hierarchy(group.group_id).name == "Depot renamed"


# --- Groups ---

def test_create_group_rejects_invalid_capacity(service, repository):
    with pytest.raises(InvalidFieldError):
        service.create_group("Depot", 0)
    assert repository.count_groups() == 0


def test_oversized_capacity_is_rejected_without_writing(service, repository):
    before = storage_snapshot(repository)
    with pytest.raises(InvalidFieldError):
        service.create_group("Depot", 2**63)
    assert storage_snapshot(repository) == before


def test_unstorable_ids_are_not_found(service):
    with pytest.raises(EntityNotFoundError):
        service.get_group(2**63)
    with pytest.raises(EntityNotFoundError):
        service.get_charge_station(2**63)
    with pytest.raises(EntityNotFoundError):
        service.delete_connector(2**63)


def test_update_missing_group_is_not_found(service):
    with pytest.raises(EntityNotFoundError) as excinfo:
        service.update_group(404, "Ghost", 10)
    assert excinfo.value.entity == "Group"
    assert excinfo.value.kind == "NotFound"


def test_group_structure_reports_structural_flags(service):
    group = service.create_group("Depot", 100)
    empty = service.get_group_structure(group.group_id)
    assert empty.can_add_charge_station
    assert not empty.can_remove_charge_station

    station = service.attach_charge_station(group.group_id, "Station 1")
    bare = service.get_group_structure(group.group_id)
    assert not bare.can_add_charge_station
    assert bare.can_remove_charge_station

    service.create_connector(station.station_id, identifier=1, max_current_in_amps=30)
    loaded = service.get_group_structure(group.group_id)
    assert not loaded.can_remove_charge_station
    assert loaded.capacity.total_max_current_in_amps == 30
    assert loaded.group.charge_stations[0].connectors[0].max_current_in_amps == 30


# --- Charge stations ---

def test_create_station_requires_existing_group(service, repository):
    with pytest.raises(EntityNotFoundError):
        service.create_charge_station(99, "Orphan")
    assert repository.count_charge_stations() == 0


def test_create_station_skips_attach_rule(service):
    group = service.create_group("Depot", 100)
    service.create_charge_station(group.group_id, "Station 1")
    service.create_charge_station(group.group_id, "Station 2")
    assert len(service.get_group(group.group_id).charge_stations) == 2


def test_moving_station_rechecks_target_group(service, repository):
    small = service.create_group("Small", 50)
    large = service.create_group("Large", 200)
    station = service.create_charge_station(large.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=1, max_current_in_amps=120)
    before = storage_snapshot(repository)

    with pytest.raises(CapacityExceededError) as excinfo:
        service.update_charge_station(station.station_id, small.group_id, "Station 1")
    assert excinfo.value.group_id == small.group_id
    assert storage_snapshot(repository) == before

    service.update_group(small.group_id, "Small", 120)
    moved = service.update_charge_station(station.station_id, small.group_id, "Moved")
    assert moved.group_id == small.group_id
    assert service.check_group_capacity(large.group_id).total_max_current_in_amps == 0
    assert service.check_group_capacity(small.group_id).total_max_current_in_amps == 120


def test_renaming_station_in_place_skips_capacity(service):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    renamed = service.update_charge_station(station.station_id, group.group_id, "Renamed")
    assert service.get_charge_station(station.station_id).name == renamed.name == "Renamed"


def test_update_station_to_missing_group_is_not_found(service):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    with pytest.raises(EntityNotFoundError):
        service.update_charge_station(station.station_id, 999, "Station 1")


def test_delete_station_cascades_without_structural_check(service, repository):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=1, max_current_in_amps=10)
    service.create_connector(station.station_id, identifier=2, max_current_in_amps=10)

    service.delete_charge_station(station.station_id)

    assert repository.count_charge_stations() == 0
    assert repository.count_connectors() == 0
    assert repository.count_groups() == 1


def test_detach_station_from_wrong_group_is_not_found(service):
    first = service.create_group("First", 100)
    second = service.create_group("Second", 100)
    station = service.create_charge_station(first.group_id, "Station 1")
    with pytest.raises(EntityNotFoundError):
        service.detach_charge_station(second.group_id, station.station_id)


# --- Connectors ---

def test_create_connector_requires_existing_station(service):
    with pytest.raises(EntityNotFoundError) as excinfo:
        service.create_connector(12, identifier=1, max_current_in_amps=10)
    assert excinfo.value.entity == "ChargeStation"


def test_capacity_counts_every_station_in_group(service):
    group = service.create_group("Depot", 100)
    first = service.create_charge_station(group.group_id, "Station 1")
    second = service.create_charge_station(group.group_id, "Station 2")
    service.create_connector(first.station_id, identifier=1, max_current_in_amps=60)

    with pytest.raises(CapacityExceededError) as excinfo:
        service.create_connector(second.station_id, identifier=1, max_current_in_amps=41)
    assert excinfo.value.total_in_amps == 101


def test_raising_connector_current_is_rechecked(service, repository):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    connector = service.create_connector(station.station_id, identifier=1, max_current_in_amps=50)
    service.create_connector(station.station_id, identifier=2, max_current_in_amps=40)
    before = storage_snapshot(repository)

    with pytest.raises(CapacityExceededError):
        service.update_connector(connector.connector_id, station.station_id, 1, 61)
    assert storage_snapshot(repository) == before

    updated = service.update_connector(connector.connector_id, station.station_id, 1, 60)
    assert service.get_connector(connector.connector_id) == updated


def test_moving_connector_rechecks_receiving_group(service):
    roomy = service.create_group("Roomy", 100)
    tight = service.create_group("Tight", 30)
    source = service.create_charge_station(roomy.group_id, "Source")
    target = service.create_charge_station(tight.group_id, "Target")
    connector = service.create_connector(source.station_id, identifier=1, max_current_in_amps=40)

    with pytest.raises(CapacityExceededError):
        service.update_connector(connector.connector_id, target.station_id, 1, 40)

    moved = service.update_connector(connector.connector_id, target.station_id, 1, 30)
    assert moved.charge_station_id == target.station_id
    assert service.check_group_capacity(roomy.group_id).total_max_current_in_amps == 0


def test_delete_missing_connector_is_not_found(service):
    with pytest.raises(EntityNotFoundError):
        service.delete_connector(1)


def test_duplicate_identifier_is_logged_not_rejected(service, caplog):
    group = service.create_group("Depot", 100)
    station = service.create_charge_station(group.group_id, "Station 1")
    service.create_connector(station.station_id, identifier=2, max_current_in_amps=10)

    with caplog.at_level(logging.WARNING, logger="charging_backend.services.mutation_service"):
        service.create_connector(station.station_id, identifier=2, max_current_in_amps=10)

    assert "more than one connector with identifier 2" in caplog.text
    assert len(service.get_charge_station(station.station_id).connectors) == 2


def test_rejections_are_logged_with_kind(service, caplog):
    with caplog.at_level(logging.WARNING, logger="charging_backend.services.mutation_service"):
        with pytest.raises(EntityNotFoundError):
            service.delete_group(7)
        with pytest.raises(InvalidFieldError):
            service.create_group("Depot", 0)
    assert "delete_group rejected [NotFound]" in caplog.text
    assert "create_group rejected [InvalidField]" in caplog.text


# --- Invariant preservation ---

def test_random_mutation_sequence_preserves_invariant(service, repository):
    rng = random.Random(7)
    groups = [service.create_group(f"Group {index}", rng.randint(20, 120)) for index in range(3)]
    stations = [
        service.create_charge_station(rng.choice(groups).group_id, f"Station {index}")
        for index in range(6)
    ]

    for _ in range(60):
        action = rng.random()
        before = storage_snapshot(repository)
        try:
            if action < 0.5:
                service.create_connector(
                    rng.choice(stations).station_id,
                    identifier=rng.randint(1, 5),
                    max_current_in_amps=rng.randint(1, 40),
                )
            elif action < 0.7:
                group = rng.choice(groups)
                service.update_group(group.group_id, group.name, rng.randint(1, 120))
            elif action < 0.85:
                connectors = repository.list_connectors()
                if connectors:
                    connector = rng.choice(connectors)
                    service.update_connector(
                        connector.connector_id,
                        rng.choice(stations).station_id,
                        connector.identifier,
                        rng.randint(1, 40),
                    )
            else:
                station = rng.choice(stations)
                service.update_charge_station(
                    station.station_id,
                    rng.choice(groups).group_id,
                    station.name,
                )
        except ChargingError:
            assert storage_snapshot(repository) == before
        _assert_invariant(repository)
