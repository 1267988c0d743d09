from __future__ import annotations

from dataclasses import replace

import pytest

from charging_backend.repository.charging_repository import ChargingRepository
from charging_backend.services.mutation_service import ChargingMutationService
from charging_backend.utils.config import get_settings


def build_test_settings(tmp_path, filename: str = "charging_test.db", **overrides):
    base = get_settings()
    return replace(base, database_path=tmp_path / filename, **overrides)


@pytest.fixture
def settings(tmp_path):
    return build_test_settings(tmp_path)


@pytest.fixture
def repository(settings) -> ChargingRepository:
    repository = ChargingRepository(settings)
    repository.initialize_database()
    return repository


@pytest.fixture
def service(repository, settings) -> ChargingMutationService:
    return ChargingMutationService(repository=repository, settings=settings)


def storage_snapshot(repository: ChargingRepository) -> tuple:
    """Every stored row, used to prove a rejected request wrote nothing."""
    return (
        tuple(repository.list_groups()),
        tuple(repository.list_charge_stations()),
        tuple(repository.list_connectors()),
    )
