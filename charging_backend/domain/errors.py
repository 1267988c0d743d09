"""Request-scoped rejection kinds raised by the domain and service layers."""

from __future__ import annotations

from typing import Optional

from charging_backend.domain.models import StructuralReason


class ChargingError(Exception):
    """Base class for every rejected charging request."""

    kind = "ChargingError"

    @property
    def reason(self) -> str:
        return str(self)


class EntityNotFoundError(ChargingError):
    """Raised when a referenced group, station or connector does not exist."""

    kind = "NotFound"

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} does not exist")
        self.entity = entity
        self.entity_id = entity_id


class InvalidFieldError(ChargingError):
    """Raised when a single field fails its own constraint."""

    kind = "InvalidField"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class CapacityExceededError(ChargingError):
    """Raised when connectors would draw more current than the group allows."""

    kind = "CapacityExceeded"

    def __init__(
        self,
        total_in_amps: int,
        capacity_in_amps: int,
        group_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            "Capacity must be greater than or equal to the sum of connector "
            f"max currents: required >= {total_in_amps}, got {capacity_in_amps}"
        )
        self.total_in_amps = total_in_amps
        self.capacity_in_amps = capacity_in_amps
        self.group_id = group_id


class StructuralRuleViolationError(ChargingError):
    """Raised when an attach/detach rule denies a membership change."""

    kind = "StructuralRuleViolation"

    _MESSAGES = {
        StructuralReason.GROUP_ALREADY_HAS_STATION: "Group already has a charge station",
        StructuralReason.STATION_HAS_CONNECTORS: "Charge station still has connectors",
    }

    def __init__(self, rule: StructuralReason) -> None:
        super().__init__(self._MESSAGES[rule])
        self.rule = rule


class StorageUnavailableError(ChargingError):
    """Raised when the persistence layer cannot serve the request."""

    kind = "StorageUnavailable"
