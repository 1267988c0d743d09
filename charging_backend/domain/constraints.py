"""Field-level validation rules applied before any request is dispatched."""

from __future__ import annotations

from charging_backend.domain.errors import InvalidFieldError


CONNECTOR_IDENTIFIER_MIN = 1
CONNECTOR_IDENTIFIER_MAX = 5
AMPS_MAX = 2**31 - 1
# Largest value an SQLite INTEGER column can hold.
STORABLE_ID_MAX = 2**63 - 1


def _require_int(field: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(field, f"{field} must be an integer")
    return value


def is_storable_id(value: int) -> bool:
    return 0 < value <= STORABLE_ID_MAX


def validate_name(name: object, field: str = "name") -> None:
    if not isinstance(name, str) or not name.strip():
        raise InvalidFieldError(field, f"{field} must be a non-empty string")


def validate_group_fields(name: object, capacity_in_amps: object) -> None:
    validate_name(name)
    if not 0 < _require_int("capacity_in_amps", capacity_in_amps) <= AMPS_MAX:
        raise InvalidFieldError(
            "capacity_in_amps",
            f"Capacity must be greater than zero and at most {AMPS_MAX}.",
        )


def validate_charge_station_fields(name: object) -> None:
    validate_name(name)


def validate_connector_fields(identifier: object, max_current_in_amps: object) -> None:
    identifier = _require_int("identifier", identifier)
    if not CONNECTOR_IDENTIFIER_MIN <= identifier <= CONNECTOR_IDENTIFIER_MAX:
        raise InvalidFieldError(
            "identifier",
            f"Connector Identifier must be between {CONNECTOR_IDENTIFIER_MIN} "
            f"and {CONNECTOR_IDENTIFIER_MAX}.",
        )
    if not 0 < _require_int("max_current_in_amps", max_current_in_amps) <= AMPS_MAX:
        raise InvalidFieldError(
            "max_current_in_amps",
            f"Max current must be greater than zero and at most {AMPS_MAX}.",
        )
