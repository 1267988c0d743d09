"""Structural membership rules for attaching and detaching charge stations."""

from __future__ import annotations

from typing import Sequence

from charging_backend.domain.errors import StructuralRuleViolationError
from charging_backend.domain.models import (
    ChargeStation,
    Connector,
    RuleDecision,
    StructuralReason,
)


def can_attach_station_to_group(group_charge_stations: Sequence[ChargeStation]) -> RuleDecision:
    # A group accepts a station only while it owns none.
    if group_charge_stations:
        return RuleDecision(allowed=False, reason=StructuralReason.GROUP_ALREADY_HAS_STATION)
    return RuleDecision(allowed=True)


def can_detach_station_from_group(station_connectors: Sequence[Connector]) -> RuleDecision:
    if station_connectors:
        return RuleDecision(allowed=False, reason=StructuralReason.STATION_HAS_CONNECTORS)
    return RuleDecision(allowed=True)


def ensure_allowed(decision: RuleDecision) -> None:
    if not decision.allowed:
        raise StructuralRuleViolationError(decision.reason)
