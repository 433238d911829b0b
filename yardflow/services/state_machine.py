"""
Appointment and move request state machines.

This module is the single source of truth for lifecycle transitions.
Services call validate_transition() before changing a status field;
disallowed transitions raise InvalidOperationError naming the entity,
its current status and the statuses that would have been accepted.
"""

from typing import Dict, FrozenSet, Union
from enum import Enum

from yardflow.exceptions import InvalidOperationError
from yardflow.models.enums import AppointmentStatus, MoveStatus


# current status -> statuses it may move to
APPOINTMENT_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CHECKED_IN: frozenset({
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.COMPLETED,     # check-out without a processing step
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.IN_PROGRESS: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),   # terminal
    AppointmentStatus.CANCELLED: frozenset(),   # terminal
}

MOVE_TRANSITIONS: Dict[MoveStatus, FrozenSet[MoveStatus]] = {
    MoveStatus.REQUESTED: frozenset({MoveStatus.ASSIGNED, MoveStatus.CANCELLED}),
    MoveStatus.ASSIGNED: frozenset({MoveStatus.IN_PROGRESS, MoveStatus.CANCELLED}),
    MoveStatus.IN_PROGRESS: frozenset({MoveStatus.COMPLETED, MoveStatus.CANCELLED}),
    MoveStatus.COMPLETED: frozenset(),
    MoveStatus.CANCELLED: frozenset(),
}

ACTIVE_APPOINTMENT_STATUSES = frozenset({AppointmentStatus.CHECKED_IN, AppointmentStatus.IN_PROGRESS})
ACTIVE_MOVE_STATUSES = frozenset({MoveStatus.REQUESTED, MoveStatus.ASSIGNED, MoveStatus.IN_PROGRESS})

_TABLES = {
    AppointmentStatus: ("Appointment", APPOINTMENT_TRANSITIONS),
    MoveStatus: ("Move request", MOVE_TRANSITIONS),
}


def _coerce(status_cls, value) -> Enum:
    return value if isinstance(value, status_cls) else status_cls(value)


def can_transition(current: Union[str, Enum], target: Enum) -> bool:
    _, table = _TABLES[type(target)]
    return target in table[_coerce(type(target), current)]


def allowed_transitions(current: Union[str, Enum], status_cls) -> FrozenSet:
    _, table = _TABLES[status_cls]
    return table[_coerce(status_cls, current)]


def is_terminal(current: Union[str, Enum], status_cls) -> bool:
    return not allowed_transitions(current, status_cls)


def validate_transition(entity_id, current: Union[str, Enum], target: Enum) -> None:
    """Raise InvalidOperationError unless current → target is in the table."""
    status_cls = type(target)
    label, table = _TABLES[status_cls]
    current = _coerce(status_cls, current)
    if target in table[current]:
        return
    allowed = sorted(s.value for s in table[current])
    raise InvalidOperationError(
        f"{label} {entity_id} cannot move from {current.value} to {target.value}"
        f" (allowed: {', '.join(allowed) or 'none, status is terminal'})",
        entity=label,
        id=entity_id,
        current_status=current.value,
        requested_status=target.value,
        allowed=allowed,
    )
