"""
Status and type enumerations shared by models, services and schemas.
Stored as their string values in String columns.
"""

from enum import Enum


class GateFunction(str, Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    CHECK_IN_OUT = "CHECK_IN_OUT"


class UserRole(str, Enum):
    SUPERUSER = "SUPERUSER"
    ADMIN = "ADMIN"
    SPOTTER = "SPOTTER"
    GATE_GUARD = "GATE_GUARD"
    DOCK_MANAGER = "DOCK_MANAGER"


class SlotStatus(str, Enum):
    """Shared by Door and YardLocation."""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class LoadStatus(str, Enum):
    EMPTY = "EMPTY"
    PARTIAL = "PARTIAL"
    FULL = "FULL"


class ProcessStatus(str, Enum):
    IN_GATE = "IN_GATE"
    LOAD = "LOAD"
    LOADING = "LOADING"
    LOADED = "LOADED"
    UNLOAD = "UNLOAD"
    UNLOADING = "UNLOADING"
    UNLOADED = "UNLOADED"


class TrailerCondition(str, Enum):
    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    DAMAGED = "DAMAGED"


class RefrigerationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PRE_COOLING = "PRE_COOLING"
    DEFROST = "DEFROST"
    OFF = "OFF"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class AppointmentType(str, Enum):
    LIVE_LOAD = "LIVE_LOAD"
    DROP_AND_HOOK = "DROP_AND_HOOK"
    INBOUND_ONLY = "INBOUND_ONLY"
    OUTBOUND_ONLY = "OUTBOUND_ONLY"
    CHECK_IN_ONLY = "CHECK_IN_ONLY"
    UNDEFINED = "UNDEFINED"


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MoveType(str, Enum):
    SPOT = "SPOT"   # to a door
    PULL = "PULL"   # from a door


class MoveStatus(str, Enum):
    REQUESTED = "REQUESTED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class LocationType(str, Enum):
    YARD = "YARD"
    DOOR = "DOOR"
    GATE = "GATE"


def coerce(enum_cls, value):
    """
    String value of `value` as a member of enum_cls, or None.
    Unknown values raise InvalidOperationError listing the accepted ones.
    """
    from yardflow.exceptions import InvalidOperationError

    if value is None:
        return None
    try:
        return enum_cls(value).value
    except ValueError:
        raise InvalidOperationError(
            f"Invalid {enum_cls.__name__}: {value}",
            field=enum_cls.__name__, value=str(value), allowed=[e.value for e in enum_cls],
        )
