"""
Trailer State Tracker.

Owns a trailer's load/process status, condition and refrigeration state.
Every rule that turns a load status into a process status lives in
derive_process_status(), which check-in, check-out, door assignment and
move completion all call.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from yardflow.database import unit_of_work
from yardflow.exceptions import InvalidOperationError
from yardflow.models.appointment import Appointment
from yardflow.models.carrier import Carrier
from yardflow.models.enums import LoadStatus, ProcessStatus, TrailerCondition, RefrigerationStatus, coerce
from yardflow.models.site import Dock
from yardflow.models.slot import Door, YardLocation
from yardflow.models.trailer import Trailer
from yardflow.services import lookup_service
from yardflow.services.locks import aggregate_locks, trailer_key
from yardflow.utils.clock import utcnow
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)


class ProcessContext(str, Enum):
    """Where a process status is being derived."""
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    DOOR_ASSIGNMENT = "DOOR_ASSIGNMENT"
    SPOTTED_TO_DOOR = "SPOTTED_TO_DOOR"    # SPOT move completed at a door


_DERIVATION = {
    ProcessContext.CHECK_IN: {
        LoadStatus.EMPTY: ProcessStatus.LOAD,
        LoadStatus.FULL: ProcessStatus.UNLOAD,
        LoadStatus.PARTIAL: ProcessStatus.IN_GATE,
    },
    ProcessContext.CHECK_OUT: {
        LoadStatus.EMPTY: ProcessStatus.UNLOADED,
        LoadStatus.FULL: ProcessStatus.LOADED,
    },
    ProcessContext.DOOR_ASSIGNMENT: {
        LoadStatus.EMPTY: ProcessStatus.LOADING,
        LoadStatus.FULL: ProcessStatus.UNLOADING,
    },
    ProcessContext.SPOTTED_TO_DOOR: {
        LoadStatus.EMPTY: ProcessStatus.LOADING,
        LoadStatus.PARTIAL: ProcessStatus.LOADING,
        LoadStatus.FULL: ProcessStatus.UNLOADING,
    },
}

# PULL from a door: work in progress at the door becomes finished work.
_PULL_RESULTS = {
    ProcessStatus.LOADING: (ProcessStatus.LOADED, LoadStatus.FULL),
    ProcessStatus.UNLOADING: (ProcessStatus.UNLOADED, LoadStatus.EMPTY),
}

_FORBIDDEN_FOR_LOAD = {
    LoadStatus.FULL: {ProcessStatus.LOAD, ProcessStatus.LOADING, ProcessStatus.LOADED},
    LoadStatus.EMPTY: {ProcessStatus.UNLOAD, ProcessStatus.UNLOADING, ProcessStatus.UNLOADED},
}


def derive_process_status(load_status, context: ProcessContext, current=None) -> Optional[str]:
    """
    Process status a trailer should have given its load status and where it is.
    Returns `current` unchanged when no rule applies (e.g. PARTIAL at check-out).
    """
    if load_status is None:
        return current
    load_status = LoadStatus(load_status)
    derived = _DERIVATION[context].get(load_status)
    return derived.value if derived else current


def derive_pull_result(process_status):
    """(process_status, load_status) after a PULL from a door, or None if no rule applies."""
    if process_status is None:
        return None
    result = _PULL_RESULTS.get(ProcessStatus(process_status))
    if result is None:
        return None
    return result[0].value, result[1].value


# ── In-place transitions used by the lifecycle managers ──────────────────────

def apply_check_in(trailer: Trailer, carrier: Carrier, load_status, condition=None,
                   refrigeration_status=None, now=None) -> None:
    trailer.carrier_id = carrier.id
    trailer.carrier = carrier
    trailer.load_status = coerce(LoadStatus, load_status)
    trailer.condition = coerce(TrailerCondition, condition)
    trailer.refrigeration_status = coerce(RefrigerationStatus, refrigeration_status)
    trailer.check_in_time = now or utcnow()
    trailer.check_out_time = None
    trailer.process_status = derive_process_status(trailer.load_status, ProcessContext.CHECK_IN)

    if carrier.detention_enabled:
        trailer.detention_active = False
        trailer.detention_start_time = None


def apply_check_out(trailer: Trailer, condition, load_status, now=None) -> None:
    trailer.condition = coerce(TrailerCondition, condition)
    trailer.load_status = coerce(LoadStatus, load_status)
    trailer.check_out_time = now or utcnow()
    trailer.process_status = derive_process_status(
        trailer.load_status, ProcessContext.CHECK_OUT, current=trailer.process_status
    )
    trailer.detention_active = False


def apply_at_door(trailer: Trailer, context: ProcessContext = ProcessContext.DOOR_ASSIGNMENT) -> None:
    """Trailer has arrived at a door: start loading or unloading."""
    before = trailer.process_status
    trailer.process_status = derive_process_status(
        trailer.load_status, context, current=trailer.process_status
    )
    if before != trailer.process_status:
        logger.info(f"Trailer {trailer.trailer_number}: {before} → {trailer.process_status} "
                    f"({context.value.lower()}, load={trailer.load_status})")


def apply_pulled_from_door(trailer: Trailer) -> bool:
    """Trailer left a door. Returns False when its process status has no pull rule."""
    result = derive_pull_result(trailer.process_status)
    if result is None:
        logger.info(f"Trailer {trailer.trailer_number} pulled from door in process status "
                    f"{trailer.process_status}, no automation rule, left unchanged")
        return False
    before = trailer.process_status
    trailer.process_status, trailer.load_status = result
    logger.info(f"Trailer {trailer.trailer_number}: {before} → {trailer.process_status}, "
                f"load status → {trailer.load_status}")
    return True


# ── Operations ───────────────────────────────────────────────────────────────

def update_trailer_status(db: Session, trailer_id: int, new_status) -> Trailer:
    """Manual process-status override, guarded against contradicting the load status."""
    new_status = ProcessStatus(coerce(ProcessStatus, new_status))
    with aggregate_locks(trailer_key(trailer_id)), unit_of_work(db):
        trailer = lookup_service.get_trailer(db, trailer_id, for_update=True)
        forbidden = _FORBIDDEN_FOR_LOAD.get(LoadStatus(trailer.load_status)) if trailer.load_status else None
        if forbidden and new_status in forbidden:
            raise InvalidOperationError(
                f"Cannot change a {trailer.load_status} trailer ({trailer.trailer_number}) "
                f"to {new_status.value}",
                trailer_id=trailer.id, load_status=trailer.load_status,
                requested_status=new_status.value,
            )
        logger.info(f"Trailer {trailer.trailer_number}: process status "
                    f"{trailer.process_status} → {new_status.value} (manual)")
        trailer.process_status = new_status.value
    return trailer


# ── Queries ──────────────────────────────────────────────────────────────────

def get_trailer(db: Session, trailer_id: int) -> Trailer:
    return lookup_service.get_trailer(db, trailer_id)


def get_trailer_by_number(db: Session, trailer_number: str) -> Trailer:
    return lookup_service.get_trailer_by_number(db, trailer_number)


def get_trailers_by_status(db: Session, status) -> List[Trailer]:
    status = ProcessStatus(coerce(ProcessStatus, status))
    logger.debug(f"Retrieving trailers with process status {status.value}")
    return db.query(Trailer).filter(Trailer.process_status == status.value).all()


def get_trailers_by_site(db: Session, site_id: int) -> List[Trailer]:
    """Trailers at a door or yard location of the site, or with an open visit there."""
    lookup_service.get_site(db, site_id)
    at_door = select(Door.id).join(Dock, Door.dock_id == Dock.id).where(Dock.site_id == site_id)
    in_yard = select(YardLocation.id).where(YardLocation.site_id == site_id)
    visiting = select(Appointment.id).where(Appointment.site_id == site_id)
    return (
        db.query(Trailer)
        .filter(or_(
            Trailer.door_id.in_(at_door),
            Trailer.yard_location_id.in_(in_yard),
            Trailer.current_appointment_id.in_(visiting),
        ))
        .order_by(Trailer.trailer_number)
        .all()
    )
