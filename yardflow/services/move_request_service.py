"""
Move Request Lifecycle Manager.

A move request is a spotter task relocating one trailer:
    REQUESTED → ASSIGNED → IN_PROGRESS → COMPLETED
    any non-terminal → CANCELLED

Completing a move applies trailer automation (see trailer_service):
a SPOT to a door starts loading/unloading, a PULL from a door finishes it.
Mutations on a request run under its trailer's aggregate lock.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from yardflow.database import unit_of_work
from yardflow.exceptions import InvalidOperationError
from yardflow.models.enums import LocationType, MoveStatus, MoveType, coerce
from yardflow.models.move_request import MoveRequest
from yardflow.services import access_service, lookup_service, trailer_service
from yardflow.services.locks import aggregate_locks, trailer_key
from yardflow.services.state_machine import ACTIVE_MOVE_STATUSES, validate_transition
from yardflow.services.trailer_service import ProcessContext
from yardflow.utils.clock import utcnow, validate_date_range
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)


def _require(value, message: str, field: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidOperationError(message, field=field)


def _parse_location_type(value, side: str) -> str:
    try:
        return coerce(LocationType, value.strip() if isinstance(value, str) else value)
    except InvalidOperationError:
        raise InvalidOperationError(
            f"Invalid {side} location type: {value}",
            field=f"{side}_location_type", value=str(value),
            allowed=[t.value for t in LocationType],
        )


def _require_status(move: MoveRequest, expected: MoveStatus, action: str) -> None:
    if move.status != expected.value:
        logger.warning(f"Rejected {action} of move request {move.id}: status is {move.status}")
        raise InvalidOperationError(
            f"Cannot {action} move request that is not in {expected.value} status. "
            f"Current status: {move.status}",
            move_request_id=move.id, status=move.status, expected_status=expected.value,
        )


def _trailer_lock(db: Session, move_request_id: int):
    move = lookup_service.get_move_request(db, move_request_id)
    return aggregate_locks(trailer_key(move.trailer_id))


# ── Lifecycle ────────────────────────────────────────────────────────────────

def create_move_request(
    db: Session,
    trailer_id: int,
    move_type,
    source_location_type,
    source_location_id: int,
    destination_location_type,
    destination_location_id: int,
    requested_by_id: int,
    notes: Optional[str] = None,
) -> MoveRequest:
    """
    Open a move for a trailer that is currently on site.
    The site is taken from the trailer's open appointment.
    """
    logger.info(f"Creating move request for trailer ID {trailer_id} requested by user ID {requested_by_id}")
    _require(trailer_id, "Trailer ID is required", "trailer_id")
    _require(move_type, "Move type is required", "move_type")
    _require(source_location_type, "Source location type is required", "source_location_type")
    _require(destination_location_type, "Destination location type is required", "destination_location_type")
    source_type = _parse_location_type(source_location_type, "source")
    destination_type = _parse_location_type(destination_location_type, "destination")
    _require(source_location_id, "Source location ID is required", "source_location_id")
    _require(destination_location_id, "Destination location ID is required", "destination_location_id")
    move_type = coerce(MoveType, move_type)

    with aggregate_locks(trailer_key(trailer_id)), unit_of_work(db):
        trailer = lookup_service.get_trailer(db, trailer_id)
        requested_by = lookup_service.get_user(db, requested_by_id)
        appointment = lookup_service.get_current_appointment(db, trailer)
        if appointment is None:
            raise InvalidOperationError(
                f"Unable to determine site for trailer: {trailer.trailer_number}. "
                f"Trailer must have an active appointment.",
                trailer_id=trailer.id,
            )
        site = appointment.site
        access_service.require_site_access(requested_by, site)

        move = MoveRequest(
            site_id=site.id,
            trailer_id=trailer.id,
            move_type=move_type,
            source_location_type=source_type,
            source_location_id=source_location_id,
            destination_location_type=destination_type,
            destination_location_id=destination_location_id,
            requested_by_id=requested_by.id,
            request_time=utcnow(),
            status=MoveStatus.REQUESTED.value,
            notes=notes,
        )
        db.add(move)

    logger.info(f"Created move request ID {move.id} for trailer {trailer.trailer_number}")
    return move


def assign_move_request(db: Session, move_request_id: int, spotter_id: int) -> MoveRequest:
    logger.info(f"Assigning move request ID {move_request_id} to spotter ID {spotter_id}")
    with _trailer_lock(db, move_request_id), unit_of_work(db):
        move = lookup_service.get_move_request(db, move_request_id, for_update=True)
        spotter = lookup_service.get_user(db, spotter_id)
        _require_status(move, MoveStatus.REQUESTED, "assign")
        access_service.require_spotter(spotter)
        access_service.require_site_access(spotter, move.site)

        move.assigned_spotter_id = spotter.id
        move.assigned_time = utcnow()
        move.status = MoveStatus.ASSIGNED.value

    logger.info(f"Assigned move request ID {move_request_id} to spotter {spotter.username}")
    return move


def start_move_request(db: Session, move_request_id: int) -> MoveRequest:
    logger.info(f"Starting move request ID {move_request_id}")
    with _trailer_lock(db, move_request_id), unit_of_work(db):
        move = lookup_service.get_move_request(db, move_request_id, for_update=True)
        _require_status(move, MoveStatus.ASSIGNED, "start")
        move.start_time = utcnow()
        move.status = MoveStatus.IN_PROGRESS.value
    return move


def complete_move_request(db: Session, move_request_id: int) -> MoveRequest:
    """Finish the move and update the trailer's process/load status."""
    logger.info(f"Completing move request ID {move_request_id}")
    with _trailer_lock(db, move_request_id), unit_of_work(db):
        move = lookup_service.get_move_request(db, move_request_id, for_update=True)
        _require_status(move, MoveStatus.IN_PROGRESS, "complete")
        move.completion_time = utcnow()
        move.status = MoveStatus.COMPLETED.value

        trailer = lookup_service.get_trailer(db, move.trailer_id, for_update=True)
        if move.move_type == MoveType.SPOT.value and move.destination_location_type == LocationType.DOOR.value:
            trailer_service.apply_at_door(trailer, ProcessContext.SPOTTED_TO_DOOR)
        elif move.move_type == MoveType.PULL.value and move.source_location_type == LocationType.DOOR.value:
            trailer_service.apply_pulled_from_door(trailer)

    logger.info(f"Completed move request ID {move_request_id}")
    return move


def cancel_move_request(db: Session, move_request_id: int) -> MoveRequest:
    logger.info(f"Cancelling move request ID {move_request_id}")
    with _trailer_lock(db, move_request_id), unit_of_work(db):
        move = lookup_service.get_move_request(db, move_request_id, for_update=True)
        if move.status == MoveStatus.COMPLETED.value:
            raise InvalidOperationError(
                f"Cannot cancel a completed move request (ID: {move.id})",
                move_request_id=move.id, status=move.status,
            )
        validate_transition(move.id, move.status, MoveStatus.CANCELLED)
        move.status = MoveStatus.CANCELLED.value
    return move


def add_notes_to_move_request(db: Session, move_request_id: int, notes: str) -> MoveRequest:
    """Append notes on a new line. Allowed in every status."""
    _require(notes, "Notes cannot be empty", "notes")
    with unit_of_work(db):
        move = lookup_service.get_move_request(db, move_request_id, for_update=True)
        if move.notes and move.notes.strip():
            move.notes = f"{move.notes}\n{notes}"
        else:
            move.notes = notes
    return move


# ── Queries ──────────────────────────────────────────────────────────────────

def get_move_request(db: Session, move_request_id: int) -> MoveRequest:
    return lookup_service.get_move_request(db, move_request_id)


def get_move_requests_by_status(db: Session, status, site_id: Optional[int] = None) -> List[MoveRequest]:
    status = coerce(MoveStatus, status)
    logger.debug(f"Retrieving move requests with status {status}")
    q = db.query(MoveRequest).filter(MoveRequest.status == status)
    if site_id is not None:
        lookup_service.get_site(db, site_id)
        q = q.filter(MoveRequest.site_id == site_id)
    return q.order_by(MoveRequest.request_time).all()


def get_pending_move_requests(db: Session, site_id: Optional[int] = None) -> List[MoveRequest]:
    """REQUESTED moves waiting for a spotter, oldest first."""
    return get_move_requests_by_status(db, MoveStatus.REQUESTED, site_id)


def get_move_requests_by_spotter(db: Session, spotter_id: int) -> List[MoveRequest]:
    lookup_service.get_user(db, spotter_id)
    return (
        db.query(MoveRequest)
        .filter(MoveRequest.assigned_spotter_id == spotter_id)
        .order_by(MoveRequest.request_time)
        .all()
    )


def get_move_requests_by_site(db: Session, site_id: int) -> List[MoveRequest]:
    lookup_service.get_site(db, site_id)
    return db.query(MoveRequest).filter(MoveRequest.site_id == site_id).order_by(MoveRequest.request_time).all()


def get_move_requests_by_trailer(db: Session, trailer_id: int) -> List[MoveRequest]:
    lookup_service.get_trailer(db, trailer_id)
    return (
        db.query(MoveRequest)
        .filter(MoveRequest.trailer_id == trailer_id)
        .order_by(MoveRequest.request_time)
        .all()
    )


def get_active_move_requests(db: Session, site_id: Optional[int] = None) -> List[MoveRequest]:
    q = db.query(MoveRequest).filter(MoveRequest.status.in_([s.value for s in ACTIVE_MOVE_STATUSES]))
    if site_id is not None:
        lookup_service.get_site(db, site_id)
        q = q.filter(MoveRequest.site_id == site_id)
    return q.order_by(MoveRequest.request_time).all()


def get_move_requests_by_date_range(db: Session, start: datetime, end: datetime) -> List[MoveRequest]:
    start, end = validate_date_range(start, end)
    return (
        db.query(MoveRequest)
        .filter(MoveRequest.request_time >= start, MoveRequest.request_time <= end)
        .order_by(MoveRequest.request_time)
        .all()
    )
