"""
Resource Registry: door and yard location occupancy.

A slot's status and the trailer's reference to it are always changed
together (assign_* and _vacate_*). A trailer holds at most one slot: taking a
new one releases the old one inside the same unit of work.
"""

from typing import Optional

from sqlalchemy.orm import Session

from yardflow.database import unit_of_work
from yardflow.exceptions import InvalidOperationError
from yardflow.models.enums import SlotStatus
from yardflow.models.slot import Door, YardLocation
from yardflow.models.trailer import Trailer
from yardflow.services import lookup_service, trailer_service
from yardflow.services.locks import aggregate_locks, trailer_key, door_key, yard_location_key
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)


def _require_available(slot, label: str, trailer: Trailer) -> None:
    if slot.status != SlotStatus.AVAILABLE.value:
        logger.warning(f"{label} {slot.code} not available for trailer {trailer.trailer_number}: {slot.status}")
        raise InvalidOperationError(
            f"{label} {slot.name} (ID: {slot.id}) is not available: status is {slot.status}",
            slot_type=label, slot_id=slot.id, status=slot.status,
            expected_status=SlotStatus.AVAILABLE.value, trailer_id=trailer.id,
        )


def _vacate_door(db: Session, trailer: Trailer) -> None:
    door = lookup_service.get_door(db, trailer.door_id, for_update=True)
    door.status = SlotStatus.AVAILABLE.value
    trailer.door_id = None
    trailer.door = None
    logger.info(f"Door {door.code} released by trailer {trailer.trailer_number}")


def _vacate_yard_location(db: Session, trailer: Trailer) -> None:
    location = lookup_service.get_yard_location(db, trailer.yard_location_id, for_update=True)
    location.status = SlotStatus.AVAILABLE.value
    trailer.yard_location_id = None
    trailer.yard_location = None
    logger.info(f"Yard location {location.code} released by trailer {trailer.trailer_number}")


def release_slot(db: Session, trailer: Trailer) -> None:
    """
    Free whichever slot the trailer holds, if any.
    Does not commit; callers run it inside their own unit of work.
    """
    if trailer.door_id is not None:
        _vacate_door(db, trailer)
    if trailer.yard_location_id is not None:
        _vacate_yard_location(db, trailer)


def assign_trailer_to_door(db: Session, trailer_id: int, door_id: int) -> Trailer:
    with aggregate_locks(trailer_key(trailer_id), door_key(door_id)), unit_of_work(db):
        trailer = lookup_service.get_trailer(db, trailer_id, for_update=True)
        door = lookup_service.get_door(db, door_id, for_update=True)
        _require_available(door, "Door", trailer)

        release_slot(db, trailer)
        door.status = SlotStatus.OCCUPIED.value
        trailer.door_id = door.id
        trailer.door = door
        trailer_service.apply_at_door(trailer, trailer_service.ProcessContext.DOOR_ASSIGNMENT)

        logger.info(f"Trailer {trailer.trailer_number} assigned to door {door.code}")
    return trailer


def assign_trailer_to_yard_location(db: Session, trailer_id: int, yard_location_id: int) -> Trailer:
    with aggregate_locks(trailer_key(trailer_id), yard_location_key(yard_location_id)), unit_of_work(db):
        trailer = lookup_service.get_trailer(db, trailer_id, for_update=True)
        location = lookup_service.get_yard_location(db, yard_location_id, for_update=True)
        _require_available(location, "Yard location", trailer)

        release_slot(db, trailer)
        location.status = SlotStatus.OCCUPIED.value
        trailer.yard_location_id = location.id
        trailer.yard_location = location

        logger.info(f"Trailer {trailer.trailer_number} assigned to yard location {location.code}")
    return trailer


def _occupant(db: Session, column, slot_id) -> Optional[Trailer]:
    return db.query(Trailer).filter(column == slot_id).first()


def get_door_occupant(db: Session, door_id: int) -> Optional[Trailer]:
    lookup_service.get_door(db, door_id)
    return _occupant(db, Trailer.door_id, door_id)


def get_yard_location_occupant(db: Session, location_id: int) -> Optional[Trailer]:
    lookup_service.get_yard_location(db, location_id)
    return _occupant(db, Trailer.yard_location_id, location_id)


def _set_out_of_service(db: Session, slot, occupant_column, label: str, out_of_service: bool):
    if out_of_service:
        if slot.status == SlotStatus.OCCUPIED.value:
            occupant = _occupant(db, occupant_column, slot.id)
            raise InvalidOperationError(
                f"{label} {slot.name} (ID: {slot.id}) is occupied by trailer "
                f"{occupant.trailer_number if occupant else '?'} and cannot be taken out of service",
                slot_id=slot.id, status=slot.status,
                trailer_id=occupant.id if occupant else None,
            )
        slot.status = SlotStatus.OUT_OF_SERVICE.value
    elif slot.status == SlotStatus.OUT_OF_SERVICE.value:
        slot.status = SlotStatus.AVAILABLE.value
    logger.info(f"{label} {slot.code} status → {slot.status}")
    return slot


def set_door_out_of_service(db: Session, door_id: int, out_of_service: bool = True) -> Door:
    with aggregate_locks(door_key(door_id)), unit_of_work(db):
        door = lookup_service.get_door(db, door_id, for_update=True)
        _set_out_of_service(db, door, Trailer.door_id, "Door", out_of_service)
    return door


def set_yard_location_out_of_service(db: Session, location_id: int, out_of_service: bool = True) -> YardLocation:
    with aggregate_locks(yard_location_key(location_id)), unit_of_work(db):
        location = lookup_service.get_yard_location(db, location_id, for_update=True)
        _set_out_of_service(db, location, Trailer.yard_location_id, "Yard location", out_of_service)
    return location
