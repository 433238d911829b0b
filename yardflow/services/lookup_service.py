"""
Lookup helpers for every entity the orchestration services read.
Each get_* raises NotFoundError when the id/code does not resolve.
Pass for_update=True inside a unit of work to take a row lock
(ignored by backends without SELECT ... FOR UPDATE, e.g. SQLite) and to
reload the row over any copy already in the session.
"""

from typing import Optional

from sqlalchemy.orm import Session

from yardflow.exceptions import NotFoundError
from yardflow.models.appointment import Appointment
from yardflow.models.carrier import Carrier
from yardflow.models.move_request import MoveRequest
from yardflow.models.site import Site, Gate
from yardflow.models.slot import Door, YardLocation
from yardflow.models.trailer import Trailer
from yardflow.models.user import User


def _get(db: Session, model, entity_id, label: str, for_update: bool = False):
    q = db.query(model).filter(model.id == entity_id)
    if for_update:
        q = q.with_for_update().populate_existing()
    obj = q.first()
    if obj is None:
        raise NotFoundError(label, entity_id)
    return obj


def get_site(db: Session, site_id: int) -> Site:
    return _get(db, Site, site_id, "Site")


def get_gate(db: Session, gate_id: int) -> Gate:
    return _get(db, Gate, gate_id, "Gate")


def get_carrier(db: Session, carrier_id: int) -> Carrier:
    return _get(db, Carrier, carrier_id, "Carrier")


def get_user(db: Session, user_id: int) -> User:
    return _get(db, User, user_id, "User")


def get_trailer(db: Session, trailer_id: int, for_update: bool = False) -> Trailer:
    return _get(db, Trailer, trailer_id, "Trailer", for_update)


def get_door(db: Session, door_id: int, for_update: bool = False) -> Door:
    return _get(db, Door, door_id, "Door", for_update)


def get_yard_location(db: Session, location_id: int, for_update: bool = False) -> YardLocation:
    return _get(db, YardLocation, location_id, "Yard location", for_update)


def get_appointment(db: Session, appointment_id: int, for_update: bool = False) -> Appointment:
    return _get(db, Appointment, appointment_id, "Appointment", for_update)


def get_move_request(db: Session, move_request_id: int, for_update: bool = False) -> MoveRequest:
    return _get(db, MoveRequest, move_request_id, "Move request", for_update)


def find_trailer_by_number(db: Session, trailer_number: str, for_update: bool = False) -> Optional[Trailer]:
    """Returns None if no trailer carries this number."""
    q = db.query(Trailer).filter(Trailer.trailer_number == trailer_number)
    if for_update:
        q = q.with_for_update().populate_existing()
    return q.first()


def get_trailer_by_number(db: Session, trailer_number: str) -> Trailer:
    trailer = find_trailer_by_number(db, trailer_number)
    if trailer is None:
        raise NotFoundError("Trailer", trailer_number, field="number")
    return trailer


def get_current_appointment(db: Session, trailer: Trailer) -> Optional[Appointment]:
    """The trailer's open visit, or None."""
    if trailer.current_appointment_id is None:
        return None
    return db.query(Appointment).filter(Appointment.id == trailer.current_appointment_id).first()
