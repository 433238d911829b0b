"""
Appointment Lifecycle Manager.

Drives a trailer's gate-to-gate visit:
    SCHEDULED → CHECKED_IN → IN_PROGRESS → COMPLETED
    any non-terminal → CANCELLED

Check-in and check-out each run as one unit of work across the trailer,
its slot and the appointment, under the trailer's aggregate lock.
The trailer ↔ appointment link is Trailer.current_appointment_id; it is
set at check-in and cleared at check-out or when the open visit is cancelled.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from yardflow.database import unit_of_work
from yardflow.exceptions import InvalidOperationError, NotFoundError
from yardflow.models.appointment import Appointment
from yardflow.models.enums import AppointmentStatus, AppointmentType, GateFunction, coerce
from yardflow.models.site import Gate, Site
from yardflow.models.trailer import Trailer
from yardflow.services import lookup_service, slot_service, trailer_service
from yardflow.services.locks import aggregate_locks, trailer_key
from yardflow.services.state_machine import ACTIVE_APPOINTMENT_STATUSES, validate_transition
from yardflow.utils.clock import to_naive_utc, utcnow, validate_date_range
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)

CHECK_IN_FUNCTIONS = {GateFunction.CHECK_IN.value, GateFunction.CHECK_IN_OUT.value}
CHECK_OUT_FUNCTIONS = {GateFunction.CHECK_OUT.value, GateFunction.CHECK_IN_OUT.value}


def _trailer_number_key(trailer_number: str):
    return ("trailer_number", trailer_number)


def _append_comment(existing: Optional[str], label: str, text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return existing
    entry = f"{label}: {text}" if label else text
    return f"{existing}\n{entry}" if existing else entry


def _require(value, message: str, field: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidOperationError(message, field=field)


def _parse_type(appointment_type) -> str:
    if appointment_type is None:
        raise InvalidOperationError("Appointment type is required", field="appointment_type")
    return coerce(AppointmentType, appointment_type)


# ── Validation ───────────────────────────────────────────────────────────────

def validate_gate_for_check_in(gate: Gate, site: Site) -> None:
    if gate.site_id != site.id:
        raise InvalidOperationError(
            f"Gate {gate.name} (ID: {gate.id}) does not belong to site {site.name} (ID: {site.id})",
            gate_id=gate.id, gate_site_id=gate.site_id, site_id=site.id,
        )
    if gate.function not in CHECK_IN_FUNCTIONS:
        raise InvalidOperationError(
            f"Gate {gate.name} (ID: {gate.id}) does not support check-in operations "
            f"(function: {gate.function})",
            gate_id=gate.id, function=gate.function, expected=sorted(CHECK_IN_FUNCTIONS),
        )


def validate_gate_for_check_out(gate: Gate, site: Site, appointment: Appointment) -> None:
    if appointment.site_id != site.id:
        raise InvalidOperationError(
            f"Site mismatch: trailer was checked in at site ID {appointment.site_id}, "
            f"but checkout was attempted at site {site.name} (ID: {site.id})",
            appointment_id=appointment.id, appointment_site_id=appointment.site_id, site_id=site.id,
        )
    if gate.site_id != appointment.site_id:
        raise InvalidOperationError(
            f"Gate {gate.name} (ID: {gate.id}) belongs to site ID {gate.site_id}, "
            f"but trailer is at site ID {appointment.site_id}",
            gate_id=gate.id, gate_site_id=gate.site_id, appointment_site_id=appointment.site_id,
        )
    if gate.function not in CHECK_OUT_FUNCTIONS:
        raise InvalidOperationError(
            f"Gate {gate.name} (ID: {gate.id}) does not support check-out operations "
            f"(function: {gate.function})",
            gate_id=gate.id, function=gate.function, expected=sorted(CHECK_OUT_FUNCTIONS),
        )


def validate_carrier_eligibility(carrier, site: Site) -> None:
    if not carrier.is_eligible_for(site.id):
        raise InvalidOperationError(
            f"Carrier {carrier.name} (ID: {carrier.id}) is not eligible for site "
            f"{site.name} (ID: {site.id})",
            carrier_id=carrier.id, site_id=site.id,
        )


# ── Check-in / check-out ─────────────────────────────────────────────────────

def process_check_in(
    db: Session,
    site_id: int,
    gate_id: int,
    trailer_number: str,
    carrier_id: int,
    load_status,
    condition=None,
    refrigeration_status=None,
    appointment_type=AppointmentType.UNDEFINED,
    scheduled_time: Optional[datetime] = None,
    driver_info: Optional[str] = None,
    guard_comments: Optional[str] = None,
    appointment_id: Optional[int] = None,
) -> Appointment:
    """
    Admit a trailer through a gate. Creates the trailer on first visit.
    Pass appointment_id to check in against a previously SCHEDULED appointment
    instead of creating a new one. The booked type and scheduled time are kept;
    an explicit appointment_type other than the booked one is rejected.
    """
    _require(site_id, "Site ID is required for check-in", "site_id")
    _require(gate_id, "Gate ID is required for check-in", "gate_id")
    _require(trailer_number, "Trailer number is required for check-in", "trailer_number")
    _require(carrier_id, "Carrier ID is required for check-in", "carrier_id")
    _require(load_status, "Load status is required for check-in", "load_status")
    trailer_number = trailer_number.strip()
    type_value = _parse_type(appointment_type)
    scheduled_time = to_naive_utc(scheduled_time)
    logger.info(f"Processing check-in for trailer {trailer_number} at site {site_id}, gate {gate_id}")

    existing = lookup_service.find_trailer_by_number(db, trailer_number)
    keys = [_trailer_number_key(trailer_number), trailer_key(existing.id) if existing else None]

    with aggregate_locks(*keys), unit_of_work(db):
        site = lookup_service.get_site(db, site_id)
        gate = lookup_service.get_gate(db, gate_id)
        carrier = lookup_service.get_carrier(db, carrier_id)
        validate_gate_for_check_in(gate, site)
        validate_carrier_eligibility(carrier, site)

        trailer = lookup_service.find_trailer_by_number(db, trailer_number, for_update=True)
        if trailer is not None and trailer.current_appointment_id is not None:
            raise InvalidOperationError(
                f"Trailer {trailer_number} is already checked in "
                f"(appointment ID: {trailer.current_appointment_id})",
                trailer_id=trailer.id, appointment_id=trailer.current_appointment_id,
            )

        now = utcnow()
        if appointment_id is not None:
            appointment = _claim_scheduled(db, appointment_id, site, trailer, type_value)
        else:
            appointment = Appointment(site_id=site.id, type=type_value, scheduled_time=scheduled_time)
            db.add(appointment)

        if trailer is None:
            logger.debug(f"Creating new trailer {trailer_number}")
            trailer = Trailer(trailer_number=trailer_number, detention_active=False)
            db.add(trailer)
        trailer_service.apply_check_in(trailer, carrier, load_status, condition, refrigeration_status, now=now)

        appointment.trailer = trailer
        appointment.site_id = site.id
        appointment.check_in_gate_id = gate.id
        appointment.actual_arrival_time = now
        if driver_info:
            appointment.driver_info = driver_info
        appointment.guard_comments = _append_comment(appointment.guard_comments, "", guard_comments)
        validate_transition(appointment.id or "(new)", appointment.status or AppointmentStatus.SCHEDULED,
                            AppointmentStatus.CHECKED_IN)
        appointment.status = AppointmentStatus.CHECKED_IN.value

        db.flush()
        trailer.current_appointment_id = appointment.id

    logger.info(f"Check-in completed for trailer {trailer.trailer_number}, appointment ID: {appointment.id}")
    return appointment


def _claim_scheduled(db: Session, appointment_id: int, site: Site, trailer: Optional[Trailer],
                     type_value: str) -> Appointment:
    appointment = lookup_service.get_appointment(db, appointment_id, for_update=True)
    if appointment.site_id != site.id:
        raise InvalidOperationError(
            f"Appointment {appointment.id} is booked at site ID {appointment.site_id}, "
            f"not at site {site.name} (ID: {site.id})",
            appointment_id=appointment.id, appointment_site_id=appointment.site_id, site_id=site.id,
        )
    if appointment.trailer_id is not None and (trailer is None or trailer.id != appointment.trailer_id):
        raise InvalidOperationError(
            f"Appointment {appointment.id} is booked for trailer ID {appointment.trailer_id}",
            appointment_id=appointment.id, booked_trailer_id=appointment.trailer_id,
            trailer_id=trailer.id if trailer else None,
        )
    if type_value != AppointmentType.UNDEFINED.value and type_value != appointment.type:
        raise InvalidOperationError(
            f"Appointment {appointment.id} is booked as {appointment.type}, not {type_value}",
            appointment_id=appointment.id, booked_type=appointment.type, requested_type=type_value,
        )
    return appointment


def process_check_out(
    db: Session,
    site_id: int,
    gate_id: int,
    trailer_id: int,
    condition,
    load_status,
    guard_comments: Optional[str] = None,
    driver_info: Optional[str] = None,
) -> Appointment:
    """Release a trailer through a gate, freeing its slot and closing its visit."""
    _require(trailer_id, "Trailer ID is required for check-out", "trailer_id")
    _require(gate_id, "Gate ID is required for check-out", "gate_id")
    _require(site_id, "Site ID is required for check-out", "site_id")
    _require(load_status, "Load status is required for check-out", "load_status")
    _require(condition, "Trailer condition is required for check-out", "condition")
    logger.info(f"Processing check-out for trailer ID {trailer_id} at site {site_id}, gate {gate_id}")

    trailer = lookup_service.get_trailer(db, trailer_id)
    with aggregate_locks(trailer_key(trailer.id), _trailer_number_key(trailer.trailer_number)), unit_of_work(db):
        site = lookup_service.get_site(db, site_id)
        trailer = lookup_service.get_trailer(db, trailer_id, for_update=True)
        gate = lookup_service.get_gate(db, gate_id)
        appointment = lookup_service.get_current_appointment(db, trailer)
        if appointment is None:
            raise NotFoundError(
                "Appointment", trailer.id, field="trailer_id",
                message=f"No active appointment found for trailer {trailer.trailer_number} (ID: {trailer.id})",
            )
        validate_gate_for_check_out(gate, site, appointment)
        validate_transition(appointment.id, appointment.status, AppointmentStatus.COMPLETED)

        now = utcnow()
        trailer_service.apply_check_out(trailer, condition, load_status, now=now)
        slot_service.release_slot(db, trailer)

        appointment.status = AppointmentStatus.COMPLETED.value
        appointment.completion_time = now
        appointment.check_out_gate_id = gate.id
        if driver_info:
            appointment.driver_info = driver_info
        appointment.guard_comments = _append_comment(
            appointment.guard_comments, "Check-Out Comments", guard_comments
        )
        trailer.current_appointment_id = None

    logger.info(f"Check-out completed for trailer {trailer.trailer_number}, appointment ID: {appointment.id}")
    return appointment


# ── Other transitions ────────────────────────────────────────────────────────

def _linked_trailer_keys(db: Session, appointment_id: int):
    appointment = lookup_service.get_appointment(db, appointment_id)
    return [trailer_key(appointment.trailer_id)] if appointment.trailer_id else []


def cancel_appointment(db: Session, appointment_id: int, reason: Optional[str] = None) -> Appointment:
    logger.info(f"Cancelling appointment ID {appointment_id}")
    with aggregate_locks(*_linked_trailer_keys(db, appointment_id)), unit_of_work(db):
        appointment = lookup_service.get_appointment(db, appointment_id, for_update=True)
        if appointment.status == AppointmentStatus.COMPLETED.value:
            raise InvalidOperationError(
                f"Cannot cancel a completed appointment (ID: {appointment.id})",
                appointment_id=appointment.id, status=appointment.status,
            )
        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise InvalidOperationError(
                f"Appointment {appointment.id} is already cancelled",
                appointment_id=appointment.id, status=appointment.status,
            )
        validate_transition(appointment.id, appointment.status, AppointmentStatus.CANCELLED)

        appointment.status = AppointmentStatus.CANCELLED.value
        appointment.guard_comments = _append_comment(appointment.guard_comments, "Cancellation Reason", reason)

        if appointment.trailer_id is not None:
            trailer = lookup_service.get_trailer(db, appointment.trailer_id, for_update=True)
            if trailer.current_appointment_id == appointment.id:
                trailer.current_appointment_id = None
                logger.info(f"Detached trailer {trailer.trailer_number} from cancelled appointment {appointment.id}")

    logger.info(f"Cancelled appointment ID {appointment_id}")
    return appointment


def start_processing_appointment(db: Session, appointment_id: int) -> Appointment:
    logger.info(f"Starting processing for appointment ID {appointment_id}")
    with aggregate_locks(*_linked_trailer_keys(db, appointment_id)), unit_of_work(db):
        appointment = lookup_service.get_appointment(db, appointment_id, for_update=True)
        if appointment.status != AppointmentStatus.CHECKED_IN.value:
            raise InvalidOperationError(
                f"Cannot start processing appointment {appointment.id} with status {appointment.status}; "
                f"appointment must be in CHECKED_IN status",
                appointment_id=appointment.id, status=appointment.status,
                expected_status=AppointmentStatus.CHECKED_IN.value,
            )
        appointment.status = AppointmentStatus.IN_PROGRESS.value
    return appointment


def schedule_appointment(
    db: Session,
    site_id: int,
    scheduled_time: datetime,
    appointment_type,
    trailer_id: Optional[int] = None,
    trailer_number: Optional[str] = None,
    driver_info: Optional[str] = None,
    guard_comments: Optional[str] = None,
) -> Appointment:
    """Book a future visit. No trailer is required yet."""
    _require(site_id, "Site ID is required for scheduling an appointment", "site_id")
    _require(scheduled_time, "Scheduled time is required", "scheduled_time")
    scheduled_time = to_naive_utc(scheduled_time)
    if scheduled_time < utcnow():
        raise InvalidOperationError(
            f"Scheduled time cannot be in the past: {scheduled_time.isoformat()}",
            field="scheduled_time", value=scheduled_time.isoformat(),
        )
    type_value = _parse_type(appointment_type)
    logger.info(f"Scheduling {type_value} appointment at site {site_id} for {scheduled_time}")

    with unit_of_work(db):
        site = lookup_service.get_site(db, site_id)
        trailer = None
        if trailer_id is not None:
            trailer = lookup_service.get_trailer(db, trailer_id)
        elif trailer_number:
            trailer = lookup_service.find_trailer_by_number(db, trailer_number.strip())

        appointment = Appointment(
            site_id=site.id,
            trailer_id=trailer.id if trailer else None,
            type=type_value,
            status=AppointmentStatus.SCHEDULED.value,
            scheduled_time=scheduled_time,
            driver_info=driver_info,
            guard_comments=guard_comments,
        )
        db.add(appointment)

    logger.info(f"Scheduled appointment ID {appointment.id}")
    return appointment


def add_comments(db: Session, appointment_id: int, text: str) -> Appointment:
    """Append guard comments. Allowed in every status, terminal ones included."""
    _require(text, "Comments cannot be empty", "text")
    with unit_of_work(db):
        appointment = lookup_service.get_appointment(db, appointment_id, for_update=True)
        appointment.guard_comments = _append_comment(appointment.guard_comments, "", text)
    return appointment


# ── Queries ──────────────────────────────────────────────────────────────────

def get_appointment(db: Session, appointment_id: int) -> Appointment:
    return lookup_service.get_appointment(db, appointment_id)


def get_active_appointments(db: Session, site_id: int) -> List[Appointment]:
    logger.debug(f"Retrieving active appointments for site ID {site_id}")
    lookup_service.get_site(db, site_id)
    return (
        db.query(Appointment)
        .filter(
            Appointment.site_id == site_id,
            Appointment.status.in_([s.value for s in ACTIVE_APPOINTMENT_STATUSES]),
        )
        .order_by(Appointment.actual_arrival_time)
        .all()
    )


def get_appointments_by_site(db: Session, site_id: int) -> List[Appointment]:
    lookup_service.get_site(db, site_id)
    return db.query(Appointment).filter(Appointment.site_id == site_id).order_by(Appointment.id).all()


def get_appointments_by_trailer(db: Session, trailer_id: int) -> List[Appointment]:
    lookup_service.get_trailer(db, trailer_id)
    return db.query(Appointment).filter(Appointment.trailer_id == trailer_id).order_by(Appointment.id).all()


def get_appointments_by_gate(db: Session, gate_id: int) -> List[Appointment]:
    lookup_service.get_gate(db, gate_id)
    return (
        db.query(Appointment)
        .filter(or_(Appointment.check_in_gate_id == gate_id, Appointment.check_out_gate_id == gate_id))
        .order_by(Appointment.id)
        .all()
    )


def get_appointments_by_date_range(db: Session, start: datetime, end: datetime) -> List[Appointment]:
    """SCHEDULED appointments whose scheduled time falls within [start, end]."""
    start, end = validate_date_range(start, end)
    return (
        db.query(Appointment)
        .filter(
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.scheduled_time >= start,
            Appointment.scheduled_time <= end,
        )
        .order_by(Appointment.scheduled_time)
        .all()
    )
