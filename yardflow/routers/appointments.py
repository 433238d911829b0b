# yardflow/routers/appointments.py
"""Gate check-in / check-out and the appointment lifecycle."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from yardflow.database import get_db
from yardflow.schemas.appointment import (
    AppointmentOut, CancelRequest, CheckInRequest, CheckOutRequest, CommentRequest, ScheduleRequest,
)
from yardflow.services import appointment_service

router = APIRouter()


@router.post("/appointments/check-in", response_model=AppointmentOut, summary="Check a trailer in at a gate")
def check_in(body: CheckInRequest, db: Session = Depends(get_db)):
    """Creates the trailer on its first visit. Pass appointment_id to claim a scheduled appointment."""
    return appointment_service.process_check_in(db, **body.model_dump())


@router.post("/appointments/check-out", response_model=AppointmentOut, summary="Check a trailer out at a gate")
def check_out(body: CheckOutRequest, db: Session = Depends(get_db)):
    return appointment_service.process_check_out(db, **body.model_dump())


@router.post("/appointments", response_model=AppointmentOut, summary="Schedule a future appointment")
def schedule(body: ScheduleRequest, db: Session = Depends(get_db)):
    return appointment_service.schedule_appointment(db, **body.model_dump())


@router.put("/appointments/{appointment_id}/cancel", response_model=AppointmentOut, summary="Cancel an appointment")
def cancel(appointment_id: int, body: CancelRequest = None, db: Session = Depends(get_db)):
    reason = body.reason if body else None
    return appointment_service.cancel_appointment(db, appointment_id, reason)


@router.put("/appointments/{appointment_id}/start", response_model=AppointmentOut,
            summary="Start processing a checked-in appointment")
def start_processing(appointment_id: int, db: Session = Depends(get_db)):
    return appointment_service.start_processing_appointment(db, appointment_id)


@router.post("/appointments/{appointment_id}/comments", response_model=AppointmentOut,
             summary="Append guard comments")
def add_comments(appointment_id: int, body: CommentRequest, db: Session = Depends(get_db)):
    return appointment_service.add_comments(db, appointment_id, body.text)


@router.get("/appointments/scheduled", response_model=list[AppointmentOut],
            summary="Scheduled appointments within a date range")
def by_date_range(start: datetime = None, end: datetime = None, db: Session = Depends(get_db)):
    return appointment_service.get_appointments_by_date_range(db, start, end)


@router.get("/appointments/{appointment_id}", response_model=AppointmentOut, summary="Get an appointment")
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return appointment_service.get_appointment(db, appointment_id)


@router.get("/sites/{site_id}/appointments", response_model=list[AppointmentOut],
            summary="Appointments at a site")
def by_site(site_id: int, active_only: bool = False, db: Session = Depends(get_db)):
    """active_only=true returns CHECKED_IN and IN_PROGRESS visits, oldest arrival first."""
    if active_only:
        return appointment_service.get_active_appointments(db, site_id)
    return appointment_service.get_appointments_by_site(db, site_id)


@router.get("/trailers/{trailer_id}/appointments", response_model=list[AppointmentOut],
            summary="Visit history of a trailer")
def by_trailer(trailer_id: int, db: Session = Depends(get_db)):
    return appointment_service.get_appointments_by_trailer(db, trailer_id)


@router.get("/gates/{gate_id}/appointments", response_model=list[AppointmentOut],
            summary="Appointments that passed through a gate")
def by_gate(gate_id: int, db: Session = Depends(get_db)):
    return appointment_service.get_appointments_by_gate(db, gate_id)
