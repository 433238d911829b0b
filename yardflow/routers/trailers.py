# yardflow/routers/trailers.py
"""Trailer state, slot assignment and detention."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from yardflow.database import get_db
from yardflow.models.enums import ProcessStatus
from yardflow.schemas.detention import DetentionChargeOut
from yardflow.schemas.trailer import DoorAssignRequest, StatusUpdateRequest, TrailerOut, YardAssignRequest
from yardflow.services import detention_service, slot_service, trailer_service

router = APIRouter()


@router.get("/trailers", response_model=list[TrailerOut], summary="Trailers in a process status")
def by_status(process_status: ProcessStatus, db: Session = Depends(get_db)):
    return trailer_service.get_trailers_by_status(db, process_status)


@router.get("/trailers/by-number/{trailer_number}", response_model=TrailerOut, summary="Look up a trailer number")
def by_number(trailer_number: str, db: Session = Depends(get_db)):
    return trailer_service.get_trailer_by_number(db, trailer_number)


@router.get("/sites/{site_id}/trailers", response_model=list[TrailerOut], summary="Trailers at a site")
def by_site(site_id: int, db: Session = Depends(get_db)):
    return trailer_service.get_trailers_by_site(db, site_id)


@router.get("/trailers/{trailer_id}", response_model=TrailerOut, summary="Get a trailer")
def get_trailer(trailer_id: int, db: Session = Depends(get_db)):
    return trailer_service.get_trailer(db, trailer_id)


@router.put("/trailers/{trailer_id}/status", response_model=TrailerOut, summary="Override process status")
def update_status(trailer_id: int, body: StatusUpdateRequest, db: Session = Depends(get_db)):
    return trailer_service.update_trailer_status(db, trailer_id, body.process_status)


@router.put("/trailers/{trailer_id}/door", response_model=TrailerOut, summary="Put a trailer at a door")
def assign_door(trailer_id: int, body: DoorAssignRequest, db: Session = Depends(get_db)):
    return slot_service.assign_trailer_to_door(db, trailer_id, body.door_id)


@router.put("/trailers/{trailer_id}/yard-location", response_model=TrailerOut,
            summary="Park a trailer in a yard location")
def assign_yard_location(trailer_id: int, body: YardAssignRequest, db: Session = Depends(get_db)):
    return slot_service.assign_trailer_to_yard_location(db, trailer_id, body.yard_location_id)


@router.post("/trailers/{trailer_id}/detention", response_model=TrailerOut,
             summary="Re-evaluate detention for a trailer")
def update_detention(trailer_id: int, db: Session = Depends(get_db)):
    return detention_service.update_detention_status(db, trailer_id)


@router.get("/trailers/{trailer_id}/detention-charge", response_model=DetentionChargeOut,
            summary="Current detention charge")
def detention_charge(trailer_id: int, db: Session = Depends(get_db)):
    return detention_service.get_detention_charge(db, trailer_id)
