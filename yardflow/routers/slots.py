# yardflow/routers/slots.py
"""Door and yard location occupancy."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from yardflow.database import get_db
from yardflow.schemas.trailer import OutOfServiceRequest, SlotOut, TrailerOut
from yardflow.services import slot_service
from typing import Optional

router = APIRouter()


@router.get("/doors/{door_id}/occupant", response_model=Optional[TrailerOut], summary="Trailer at a door")
def door_occupant(door_id: int, db: Session = Depends(get_db)):
    return slot_service.get_door_occupant(db, door_id)


@router.get("/yard-locations/{location_id}/occupant", response_model=Optional[TrailerOut],
            summary="Trailer in a yard location")
def yard_location_occupant(location_id: int, db: Session = Depends(get_db)):
    return slot_service.get_yard_location_occupant(db, location_id)


@router.put("/doors/{door_id}/out-of-service", response_model=SlotOut, summary="Take a door out of service")
def door_out_of_service(door_id: int, body: OutOfServiceRequest, db: Session = Depends(get_db)):
    """out_of_service=false puts the door back in service."""
    return slot_service.set_door_out_of_service(db, door_id, body.out_of_service)


@router.put("/yard-locations/{location_id}/out-of-service", response_model=SlotOut,
            summary="Take a yard location out of service")
def yard_location_out_of_service(location_id: int, body: OutOfServiceRequest, db: Session = Depends(get_db)):
    return slot_service.set_yard_location_out_of_service(db, location_id, body.out_of_service)
