# yardflow/schemas/move_request.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from yardflow.models.enums import LocationType, MoveType


class MoveRequestCreate(BaseModel):
    trailer_id: int
    move_type: MoveType
    source_location_type: LocationType
    source_location_id: int
    destination_location_type: LocationType
    destination_location_id: int
    requested_by_id: int
    notes: Optional[str] = None


class AssignRequest(BaseModel):
    spotter_id: int


class NotesRequest(BaseModel):
    notes: str


class MoveRequestOut(BaseModel):
    id: int
    site_id: int
    trailer_id: int
    move_type: str
    status: str
    source_location_type: str
    source_location_id: int
    destination_location_type: str
    destination_location_id: int
    assigned_spotter_id: Optional[int]
    requested_by_id: Optional[int]
    request_time: datetime
    assigned_time: Optional[datetime]
    start_time: Optional[datetime]
    completion_time: Optional[datetime]
    notes: Optional[str]

    class Config:
        from_attributes = True
