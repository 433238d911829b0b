# yardflow/schemas/trailer.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from yardflow.models.enums import ProcessStatus


class TrailerOut(BaseModel):
    id: int
    trailer_number: str
    load_status: Optional[str]
    process_status: Optional[str]
    condition: Optional[str]
    refrigeration_status: Optional[str]
    carrier_id: Optional[int]
    door_id: Optional[int]
    yard_location_id: Optional[int]
    current_appointment_id: Optional[int]
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    detention_start_time: Optional[datetime]
    detention_active: bool

    class Config:
        from_attributes = True


class StatusUpdateRequest(BaseModel):
    process_status: ProcessStatus


class DoorAssignRequest(BaseModel):
    door_id: int


class YardAssignRequest(BaseModel):
    yard_location_id: int


class OutOfServiceRequest(BaseModel):
    out_of_service: bool = True


class SlotOut(BaseModel):
    id: int
    code: str
    name: str
    status: str

    class Config:
        from_attributes = True
