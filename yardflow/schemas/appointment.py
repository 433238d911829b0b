# yardflow/schemas/appointment.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from yardflow.models.enums import (
    AppointmentType, LoadStatus, RefrigerationStatus, TrailerCondition,
)


class CheckInRequest(BaseModel):
    site_id: int
    gate_id: int
    trailer_number: str
    carrier_id: int
    load_status: LoadStatus
    condition: Optional[TrailerCondition] = None
    refrigeration_status: Optional[RefrigerationStatus] = None
    appointment_type: AppointmentType = AppointmentType.UNDEFINED
    scheduled_time: Optional[datetime] = None
    driver_info: Optional[str] = None
    guard_comments: Optional[str] = None
    appointment_id: Optional[int] = None     # check in against a SCHEDULED appointment


class CheckOutRequest(BaseModel):
    site_id: int
    gate_id: int
    trailer_id: int
    condition: TrailerCondition
    load_status: LoadStatus
    guard_comments: Optional[str] = None
    driver_info: Optional[str] = None


class ScheduleRequest(BaseModel):
    site_id: int
    scheduled_time: datetime
    appointment_type: AppointmentType
    trailer_id: Optional[int] = None
    trailer_number: Optional[str] = None
    driver_info: Optional[str] = None
    guard_comments: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class CommentRequest(BaseModel):
    text: str


class AppointmentOut(BaseModel):
    id: int
    site_id: int
    trailer_id: Optional[int]
    check_in_gate_id: Optional[int]
    check_out_gate_id: Optional[int]
    type: str
    status: str
    scheduled_time: Optional[datetime]
    actual_arrival_time: Optional[datetime]
    completion_time: Optional[datetime]
    driver_info: Optional[str]
    guard_comments: Optional[str]

    class Config:
        from_attributes = True
