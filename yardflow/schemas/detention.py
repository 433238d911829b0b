# yardflow/schemas/detention.py
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional


class DetentionChargeOut(BaseModel):
    trailer_id: Optional[int]
    carrier_id: Optional[int]
    hours_overdue: int
    intervals: int
    charge_per_interval: Decimal
    total_charge: Decimal
    charge_amount: Decimal
    max_charge_exceeded: bool

    class Config:
        from_attributes = True
