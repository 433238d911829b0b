"""
Detention Accrual Engine.

A trailer whose carrier has detention enabled goes into detention once it
has been on site longer than the carrier's free time. Detention start is
check_in_time + free_time_hours, never the moment the check happened to run,
so re-running update_detention_status() at any later time gives the same
result.

Charges are computed on read from the carrier's billing settings; nothing
is accrued in the database.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from yardflow.config import settings
from yardflow.database import unit_of_work
from yardflow.models.carrier import Carrier
from yardflow.services import lookup_service
from yardflow.services.locks import aggregate_locks, trailer_key
from yardflow.utils.clock import utcnow
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0.00")


@dataclass
class DetentionCharge:
    hours_overdue: int
    intervals: int
    charge_per_interval: Decimal
    total_charge: Decimal        # before any cap
    charge_amount: Decimal       # what is billed
    max_charge_exceeded: bool = False
    carrier_id: Optional[int] = None
    trailer_id: Optional[int] = None


def normalize_detention_settings(carrier: Carrier) -> Carrier:
    """Fill in free time and charge interval for detention-enabled carriers."""
    if not carrier.detention_enabled:
        return carrier
    if carrier.free_time_hours is None or carrier.free_time_hours < 0:
        carrier.free_time_hours = settings.DEFAULT_FREE_TIME_HOURS
    if carrier.charge_interval_hours is None or carrier.charge_interval_hours <= 0:
        carrier.charge_interval_hours = settings.DEFAULT_CHARGE_INTERVAL_HOURS
    return carrier


def _whole_hours(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 3600)


def update_detention_status(db: Session, trailer_id: int, now: Optional[datetime] = None):
    """
    Start detention for the trailer if its free time has run out.
    No-op when the carrier is missing or has detention disabled, when the
    trailer has no check-in time, or when detention is already active.
    """
    now = now or utcnow()
    with aggregate_locks(trailer_key(trailer_id)), unit_of_work(db):
        trailer = lookup_service.get_trailer(db, trailer_id, for_update=True)
        carrier = trailer.carrier
        if carrier is None or not carrier.detention_enabled:
            return trailer
        if trailer.check_in_time is None or trailer.detention_active:
            return trailer

        normalize_detention_settings(carrier)
        hours_in_yard = _whole_hours(trailer.check_in_time, now)
        if hours_in_yard > carrier.free_time_hours:
            trailer.detention_start_time = trailer.check_in_time + timedelta(hours=carrier.free_time_hours)
            trailer.detention_active = True
            logger.info(f"Detention started for trailer {trailer.trailer_number} "
                        f"(carrier {carrier.code}) at {trailer.detention_start_time}, "
                        f"{hours_in_yard}h in yard")
    return trailer


def calculate_detention_charge(
    hours_overdue: int,
    charge_interval_hours: int,
    charge_per_interval,
    max_charge_enabled: bool = False,
    max_charge=None,
) -> DetentionCharge:
    """intervals = floor(hours_overdue / interval); charge = intervals × rate, optionally capped."""
    hours_overdue = max(int(hours_overdue or 0), 0)
    interval = charge_interval_hours if charge_interval_hours and charge_interval_hours > 0 \
        else settings.DEFAULT_CHARGE_INTERVAL_HOURS
    rate = Decimal(str(charge_per_interval)) if charge_per_interval is not None else ZERO

    intervals = math.floor(hours_overdue / interval)
    total = (rate * intervals).quantize(ZERO)
    amount = total
    exceeded = False
    if max_charge_enabled and max_charge is not None:
        cap = Decimal(str(max_charge)).quantize(ZERO)
        if total > cap:
            amount = cap
            exceeded = True

    return DetentionCharge(
        hours_overdue=hours_overdue,
        intervals=intervals,
        charge_per_interval=rate,
        total_charge=total,
        charge_amount=amount,
        max_charge_exceeded=exceeded,
    )


def get_detention_charge(db: Session, trailer_id: int, now: Optional[datetime] = None) -> DetentionCharge:
    """Current charge for a trailer; zero unless detention is active."""
    now = now or utcnow()
    trailer = lookup_service.get_trailer(db, trailer_id)
    carrier = trailer.carrier

    if carrier is None or not trailer.detention_active or trailer.detention_start_time is None:
        charge = calculate_detention_charge(0, 1, ZERO)
    else:
        hours_overdue = _whole_hours(trailer.detention_start_time, now)
        charge = calculate_detention_charge(
            hours_overdue,
            carrier.charge_interval_hours,
            carrier.charge_per_interval,
            carrier.max_charge_enabled,
            carrier.max_charge,
        )
    charge.trailer_id = trailer.id
    charge.carrier_id = carrier.id if carrier else None
    logger.debug(f"Detention charge for trailer {trailer.trailer_number}: {charge.charge_amount}")
    return charge
