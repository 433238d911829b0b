# tests/test_detention_service.py
"""Detention start detection and charge calculation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from yardflow.services import appointment_service, detention_service
from yardflow.services.detention_service import calculate_detention_charge, normalize_detention_settings


class TestUpdateDetentionStatus:
    def test_starts_after_free_time(self, db, check_in):
        trailer = check_in().trailer
        t0 = trailer.check_in_time

        detention_service.update_detention_status(db, trailer.id, now=t0 + timedelta(hours=25))
        db.refresh(trailer)
        assert trailer.detention_active is True
        assert trailer.detention_start_time == t0 + timedelta(hours=24)

    def test_rerun_later_does_not_move_start(self, db, check_in):
        trailer = check_in().trailer
        t0 = trailer.check_in_time

        detention_service.update_detention_status(db, trailer.id, now=t0 + timedelta(hours=25))
        detention_service.update_detention_status(db, trailer.id, now=t0 + timedelta(hours=30))
        db.refresh(trailer)
        assert trailer.detention_active is True
        assert trailer.detention_start_time == t0 + timedelta(hours=24)

    @pytest.mark.parametrize("hours", [0, 23, 24])
    def test_within_free_time(self, db, check_in, hours):
        trailer = check_in().trailer
        detention_service.update_detention_status(
            db, trailer.id, now=trailer.check_in_time + timedelta(hours=hours, minutes=59),
        )
        db.refresh(trailer)
        assert trailer.detention_active is False
        assert trailer.detention_start_time is None

    def test_carrier_without_detention(self, db, yard, check_in):
        trailer = check_in(carrier=yard.plain_carrier).trailer
        detention_service.update_detention_status(
            db, trailer.id, now=trailer.check_in_time + timedelta(days=5),
        )
        db.refresh(trailer)
        assert trailer.detention_active is False

    def test_missing_free_time_defaults_to_a_day(self, db, yard, check_in):
        yard.carrier.free_time_hours = None
        db.commit()
        trailer = check_in().trailer
        t0 = trailer.check_in_time
        detention_service.update_detention_status(db, trailer.id, now=t0 + timedelta(hours=26))
        db.refresh(trailer)
        assert trailer.detention_start_time == t0 + timedelta(hours=24)

    def test_new_visit_resets_detention(self, db, yard, check_in):
        trailer = check_in(trailer_number="DET").trailer
        detention_service.update_detention_status(db, trailer.id, now=trailer.check_in_time + timedelta(days=2))
        appointment_service.process_check_out(
            db, site_id=yard.site.id, gate_id=yard.gate.id, trailer_id=trailer.id,
            condition="CLEAN", load_status="EMPTY",
        )
        assert trailer.detention_active is False

        again = check_in(trailer_number="DET").trailer
        assert again.id == trailer.id
        assert again.detention_active is False
        assert again.detention_start_time is None


class TestCalculateCharge:
    def test_whole_intervals_only(self):
        charge = calculate_detention_charge(5, 2, Decimal("50.00"))
        assert charge.intervals == 2
        assert charge.charge_amount == Decimal("100.00")
        assert charge.max_charge_exceeded is False

    def test_capped(self):
        charge = calculate_detention_charge(30, 1, Decimal("50.00"), True, Decimal("500.00"))
        assert charge.total_charge == Decimal("1500.00")
        assert charge.charge_amount == Decimal("500.00")
        assert charge.max_charge_exceeded is True

    def test_cap_disabled(self):
        charge = calculate_detention_charge(30, 1, Decimal("50.00"), False, Decimal("500.00"))
        assert charge.charge_amount == Decimal("1500.00")
        assert charge.max_charge_exceeded is False

    def test_no_rate_or_no_hours(self):
        assert calculate_detention_charge(10, 1, None).charge_amount == Decimal("0.00")
        assert calculate_detention_charge(0, 1, Decimal("50")).intervals == 0

    def test_bad_interval_falls_back_to_default(self):
        assert calculate_detention_charge(3, 0, Decimal("10")).charge_amount == Decimal("30.00")


class TestGetDetentionCharge:
    def test_zero_when_not_in_detention(self, db, check_in):
        trailer = check_in().trailer
        charge = detention_service.get_detention_charge(db, trailer.id)
        assert charge.charge_amount == Decimal("0.00")
        assert charge.trailer_id == trailer.id

    def test_accrues_from_detention_start(self, db, yard, check_in):
        trailer = check_in().trailer
        t0 = trailer.check_in_time
        detention_service.update_detention_status(db, trailer.id, now=t0 + timedelta(hours=25))

        charge = detention_service.get_detention_charge(db, trailer.id, now=t0 + timedelta(hours=27, minutes=30))
        assert charge.hours_overdue == 3
        assert charge.charge_amount == Decimal("150.00")
        assert charge.carrier_id == yard.carrier.id


class TestNormalizeSettings:
    def test_defaults_applied(self):
        carrier = MagicMock(detention_enabled=True, free_time_hours=None, charge_interval_hours=0)
        normalize_detention_settings(carrier)
        assert carrier.free_time_hours == 24
        assert carrier.charge_interval_hours == 1

    def test_negative_free_time(self):
        carrier = MagicMock(detention_enabled=True, free_time_hours=-4, charge_interval_hours=2)
        normalize_detention_settings(carrier)
        assert carrier.free_time_hours == 24
        assert carrier.charge_interval_hours == 2

    def test_disabled_carrier_untouched(self):
        carrier = MagicMock(detention_enabled=False, free_time_hours=None, charge_interval_hours=None)
        normalize_detention_settings(carrier)
        assert carrier.free_time_hours is None
