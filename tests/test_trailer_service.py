# tests/test_trailer_service.py
"""Process-status derivation, manual overrides and trailer queries."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from yardflow.exceptions import InvalidOperationError, NotFoundError
from yardflow.services import slot_service, trailer_service
from yardflow.services.trailer_service import (
    ProcessContext, apply_at_door, apply_pulled_from_door, derive_process_status, derive_pull_result,
)


class TestDeriveProcessStatus:
    @pytest.mark.parametrize("load,context,expected", [
        ("EMPTY", ProcessContext.CHECK_IN, "LOAD"),
        ("FULL", ProcessContext.CHECK_IN, "UNLOAD"),
        ("PARTIAL", ProcessContext.CHECK_IN, "IN_GATE"),
        ("EMPTY", ProcessContext.CHECK_OUT, "UNLOADED"),
        ("FULL", ProcessContext.CHECK_OUT, "LOADED"),
        ("EMPTY", ProcessContext.DOOR_ASSIGNMENT, "LOADING"),
        ("FULL", ProcessContext.DOOR_ASSIGNMENT, "UNLOADING"),
        ("EMPTY", ProcessContext.SPOTTED_TO_DOOR, "LOADING"),
        ("PARTIAL", ProcessContext.SPOTTED_TO_DOOR, "LOADING"),
        ("FULL", ProcessContext.SPOTTED_TO_DOOR, "UNLOADING"),
    ])
    def test_table(self, load, context, expected):
        assert derive_process_status(load, context) == expected

    def test_partial_keeps_current_where_no_rule(self):
        assert derive_process_status("PARTIAL", ProcessContext.CHECK_OUT, current="IN_GATE") == "IN_GATE"
        assert derive_process_status("PARTIAL", ProcessContext.DOOR_ASSIGNMENT, current="LOAD") == "LOAD"

    def test_no_load_status(self):
        assert derive_process_status(None, ProcessContext.CHECK_IN, current="LOAD") == "LOAD"


class TestPullFromDoor:
    def test_pull_results(self):
        assert derive_pull_result("LOADING") == ("LOADED", "FULL")
        assert derive_pull_result("UNLOADING") == ("UNLOADED", "EMPTY")
        assert derive_pull_result("LOAD") is None
        assert derive_pull_result(None) is None

    def test_apply_pull_updates_both_statuses(self):
        trailer = MagicMock(process_status="UNLOADING", load_status="FULL", trailer_number="T1")
        assert apply_pulled_from_door(trailer) is True
        assert trailer.process_status == "UNLOADED"
        assert trailer.load_status == "EMPTY"

    def test_apply_pull_leaves_other_statuses_alone(self):
        trailer = MagicMock(process_status="IN_GATE", load_status="PARTIAL", trailer_number="T1")
        assert apply_pulled_from_door(trailer) is False
        assert trailer.process_status == "IN_GATE"
        assert trailer.load_status == "PARTIAL"

    def test_apply_at_door(self):
        trailer = MagicMock(process_status="UNLOAD", load_status="FULL", trailer_number="T1")
        apply_at_door(trailer)
        assert trailer.process_status == "UNLOADING"


class TestUpdateTrailerStatus:
    def test_full_trailer_cannot_be_loading(self, db, check_in):
        trailer = check_in(load_status="FULL").trailer
        with pytest.raises(InvalidOperationError, match="FULL"):
            trailer_service.update_trailer_status(db, trailer.id, "LOADING")
        db.refresh(trailer)
        assert trailer.process_status == "UNLOAD"

    def test_empty_trailer_cannot_be_unloaded(self, db, check_in):
        trailer = check_in(load_status="EMPTY").trailer
        with pytest.raises(InvalidOperationError):
            trailer_service.update_trailer_status(db, trailer.id, "UNLOADED")

    def test_allowed_override(self, db, check_in):
        trailer = check_in(load_status="FULL").trailer
        updated = trailer_service.update_trailer_status(db, trailer.id, "UNLOADING")
        assert updated.process_status == "UNLOADING"

    def test_partial_accepts_anything(self, db, check_in):
        trailer = check_in(load_status="PARTIAL").trailer
        assert trailer_service.update_trailer_status(db, trailer.id, "LOADED").process_status == "LOADED"

    def test_unknown_status(self, db, check_in):
        trailer = check_in().trailer
        with pytest.raises(InvalidOperationError, match="Invalid ProcessStatus"):
            trailer_service.update_trailer_status(db, trailer.id, "PARKED")

    def test_unknown_trailer(self, db, yard):
        with pytest.raises(NotFoundError):
            trailer_service.update_trailer_status(db, 999, "LOAD")


class TestTrailerQueries:
    def test_by_number(self, db, check_in):
        check_in(trailer_number="ABC-1")
        assert trailer_service.get_trailer_by_number(db, "ABC-1").trailer_number == "ABC-1"
        with pytest.raises(NotFoundError, match="number: NOPE"):
            trailer_service.get_trailer_by_number(db, "NOPE")

    def test_by_status(self, db, check_in):
        check_in(trailer_number="E1", load_status="EMPTY")
        check_in(trailer_number="F1", load_status="FULL")
        numbers = [t.trailer_number for t in trailer_service.get_trailers_by_status(db, "UNLOAD")]
        assert numbers == ["F1"]

    def test_by_site_covers_door_yard_and_open_visit(self, db, yard, check_in):
        at_door = check_in(trailer_number="D1").trailer
        in_yard = check_in(trailer_number="Y1").trailer
        check_in(trailer_number="G1")
        slot_service.assign_trailer_to_door(db, at_door.id, yard.door1.id)
        slot_service.assign_trailer_to_yard_location(db, in_yard.id, yard.spot1.id)

        numbers = [t.trailer_number for t in trailer_service.get_trailers_by_site(db, yard.site.id)]
        assert numbers == ["D1", "G1", "Y1"]
        assert trailer_service.get_trailers_by_site(db, yard.other_site.id) == []
