# tests/test_move_request_service.py
"""Spotter move lifecycle and the trailer automation applied on completion."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta

import pytest
from yardflow.exceptions import InvalidOperationError, NotFoundError
from yardflow.services import appointment_service, move_request_service as moves


@pytest.fixture
def request_move(db, yard):
    def _request(trailer, move_type="SPOT", source=("YARD", None), destination=("DOOR", None),
                 requested_by=None, notes=None):
        return moves.create_move_request(
            db,
            trailer_id=trailer.id,
            move_type=move_type,
            source_location_type=source[0],
            source_location_id=source[1] or yard.spot1.id,
            destination_location_type=destination[0],
            destination_location_id=destination[1] or yard.door1.id,
            requested_by_id=(requested_by or yard.guard).id,
            notes=notes,
        )
    return _request


def run_to_completion(db, yard, move):
    moves.assign_move_request(db, move.id, yard.spotter.id)
    moves.start_move_request(db, move.id)
    return moves.complete_move_request(db, move.id)


class TestCreate:
    def test_takes_site_from_open_visit(self, yard, check_in, request_move):
        trailer = check_in().trailer
        move = request_move(trailer, notes="door 1 please")
        assert move.status == "REQUESTED"
        assert move.site_id == yard.site.id
        assert move.request_time is not None
        assert move.requested_by_id == yard.guard.id
        assert move.notes == "door 1 please"

    def test_trailer_without_open_visit(self, db, yard, check_in, request_move):
        trailer = check_in().trailer
        appointment_service.cancel_appointment(db, trailer.current_appointment_id)
        with pytest.raises(InvalidOperationError, match="must have an active appointment"):
            request_move(trailer)

    def test_requester_needs_site_access(self, yard, check_in, request_move):
        trailer = check_in().trailer
        with pytest.raises(InvalidOperationError, match="does not have access"):
            request_move(trailer, requested_by=yard.remote_spotter)

    def test_admin_needs_no_grant(self, yard, check_in, request_move):
        trailer = check_in().trailer
        assert request_move(trailer, requested_by=yard.admin).status == "REQUESTED"

    def test_invalid_location_type(self, check_in, request_move):
        trailer = check_in().trailer
        with pytest.raises(InvalidOperationError, match="Invalid destination location type: DOCK"):
            request_move(trailer, destination=("DOCK", 1))

    def test_unknown_trailer_and_requester(self, db, yard, check_in):
        params = dict(move_type="SPOT", source_location_type="YARD", source_location_id=1,
                      destination_location_type="DOOR", destination_location_id=1)
        with pytest.raises(NotFoundError, match="Trailer not found"):
            moves.create_move_request(db, trailer_id=999, requested_by_id=yard.guard.id, **params)
        trailer = check_in().trailer
        with pytest.raises(NotFoundError, match="User not found"):
            moves.create_move_request(db, trailer_id=trailer.id, requested_by_id=999, **params)

    def test_missing_move_type(self, db, yard, check_in):
        trailer = check_in().trailer
        with pytest.raises(InvalidOperationError, match="Move type is required"):
            moves.create_move_request(
                db, trailer_id=trailer.id, move_type=None, source_location_type="YARD",
                source_location_id=1, destination_location_type="DOOR", destination_location_id=1,
                requested_by_id=yard.guard.id,
            )


class TestLifecycle:
    def test_assign_start_complete(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer)

        assigned = moves.assign_move_request(db, move.id, yard.spotter.id)
        assert assigned.status == "ASSIGNED"
        assert assigned.assigned_spotter_id == yard.spotter.id
        assert assigned.assigned_time is not None

        started = moves.start_move_request(db, move.id)
        assert started.status == "IN_PROGRESS"
        assert started.start_time is not None

        done = moves.complete_move_request(db, move.id)
        assert done.status == "COMPLETED"
        assert done.completion_time is not None

    def test_assign_requires_spotter_role(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer)
        with pytest.raises(InvalidOperationError, match="is not a spotter"):
            moves.assign_move_request(db, move.id, yard.guard.id)

    def test_assign_requires_site_access(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer)
        with pytest.raises(InvalidOperationError, match="does not have access"):
            moves.assign_move_request(db, move.id, yard.remote_spotter.id)
        db.refresh(move)
        assert move.status == "REQUESTED"

    def test_assign_only_when_requested(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer)
        moves.assign_move_request(db, move.id, yard.spotter.id)
        with pytest.raises(InvalidOperationError, match="Current status: ASSIGNED"):
            moves.assign_move_request(db, move.id, yard.spotter.id)

    def test_cannot_skip_to_complete(self, db, check_in, request_move):
        move = request_move(check_in().trailer)
        with pytest.raises(InvalidOperationError, match="not in IN_PROGRESS status"):
            moves.complete_move_request(db, move.id)

    def test_start_requires_assigned(self, db, check_in, request_move):
        move = request_move(check_in().trailer)
        with pytest.raises(InvalidOperationError):
            moves.start_move_request(db, move.id)

    def test_cancel_from_each_open_status(self, db, yard, check_in, request_move):
        trailer = check_in().trailer
        requested = request_move(trailer)
        assigned = request_move(trailer)
        moves.assign_move_request(db, assigned.id, yard.spotter.id)
        in_progress = request_move(trailer)
        moves.assign_move_request(db, in_progress.id, yard.spotter.id)
        moves.start_move_request(db, in_progress.id)

        for move in (requested, assigned, in_progress):
            assert moves.cancel_move_request(db, move.id).status == "CANCELLED"

    def test_cancel_cancelled_rejected(self, db, check_in, request_move):
        move = request_move(check_in().trailer)
        moves.cancel_move_request(db, move.id)
        with pytest.raises(InvalidOperationError):
            moves.cancel_move_request(db, move.id)
        db.refresh(move)
        assert move.status == "CANCELLED"

    def test_cancel_completed_rejected(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer)
        run_to_completion(db, yard, move)
        with pytest.raises(InvalidOperationError, match="completed move request"):
            moves.cancel_move_request(db, move.id)

    def test_notes_are_appended(self, db, yard, check_in, request_move):
        move = request_move(check_in().trailer, notes="first")
        run_to_completion(db, yard, move)
        moves.add_notes_to_move_request(db, move.id, "second")
        assert move.notes == "first\nsecond"

    def test_blank_notes_rejected(self, db, check_in, request_move):
        move = request_move(check_in().trailer)
        with pytest.raises(InvalidOperationError, match="Notes cannot be empty"):
            moves.add_notes_to_move_request(db, move.id, "  ")


class TestTrailerAutomation:
    @pytest.mark.parametrize("load,expected", [
        ("EMPTY", "LOADING"),
        ("PARTIAL", "LOADING"),
        ("FULL", "UNLOADING"),
    ])
    def test_spot_to_door(self, db, yard, check_in, request_move, load, expected):
        trailer = check_in(load_status=load).trailer
        run_to_completion(db, yard, request_move(trailer, "SPOT", ("YARD", None), ("DOOR", None)))
        db.refresh(trailer)
        assert trailer.process_status == expected

    def test_spot_to_yard_changes_nothing(self, db, yard, check_in, request_move):
        trailer = check_in(load_status="EMPTY").trailer
        run_to_completion(db, yard, request_move(trailer, "SPOT", ("DOOR", None), ("YARD", None)))
        db.refresh(trailer)
        assert trailer.process_status == "LOAD"

    @pytest.mark.parametrize("load,expected_process,expected_load", [
        ("EMPTY", "LOADED", "FULL"),
        ("FULL", "UNLOADED", "EMPTY"),
    ])
    def test_pull_from_door_finishes_work(self, db, yard, check_in, request_move,
                                          load, expected_process, expected_load):
        trailer = check_in(load_status=load).trailer
        run_to_completion(db, yard, request_move(trailer, "SPOT", ("YARD", None), ("DOOR", None)))
        run_to_completion(db, yard, request_move(trailer, "PULL", ("DOOR", None), ("YARD", None)))
        db.refresh(trailer)
        assert trailer.process_status == expected_process
        assert trailer.load_status == expected_load

    def test_pull_without_work_in_progress_is_a_no_op(self, db, yard, check_in, request_move):
        trailer = check_in(load_status="EMPTY").trailer
        move = run_to_completion(db, yard, request_move(trailer, "PULL", ("DOOR", None), ("YARD", None)))
        assert move.status == "COMPLETED"
        db.refresh(trailer)
        assert trailer.process_status == "LOAD"
        assert trailer.load_status == "EMPTY"


class TestQueries:
    def test_pending_and_active(self, db, yard, check_in, request_move):
        trailer = check_in().trailer
        pending = request_move(trailer)
        assigned = request_move(trailer)
        moves.assign_move_request(db, assigned.id, yard.spotter.id)
        cancelled = request_move(trailer)
        moves.cancel_move_request(db, cancelled.id)

        assert [m.id for m in moves.get_pending_move_requests(db)] == [pending.id]
        assert [m.id for m in moves.get_pending_move_requests(db, yard.site.id)] == [pending.id]
        assert moves.get_pending_move_requests(db, yard.other_site.id) == []
        assert {m.id for m in moves.get_active_move_requests(db, yard.site.id)} == {pending.id, assigned.id}
        assert [m.id for m in moves.get_move_requests_by_status(db, "CANCELLED")] == [cancelled.id]

    def test_by_spotter_trailer_and_site(self, db, yard, check_in, request_move):
        trailer = check_in().trailer
        move = request_move(trailer)
        moves.assign_move_request(db, move.id, yard.spotter.id)

        assert [m.id for m in moves.get_move_requests_by_spotter(db, yard.spotter.id)] == [move.id]
        assert [m.id for m in moves.get_move_requests_by_trailer(db, trailer.id)] == [move.id]
        assert [m.id for m in moves.get_move_requests_by_site(db, yard.site.id)] == [move.id]
        with pytest.raises(NotFoundError):
            moves.get_move_requests_by_spotter(db, 999)

    def test_date_range(self, db, check_in, request_move):
        move = request_move(check_in().trailer)
        now = datetime.utcnow()
        found = moves.get_move_requests_by_date_range(db, now - timedelta(hours=1), now + timedelta(hours=1))
        assert [m.id for m in found] == [move.id]
        with pytest.raises(InvalidOperationError, match="cannot be after"):
            moves.get_move_requests_by_date_range(db, now, now - timedelta(days=1))

    def test_unknown_move_request(self, db, yard):
        with pytest.raises(NotFoundError, match="Move request not found with id: 42"):
            moves.get_move_request(db, 42)
