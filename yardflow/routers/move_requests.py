# yardflow/routers/move_requests.py
"""Spotter move requests: create, assign, start, complete, cancel."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from yardflow.database import get_db
from yardflow.models.enums import MoveStatus
from yardflow.schemas.move_request import AssignRequest, MoveRequestCreate, MoveRequestOut, NotesRequest
from yardflow.services import move_request_service

router = APIRouter()


@router.post("/move-requests", response_model=MoveRequestOut, summary="Request a trailer move")
def create(body: MoveRequestCreate, db: Session = Depends(get_db)):
    return move_request_service.create_move_request(db, **body.model_dump())


@router.put("/move-requests/{move_request_id}/assign", response_model=MoveRequestOut,
            summary="Assign a move to a spotter")
def assign(move_request_id: int, body: AssignRequest, db: Session = Depends(get_db)):
    return move_request_service.assign_move_request(db, move_request_id, body.spotter_id)


@router.put("/move-requests/{move_request_id}/start", response_model=MoveRequestOut, summary="Start a move")
def start(move_request_id: int, db: Session = Depends(get_db)):
    return move_request_service.start_move_request(db, move_request_id)


@router.put("/move-requests/{move_request_id}/complete", response_model=MoveRequestOut,
            summary="Complete a move and update the trailer")
def complete(move_request_id: int, db: Session = Depends(get_db)):
    return move_request_service.complete_move_request(db, move_request_id)


@router.put("/move-requests/{move_request_id}/cancel", response_model=MoveRequestOut, summary="Cancel a move")
def cancel(move_request_id: int, db: Session = Depends(get_db)):
    return move_request_service.cancel_move_request(db, move_request_id)


@router.post("/move-requests/{move_request_id}/notes", response_model=MoveRequestOut, summary="Append notes")
def add_notes(move_request_id: int, body: NotesRequest, db: Session = Depends(get_db)):
    return move_request_service.add_notes_to_move_request(db, move_request_id, body.notes)


@router.get("/move-requests", response_model=list[MoveRequestOut], summary="List move requests")
def list_move_requests(
    status: Optional[MoveStatus] = None,
    site_id: Optional[int] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    """Filter by status, or active_only=true for REQUESTED/ASSIGNED/IN_PROGRESS. Both narrow by site_id."""
    if active_only:
        return move_request_service.get_active_move_requests(db, site_id)
    if status is not None:
        return move_request_service.get_move_requests_by_status(db, status, site_id)
    if site_id is not None:
        return move_request_service.get_move_requests_by_site(db, site_id)
    return move_request_service.get_pending_move_requests(db)


@router.get("/move-requests/pending", response_model=list[MoveRequestOut], summary="Moves awaiting a spotter")
def pending(site_id: Optional[int] = None, db: Session = Depends(get_db)):
    return move_request_service.get_pending_move_requests(db, site_id)


@router.get("/move-requests/range", response_model=list[MoveRequestOut],
            summary="Moves requested within a date range")
def by_date_range(start: datetime = None, end: datetime = None, db: Session = Depends(get_db)):
    return move_request_service.get_move_requests_by_date_range(db, start, end)


@router.get("/move-requests/{move_request_id}", response_model=MoveRequestOut, summary="Get a move request")
def get_move_request(move_request_id: int, db: Session = Depends(get_db)):
    return move_request_service.get_move_request(db, move_request_id)


@router.get("/spotters/{spotter_id}/move-requests", response_model=list[MoveRequestOut],
            summary="Moves assigned to a spotter")
def by_spotter(spotter_id: int, db: Session = Depends(get_db)):
    return move_request_service.get_move_requests_by_spotter(db, spotter_id)


@router.get("/trailers/{trailer_id}/move-requests", response_model=list[MoveRequestOut],
            summary="Moves of a trailer")
def by_trailer(trailer_id: int, db: Session = Depends(get_db)):
    return move_request_service.get_move_requests_by_trailer(db, trailer_id)
