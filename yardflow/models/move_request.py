"""
Move requests table: a spotter task relocating one trailer between
two named locations (YARD / DOOR / GATE + id) within a site.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from yardflow.database import Base


class MoveRequest(Base):
    __tablename__ = "move_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    trailer_id = Column(Integer, ForeignKey("trailers.id"), nullable=False, index=True)
    move_type = Column(String(10), nullable=False)          # MoveType

    source_location_type = Column(String(10), nullable=False)        # LocationType
    source_location_id = Column(Integer, nullable=False)
    destination_location_type = Column(String(10), nullable=False)
    destination_location_id = Column(Integer, nullable=False)

    assigned_spotter_id = Column(Integer, ForeignKey("users.id"), index=True)
    requested_by_id = Column(Integer, ForeignKey("users.id"))

    request_time = Column(DateTime, nullable=False, index=True)
    assigned_time = Column(DateTime)
    start_time = Column(DateTime)
    completion_time = Column(DateTime)

    status = Column(String(20), nullable=False, index=True)   # MoveStatus
    notes = Column(Text)

    site = relationship("Site")
    trailer = relationship("Trailer")
    assigned_spotter = relationship("User", foreign_keys=[assigned_spotter_id])
    requested_by = relationship("User", foreign_keys=[requested_by_id])

    def __repr__(self):
        return f"<MoveRequest {self.id} {self.move_type} status={self.status}>"
