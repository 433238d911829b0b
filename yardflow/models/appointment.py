"""
Appointments table: one gate-to-gate visit of a trailer at a site.
trailer_id is nullable: scheduled visits may be booked before the trailer is known.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from yardflow.database import Base


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trailer_id = Column(Integer, ForeignKey("trailers.id"), index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    check_in_gate_id = Column(Integer, ForeignKey("gates.id"), index=True)
    check_out_gate_id = Column(Integer, ForeignKey("gates.id"), index=True)

    type = Column(String(20), nullable=False)     # AppointmentType
    status = Column(String(20), nullable=False, index=True)   # AppointmentStatus

    scheduled_time = Column(DateTime, index=True)
    actual_arrival_time = Column(DateTime)
    completion_time = Column(DateTime)

    driver_info = Column(String(500))
    guard_comments = Column(Text)

    trailer = relationship("Trailer", foreign_keys=[trailer_id])
    site = relationship("Site")
    check_in_gate = relationship("Gate", foreign_keys=[check_in_gate_id])
    check_out_gate = relationship("Gate", foreign_keys=[check_out_gate_id])

    def __repr__(self):
        return f"<Appointment {self.id} status={self.status} trailer={self.trailer_id}>"
