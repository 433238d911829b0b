"""
Trailers table: one row per trailer number, never hard-deleted.
Holds the trailer's load/process state and its single slot binding.
A trailer sits at a door OR a yard location OR nowhere (check constraint).
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from yardflow.database import Base


class Trailer(Base):
    __tablename__ = "trailers"
    __table_args__ = (
        CheckConstraint(
            "door_id IS NULL OR yard_location_id IS NULL",
            name="ck_trailer_single_slot",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    trailer_number = Column(String(50), unique=True, nullable=False, index=True)

    load_status = Column(String(20))             # LoadStatus
    process_status = Column(String(20))          # ProcessStatus
    condition = Column(String(20))               # TrailerCondition
    refrigeration_status = Column(String(20))    # RefrigerationStatus

    carrier_id = Column(Integer, ForeignKey("carriers.id"), index=True)
    door_id = Column(Integer, ForeignKey("doors.id"), unique=True)
    yard_location_id = Column(Integer, ForeignKey("yard_locations.id"), unique=True)
    current_appointment_id = Column(Integer, unique=True)   # appointments.id of the open visit

    check_in_time = Column(DateTime)
    check_out_time = Column(DateTime)

    # Detention tracking
    detention_start_time = Column(DateTime)
    detention_active = Column(Boolean, default=False, nullable=False)

    carrier = relationship("Carrier")
    door = relationship("Door")
    yard_location = relationship("YardLocation")

    def __repr__(self):
        return (f"<Trailer {self.trailer_number} load={self.load_status} "
                f"process={self.process_status} door={self.door_id} yard={self.yard_location_id}>")
