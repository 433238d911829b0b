"""
Door and yard location tables: the physical slots a trailer can occupy.
The occupying trailer is not stored here: Trailer.door_id / Trailer.yard_location_id
own the link (unique-indexed), and slot_service keeps status in step with it.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from yardflow.database import Base
from yardflow.models.enums import SlotStatus
from yardflow.utils.clock import utcnow


class Door(Base):
    __tablename__ = "doors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    dock_id = Column(Integer, ForeignKey("docks.id"), nullable=False, index=True)
    status = Column(String(20), default=SlotStatus.AVAILABLE.value, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    dock = relationship("Dock", back_populates="doors")

    @property
    def site_id(self):
        return self.dock.site_id if self.dock else None

    def __repr__(self):
        return f"<Door {self.code} status={self.status}>"


class YardLocation(Base):
    __tablename__ = "yard_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    status = Column(String(20), default=SlotStatus.AVAILABLE.value, nullable=False)
    position_x = Column(Float)   # yard map coordinates
    position_y = Column(Float)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    site = relationship("Site")

    def __repr__(self):
        return f"<YardLocation {self.code} status={self.status}>"
