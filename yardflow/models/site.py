"""
Sites, gates and docks: reference data read by the orchestration services.
Created and edited outside this service; only looked up here.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from yardflow.database import Base
from yardflow.utils.clock import utcnow


class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    address = Column(String(300))
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(20))
    created_at = Column(DateTime, default=utcnow)

    gates = relationship("Gate", back_populates="site")
    docks = relationship("Dock", back_populates="site")

    def __repr__(self):
        return f"<Site {self.code} id={self.id}>"


class Gate(Base):
    __tablename__ = "gates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    function = Column(String(20), nullable=False)   # GateFunction
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    site = relationship("Site", back_populates="gates")

    def __repr__(self):
        return f"<Gate {self.code} function={self.function} site={self.site_id}>"


class Dock(Base):
    __tablename__ = "docks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    site = relationship("Site", back_populates="docks")
    doors = relationship("Door", back_populates="dock")

    def __repr__(self):
        return f"<Dock {self.code} site={self.site_id}>"
