"""
Carriers table: trailer owners/operators.
Holds the detention billing configuration and the set of sites the
carrier may check trailers in at.
"""

from sqlalchemy import Column, Integer, String, Boolean, Numeric, ForeignKey, Table, DateTime
from sqlalchemy.orm import relationship
from yardflow.database import Base
from yardflow.utils.clock import utcnow

carrier_site_eligibility = Table(
    "carrier_site_eligibility",
    Base.metadata,
    Column("carrier_id", Integer, ForeignKey("carriers.id"), primary_key=True),
    Column("site_id", Integer, ForeignKey("sites.id"), primary_key=True),
)


class Carrier(Base):
    __tablename__ = "carriers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)

    # Detention fee configuration
    detention_enabled = Column(Boolean, default=False, nullable=False)
    free_time_hours = Column(Integer)
    charge_interval_hours = Column(Integer)
    charge_per_interval = Column(Numeric(10, 2))
    max_charge_enabled = Column(Boolean, default=False, nullable=False)
    max_charge = Column(Numeric(10, 2))

    created_at = Column(DateTime, default=utcnow)

    eligible_sites = relationship("Site", secondary=carrier_site_eligibility)

    def is_eligible_for(self, site_id: int) -> bool:
        return any(site.id == site_id for site in self.eligible_sites)

    def __repr__(self):
        return f"<Carrier {self.code} detention={self.detention_enabled}>"
