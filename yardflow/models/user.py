"""
Users table: yard operators (guards, spotters, dock managers, admins).
Only role and site access are consulted by the move request workflow.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Table, DateTime
from sqlalchemy.orm import relationship
from yardflow.database import Base
from yardflow.utils.clock import utcnow

user_site_access = Table(
    "user_site_access",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("site_id", Integer, ForeignKey("sites.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(200), unique=True)
    role = Column(String(20), nullable=False)   # UserRole
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    accessible_sites = relationship("Site", secondary=user_site_access)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<User {self.username} role={self.role}>"
