# tests/conftest.py
"""Shared fixtures: an in-memory SQLite database and a small seeded yard."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import yardflow.models  # noqa
from yardflow.database import Base
from yardflow.models import Carrier, Dock, Door, Gate, Site, User, YardLocation
from yardflow.models.enums import GateFunction, UserRole
from yardflow.services import appointment_service


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def seed_yard(session):
    """One site with every kind of gate, two doors, two yard spots, users and carriers."""
    site = Site(name="Chicago DC", code="CHI")
    other_site = Site(name="Dallas DC", code="DAL")
    dock = Dock(name="Dock A", code="CHI-A", site=site)

    y = SimpleNamespace(
        site=site,
        other_site=other_site,
        gate=Gate(name="Main", code="CHI-G1", function=GateFunction.CHECK_IN_OUT.value, site=site),
        in_gate=Gate(name="Inbound", code="CHI-G2", function=GateFunction.CHECK_IN.value, site=site),
        out_gate=Gate(name="Outbound", code="CHI-G3", function=GateFunction.CHECK_OUT.value, site=site),
        other_gate=Gate(name="Dallas Main", code="DAL-G1", function=GateFunction.CHECK_IN_OUT.value,
                        site=other_site),
        dock=dock,
        door1=Door(name="Door 1", code="CHI-A-D1", dock=dock),
        door2=Door(name="Door 2", code="CHI-A-D2", dock=dock),
        spot1=YardLocation(name="Row 1 Spot 1", code="CHI-Y1", site=site),
        spot2=YardLocation(name="Row 1 Spot 2", code="CHI-Y2", site=site),
        carrier=Carrier(
            name="Acme Freight", code="ACME", detention_enabled=True,
            free_time_hours=24, charge_interval_hours=1,
            charge_per_interval=Decimal("50.00"),
            max_charge_enabled=True, max_charge=Decimal("500.00"),
            eligible_sites=[site],
        ),
        plain_carrier=Carrier(name="No Detention", code="NODET", detention_enabled=False,
                              eligible_sites=[site, other_site]),
        spotter=User(username="spotter1", role=UserRole.SPOTTER.value, accessible_sites=[site]),
        remote_spotter=User(username="spotter2", role=UserRole.SPOTTER.value, accessible_sites=[other_site]),
        guard=User(username="guard1", role=UserRole.GATE_GUARD.value, accessible_sites=[site]),
        admin=User(username="admin", role=UserRole.ADMIN.value),
    )
    session.add_all([v for v in vars(y).values()])
    session.commit()
    return y


@pytest.fixture
def yard(db):
    return seed_yard(db)


@pytest.fixture
def check_in(db, yard):
    """Check a trailer in at the main gate. Returns the appointment."""
    def _check_in(trailer_number="TRL-100", load_status="EMPTY", carrier=None, gate_id=None, **kwargs):
        return appointment_service.process_check_in(
            db,
            site_id=yard.site.id,
            gate_id=gate_id or yard.gate.id,
            trailer_number=trailer_number,
            carrier_id=(carrier or yard.carrier).id,
            load_status=load_status,
            **kwargs,
        )
    return _check_in


@pytest.fixture
def shared_db(tmp_path):
    """File-backed SQLite for threaded tests: `.sessions()` opens one session per thread, `.yard` is seeded."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'yard.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    setup = factory()
    try:
        yield SimpleNamespace(sessions=factory, setup=setup, yard=seed_yard(setup))
    finally:
        setup.close()
        engine.dispose()
