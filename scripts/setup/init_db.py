# scripts/setup/init_db.py
"""
Initialize database: creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--demo]

--demo seeds one site with a gate, a dock with two doors, two yard
locations, a detention-enabled carrier and a spotter.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from decimal import Decimal

from sqlalchemy import inspect, text

from yardflow.config import settings
from yardflow.database import SessionLocal, create_tables, engine, unit_of_work
from yardflow.models import Carrier, Dock, Door, Gate, Site, User, YardLocation
from yardflow.models.enums import GateFunction, UserRole


def seed_demo():
    db = SessionLocal()
    try:
        if db.query(Site).filter(Site.code == "DEMO").first():
            print("ℹ️  Demo site already present, skipping seed")
            return
        with unit_of_work(db):
            site = Site(name="Demo Distribution Center", code="DEMO")
            dock = Dock(name="Dock A", code="DEMO-A", site=site)
            db.add_all([
                site,
                Gate(name="Main Gate", code="DEMO-G1", function=GateFunction.CHECK_IN_OUT.value, site=site),
                dock,
                Door(name="Door 1", code="DEMO-A-D1", dock=dock),
                Door(name="Door 2", code="DEMO-A-D2", dock=dock),
                YardLocation(name="Row 1 Spot 1", code="DEMO-Y1", site=site),
                YardLocation(name="Row 1 Spot 2", code="DEMO-Y2", site=site),
                Carrier(
                    name="Demo Freight", code="DEMOFRT", detention_enabled=True,
                    free_time_hours=settings.DEFAULT_FREE_TIME_HOURS,
                    charge_interval_hours=settings.DEFAULT_CHARGE_INTERVAL_HOURS,
                    charge_per_interval=Decimal("50.00"),
                    max_charge_enabled=True, max_charge=Decimal("500.00"),
                    eligible_sites=[site],
                ),
                User(username="spotter1", role=UserRole.SPOTTER.value, accessible_sites=[site]),
            ])
        print("✅ Demo site seeded")
    finally:
        db.close()


def main():
    print("🗄️  YardFlow DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if "--demo" in sys.argv:
        seed_demo()

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn yardflow.main:app --host {settings.BACKEND_HOST} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
