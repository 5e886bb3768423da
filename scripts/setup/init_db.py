# scripts/setup/init_db.py
"""
Initialize database: creates all tables, optionally loads demo data.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed]
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse

from freerider.database import SessionLocal, create_tables, engine
from freerider.config import settings
from freerider.domain.factory import EntityFactory
from freerider.models.customer import CustomerRecord
from freerider.models.vehicle import VehicleRecord
from sqlalchemy import inspect, text

DEMO_CUSTOMERS = [
    (1, "Meyer, Eric", "eme22@gmail.com", "Active"),
    (2, "Sommer, Tina", "030 22458 29425", "Active"),
    (3, "Schulze, Tim", "+49 171 2358124", "Active"),
    (4, "Blumenfeld, Rosi", "", "InRegistration"),
    (5, "Neumann, Anna", "anna@neumann.de", "Terminated"),
]

DEMO_VEHICLES = [
    (1001, "VW", "ID.4", 5, "SUV", "Electric", "Active"),
    (1002, "Tesla", "Model 3", 5, "Sedan", "Electric", "Active"),
    (1003, "Mercedes", "EQV", 8, "Van", "Electric", "Active"),
    (1004, "BMW", "R 1250 GS", 2, "Bike", "Gasoline", "Serviced"),
    (1005, "Toyota", "Mirai", 4, "Sedan", "Hydrogen", "Active"),
]


def seed(factory: EntityFactory):
    """Insert the demo fleet and customers; rows whose id already exists are skipped."""
    db = SessionLocal()
    try:
        added = 0
        for c in factory.create_all(DEMO_CUSTOMERS, factory.create_customer):
            if db.get(CustomerRecord, c.id) is None:
                db.add(CustomerRecord(id=c.id, name=c.name, contact=c.contact, status=c.status.value))
                added += 1
        for v in factory.create_all(DEMO_VEHICLES, factory.create_vehicle):
            if db.get(VehicleRecord, v.id) is None:
                db.add(VehicleRecord(id=v.id, make=v.make, model=v.model, seats=v.seats,
                                     category=v.category.value, power=v.power.value,
                                     status=v.status.value))
                added += 1
        db.commit()
        print(f"✅ {added} demo record(s) inserted")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create Freerider tables")
    parser.add_argument("--seed", action="store_true", help="load demo customers and vehicles")
    args = parser.parse_args()

    print("🗄️  Freerider DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.seed:
        print("\n🌱 Loading demo data...")
        seed(EntityFactory(settings.RESERVATION_TIMEZONE))

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn freerider.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
