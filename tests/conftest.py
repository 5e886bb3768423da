# tests/conftest.py
"""Shared fixtures: in-memory SQLite store, entity factory, fake clock, seed rows."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Settings are read at import time; keep tests off disk.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", "")

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import sessionmaker

from freerider.database import create_tables, make_engine
from freerider.domain.factory import DATETIME_FORMAT, EntityFactory
from freerider.models.customer import CustomerRecord
from freerider.models.reservation import ReservationRecord
from freerider.models.vehicle import VehicleRecord
from freerider.services.data_store import DataStore

CUSTOMERS = [
    (1, "Meyer, Eric", "eme22@gmail.com", "Active"),
    (2, "Sommer, Tina", "030 22458 29425", "Active"),
    (3, "Schulze, Tim", "+49 171 2358124", "Active"),
    (23, "Blumenfeld, Rosi", "", "InRegistration"),
    (48, "Baumann, Max", "max.baumann@web.de", "Active"),
    (92, "Neumann, Anna", "anna@neumann.de", "Terminated"),
]

VEHICLES = [
    (1, "VW", "ID.4", 5, "SUV", "Electric", "Active"),
    (2, "Tesla", "Model 3", 5, "Sedan", "Electric", "Active"),
    (3, "BMW", "R 1250 GS", 2, "Bike", "Gasoline", "Serviced"),
]


class FakeClock:
    """Callable clock the tests move forward by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta):
        self.now += timedelta(**delta)


def add_reservation_row(db, id, customer_id, vehicle_id, begin, end, status,
                        hold_expires=None, pickup="Berlin Hbf", dropoff="Berlin Hbf"):
    db.add(ReservationRecord(
        id=id, customer_id=customer_id, vehicle_id=vehicle_id,
        begin=datetime.strptime(begin, DATETIME_FORMAT),
        end=datetime.strptime(end, DATETIME_FORMAT),
        pickup=pickup, dropoff=dropoff, status=status, hold_expires=hold_expires,
    ))
    db.commit()


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def factory():
    return EntityFactory("Europe/Berlin")


@pytest.fixture
def store(db, factory):
    return DataStore(db, factory)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def seeded(db):
    for id, name, contact, status in CUSTOMERS:
        db.add(CustomerRecord(id=id, name=name, contact=contact, status=status))
    for id, make, model, seats, category, power, status in VEHICLES:
        db.add(VehicleRecord(id=id, make=make, model=model, seats=seats,
                             category=category, power=power, status=status))
    db.commit()
    return db
