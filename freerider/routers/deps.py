"""
Request-scoped collaborators for the routers, and the failure → HTTP mapping.
Tests swap any of these via app.dependency_overrides.
"""

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from freerider.config import settings
from freerider.database import get_db
from freerider.domain.factory import EntityFactory
from freerider.errors import Failure
from freerider.services.data_store import DataStore
from freerider.services.reservation_lifecycle import ReservationLifecycle, utc_now


@lru_cache
def get_factory() -> EntityFactory:
    return EntityFactory(settings.RESERVATION_TIMEZONE)


def get_clock():
    return utc_now


def get_store(db: Session = Depends(get_db), factory: EntityFactory = Depends(get_factory)) -> DataStore:
    return DataStore(db, factory)


def get_lifecycle(store: DataStore = Depends(get_store),
                  factory: EntityFactory = Depends(get_factory),
                  clock=Depends(get_clock)) -> ReservationLifecycle:
    return ReservationLifecycle(store, factory, clock, timedelta(minutes=settings.HOLD_TIMEOUT_MINUTES))


def raise_for_failure(failure: Failure):
    """BadRequest → 400, NotFound → 404, Conflict → 409."""
    raise HTTPException(status_code=failure.kind.status_code, detail=failure.message)
