"""
Health check: database reachability, record counts and how many expired holds
are still waiting for the sweeper.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from freerider.routers.deps import get_clock, get_store
from freerider.services.data_store import DataStore
from freerider.services.reservation_lifecycle import to_millis

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(store: DataStore = Depends(get_store), clock=Depends(get_clock)):
    """
    - status: ok | degraded
    - database: ok, or the error the SELECT 1 check raised
    - records: customers / vehicles / reservations
    - expired_holds_pending: holds past their deadline not yet purged
    """
    now = clock()
    report = {
        "status": "ok",
        "timestamp": now.isoformat(),
        "database": "unknown",
        "records": {},
        "expired_holds_pending": None,
    }

    try:
        store.db.execute(text("SELECT 1"))
        report["records"] = {
            "customers": store.count_customers(),
            "vehicles": store.count_vehicles(),
            "reservations": store.count_reservations(),
        }
        report["expired_holds_pending"] = len(store.find_expired_holds(to_millis(now)))
        report["database"] = "ok"
    except SQLAlchemyError as e:
        report["database"] = f"error: {e}"
        report["status"] = "degraded"

    return report
