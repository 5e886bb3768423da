"""
Reservations: the booking protocol over HTTP.

POST /reservations with status Inquired asks for a new reservation (201 when a
hold is granted, 200 with status Cancelled when the vehicle is taken). POSTing
the same id again with status InquiryConfirmed books it; any other status
cancels it. A resubmission without a status is 400. DELETE on a hold that was
already cancelled or swept answers 200 Cancelled again.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from freerider.domain.enums import ReservationStatus
from freerider.routers.deps import get_factory, get_lifecycle, get_store, raise_for_failure
from freerider.schemas.reservation import ReservationOut
from freerider.services.data_store import DataStore
from freerider.services.reservation_lifecycle import ReservationLifecycle

router = APIRouter()


@router.get("/reservations/{id}", response_model=ReservationOut, summary="Find reservation by id")
def find_reservation(id: int, store: DataStore = Depends(get_store), factory=Depends(get_factory)):
    reservation = store.find_reservation_by_id(id)
    if reservation is None:
        raise HTTPException(status_code=404, detail=f"Reservation id: {id} not found")
    return ReservationOut.from_entity(reservation, factory)


@router.post("/reservations", response_model=ReservationOut, summary="Submit or resubmit a reservation")
def submit_reservation(response: Response, attributes: dict[str, Any] = Body(...),
                       lifecycle: ReservationLifecycle = Depends(get_lifecycle),
                       factory=Depends(get_factory)):
    result = lifecycle.submit(attributes)
    if not result.ok:
        raise_for_failure(result.failure)
    reservation = result.value
    if reservation.status is ReservationStatus.InquiryConfirmed:
        response.status_code = status.HTTP_201_CREATED
    return ReservationOut.from_entity(reservation, factory)


@router.delete("/reservations/{id}", response_model=ReservationOut, summary="Cancel a reservation")
def cancel_reservation(id: int, lifecycle: ReservationLifecycle = Depends(get_lifecycle),
                       factory=Depends(get_factory)):
    result = lifecycle.cancel(id)
    if not result.ok:
        raise_for_failure(result.failure)
    return ReservationOut.from_entity(result.value, factory)
