"""Customers: CRUD over the customer table."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from freerider.routers.deps import get_factory, get_store, raise_for_failure
from freerider.schemas.customer import CountOut, CustomerOut
from freerider.schemas.reservation import ReservationOut
from freerider.services.data_store import DataStore
from freerider.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/customers", response_model=list[CustomerOut], summary="List customers")
def list_customers(name_prefix: Optional[str] = None, name_match: Optional[str] = None,
                   store: DataStore = Depends(get_store)):
    """
    All customers, optionally only those whose name starts with `name_prefix`
    or matches the SQL LIKE pattern `name_match` (% and _ wildcards).
    """
    if name_match:
        customers = store.find_customers_by_name_match(name_match)
    elif name_prefix:
        customers = store.find_customers_by_name_starting_with(name_prefix)
    else:
        customers = store.find_all_customers()
    return [CustomerOut.from_entity(c) for c in customers]


@router.get("/customers/count", response_model=CountOut, summary="Number of customer records")
def count_customers(store: DataStore = Depends(get_store)):
    return CountOut(count=store.count_customers())


@router.get("/customers/{id}", response_model=CustomerOut, summary="Find customer by id")
def find_customer(id: int, store: DataStore = Depends(get_store)):
    logger.info(f"GET /customers/{id}")
    if id < 0:
        raise HTTPException(status_code=400, detail=f"Customer id: {id} negative")
    customer = store.find_customer_by_id(id)
    if customer is None:
        raise HTTPException(status_code=404, detail=f"Customer id: {id} not found")
    return CustomerOut.from_entity(customer)


@router.get("/customers/{id}/reservations", response_model=list[ReservationOut],
            summary="Reservations held by a customer")
def customer_reservations(id: int, store: DataStore = Depends(get_store), factory=Depends(get_factory)):
    return [ReservationOut.from_entity(r, factory) for r in store.find_reservations_by_customer_id(id)]


@router.post("/customers", response_model=CustomerOut, status_code=status.HTTP_201_CREATED,
             summary="Create customer from {id, name, contact, status}")
def create_customer(attributes: dict[str, Any] = Body(...), store: DataStore = Depends(get_store)):
    result = store.create_customer(attributes)
    if not result.ok:
        raise_for_failure(result.failure)
    return CustomerOut.from_entity(result.value)


@router.put("/customers", status_code=status.HTTP_202_ACCEPTED, summary="Update customer (id + changed fields)")
def update_customer(attributes: dict[str, Any] = Body(...), store: DataStore = Depends(get_store)):
    result = store.update_customer(attributes)
    if not result.ok:
        raise_for_failure(result.failure)
    return {"status": "updated"}


@router.delete("/customers/{id}", status_code=status.HTTP_202_ACCEPTED, summary="Delete customer")
def delete_customer(id: int, store: DataStore = Depends(get_store)):
    logger.info(f"DELETE /customers/{id}")
    result = store.delete_customer(id)
    if not result.ok:
        raise_for_failure(result.failure)
    return {"status": "deleted", "id": id}
