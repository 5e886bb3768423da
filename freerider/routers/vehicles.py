"""Vehicles: read-only access to the fleet."""

from fastapi import APIRouter, Depends, HTTPException

from freerider.routers.deps import get_store
from freerider.schemas.vehicle import VehicleOut
from freerider.services.data_store import DataStore

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles")
def list_vehicles(store: DataStore = Depends(get_store)):
    return [VehicleOut.from_entity(v) for v in store.find_all_vehicles()]


@router.get("/vehicles/{id}", response_model=VehicleOut, summary="Find vehicle by id")
def find_vehicle(id: int, store: DataStore = Depends(get_store)):
    vehicle = store.find_vehicle_by_id(id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail=f"Vehicle id: {id} not found")
    return VehicleOut.from_entity(vehicle)
