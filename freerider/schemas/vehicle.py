from pydantic import BaseModel

from freerider.domain.vehicle import Vehicle


class VehicleOut(BaseModel):
    id: int
    make: str
    model: str
    seats: int
    category: str
    power: str
    status: str

    @classmethod
    def from_entity(cls, vehicle: Vehicle) -> "VehicleOut":
        return cls(id=vehicle.id, make=vehicle.make, model=vehicle.model, seats=vehicle.seats,
                   category=vehicle.category.value, power=vehicle.power.value,
                   status=vehicle.status.value)
