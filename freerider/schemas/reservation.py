from pydantic import BaseModel

from freerider.domain.factory import EntityFactory
from freerider.domain.reservation import Reservation


class ReservationOut(BaseModel):
    id: int
    customer_id: int
    vehicle_id: int
    begin: str          # yyyy-MM-dd HH:mm:ss
    end: str
    pickup: str
    dropoff: str
    status: str

    @classmethod
    def from_entity(cls, reservation: Reservation, factory: EntityFactory) -> "ReservationOut":
        return cls(
            id=reservation.id,
            customer_id=reservation.customer_id,
            vehicle_id=reservation.vehicle_id,
            begin=factory.format_datetime(reservation.begin),
            end=factory.format_datetime(reservation.end),
            pickup=reservation.pickup,
            dropoff=reservation.dropoff,
            status=reservation.status.value,
        )
