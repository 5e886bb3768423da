"""
Vehicle entity. Everything but status is fixed at construction.
"""

from freerider.domain.base import check_id, check_non_empty, require_factory
from freerider.domain.enums import VehicleCategory, VehiclePower, VehicleStatus

MIN_SEATS = 1
MAX_SEATS = 100


class Vehicle:
    Category = VehicleCategory
    Power = VehiclePower
    Status = VehicleStatus

    def __init__(self, id, make, model, seats, category, power, status, *, _key=None):
        require_factory("Vehicle", _key)
        self._id = check_id("id", id)
        self._make = check_non_empty("make", make)
        self._model = check_non_empty("model", model)
        if isinstance(seats, bool) or not isinstance(seats, int):
            raise ValueError(f"seats: {seats!r}, not an integer")
        if seats < MIN_SEATS or seats > MAX_SEATS:
            raise ValueError(f"seats: {seats}, seats <= 0 || seats > {MAX_SEATS}")
        self._seats = seats
        if category is None:
            raise ValueError("category is null")
        self._category = VehicleCategory.parse(category)
        if power is None:
            raise ValueError("power is null")
        self._power = VehiclePower.parse(power)
        self.status = status

    @property
    def id(self) -> int:
        return self._id

    @property
    def make(self) -> str:
        return self._make

    @property
    def model(self) -> str:
        return self._model

    @property
    def seats(self) -> int:
        return self._seats

    @property
    def category(self) -> VehicleCategory:
        return self._category

    @property
    def power(self) -> VehiclePower:
        return self._power

    @property
    def status(self) -> VehicleStatus:
        return self._status

    @status.setter
    def status(self, status):
        if status is None:
            raise ValueError("status is null")
        self._status = VehicleStatus.parse(status)

    def __eq__(self, other):
        if not isinstance(other, Vehicle):
            return NotImplemented
        return (self.id, self.make, self.model, self.seats, self.category, self.power, self.status) == \
            (other.id, other.make, other.model, other.seats, other.category, other.power, other.status)

    def __hash__(self):
        return hash(("Vehicle", self.id))

    def __repr__(self):
        return f"<Vehicle {self.id} {self.make} {self.model} seats={self.seats} status={self.status}>"
