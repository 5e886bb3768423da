"""
Reservation entity.

begin and end are milliseconds since 1970-01-01 UTC and must lie within
[RESERVATION_LOWER_BOUND, RESERVATION_UPPER_BOUND]; with the default
Europe/Berlin reservation time zone these are the wall-clock instants
2020-01-01 00:00:00 and 2029-12-31 23:59:59.
"""

from freerider.domain.base import check_id, check_non_empty, require_factory
from freerider.domain.enums import ReservationStatus

RESERVATION_LOWER_BOUND = 1577833200000   # 2020-01-01 00:00:00
RESERVATION_UPPER_BOUND = 1893452399000   # 2029-12-31 23:59:59


def check_datetime(field, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field}: {value!r}, not a timestamp")
    if value < RESERVATION_LOWER_BOUND or value > RESERVATION_UPPER_BOUND:
        raise ValueError(f"{field}: {value}, {field} outside [lower_bound_DateTime, upper_bound_DateTime]")
    return value


class Reservation:
    Status = ReservationStatus

    def __init__(self, id, customer_id, vehicle_id, begin, end, pickup, dropoff, status, *, _key=None):
        require_factory("Reservation", _key)
        self._id = check_id("id", id)
        self._customer_id = check_id("customer_id", customer_id)
        self._vehicle_id = check_id("vehicle_id", vehicle_id)
        self.begin = begin
        self.end = end
        self.pickup = pickup
        self.dropoff = dropoff
        self.status = status

    @property
    def id(self) -> int:
        return self._id

    @property
    def customer_id(self) -> int:
        return self._customer_id

    @property
    def vehicle_id(self) -> int:
        return self._vehicle_id

    @property
    def begin(self) -> int:
        return self._begin

    @begin.setter
    def begin(self, begin):
        self._begin = check_datetime("begin", begin)

    @property
    def end(self) -> int:
        return self._end

    @end.setter
    def end(self, end):
        self._end = check_datetime("end", end)

    @property
    def pickup(self) -> str:
        return self._pickup

    @pickup.setter
    def pickup(self, pickup):
        self._pickup = check_non_empty("pickup", pickup)

    @property
    def dropoff(self) -> str:
        return self._dropoff

    @dropoff.setter
    def dropoff(self, dropoff):
        self._dropoff = check_non_empty("dropoff", dropoff)

    @property
    def status(self) -> ReservationStatus:
        return self._status

    @status.setter
    def status(self, status):
        if status is None:
            raise ValueError("status is null")
        self._status = ReservationStatus.parse(status)

    def __eq__(self, other):
        if not isinstance(other, Reservation):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self):
        return hash(("Reservation", self.id))

    def _fields(self):
        return (self.id, self.customer_id, self.vehicle_id, self.begin, self.end,
                self.pickup, self.dropoff, self.status)

    def __repr__(self):
        return (f"<Reservation {self.id} customer={self.customer_id} vehicle={self.vehicle_id} "
                f"status={self.status}>")
