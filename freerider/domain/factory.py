"""
Entity factory: the only way Customer, Vehicle and Reservation objects come into
existence.

Every create_* method validates primitive inputs (ids, strings, enum names,
"yyyy-MM-dd HH:mm:ss" date-times) and returns a Result holding either the new
entity or a ValidationFailure. Nothing raises past this boundary; failures are
logged with their reason.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Iterable, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from freerider.config import settings
from freerider.domain.base import FACTORY_KEY
from freerider.domain.customer import Customer
from freerider.domain.reservation import Reservation
from freerider.domain.vehicle import Vehicle
from freerider.errors import Result
from freerider.utils.logger import get_logger

logger = get_logger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"   # yyyy-MM-dd HH:mm:ss


@dataclass(frozen=True)
class ValidationFailure:
    entity: str
    entity_id: object
    reason: str

    def __str__(self):
        return f"{self.entity}(id: {self.entity_id}): {self.reason}"


class EntityFactory:

    def __init__(self, tz: Union[str, tzinfo, None] = None):
        if tz is None:
            tz = settings.RESERVATION_TIMEZONE
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    # ── Date-time conversion ──────────────────────────────────────────────

    def parse_datetime(self, text) -> int:
        """'yyyy-MM-dd HH:mm:ss' in the reservation time zone -> ms since epoch."""
        if text is None:
            raise ValueError("datetime is null")
        if not isinstance(text, str):
            raise ValueError(f"datetime: {text!r}, not a string")
        try:
            parsed = datetime.strptime(text.strip(), DATETIME_FORMAT)
        except ValueError as e:
            raise ValueError(f"datetime parse error, {e}") from None
        return int(parsed.replace(tzinfo=self.tz).timestamp()) * 1000

    def format_datetime(self, millis: int) -> str:
        if millis < 0:
            raise ValueError("datetime is < 0")
        return datetime.fromtimestamp(millis // 1000, self.tz).strftime(DATETIME_FORMAT)

    def to_wall_clock(self, millis: int) -> datetime:
        """ms since epoch -> naive date-time in the reservation time zone (storage form)."""
        return datetime.fromtimestamp(millis // 1000, self.tz).replace(tzinfo=None)

    def _to_millis(self, value) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return self.parse_datetime(value)

    # ── Single entities ───────────────────────────────────────────────────

    def create_customer(self, id, name, contact, status) -> Result[Customer, ValidationFailure]:
        try:
            return Result.success(Customer(id, name, contact, status, _key=FACTORY_KEY))
        except ValueError as e:
            return self._dropped("Customer", id, e)

    def create_vehicle(self, id, make, model, seats, category, power, status) -> Result[Vehicle, ValidationFailure]:
        try:
            return Result.success(Vehicle(id, make, model, seats, category, power, status, _key=FACTORY_KEY))
        except ValueError as e:
            return self._dropped("Vehicle", id, e)

    def create_reservation(self, id, customer_id, vehicle_id, begin, end,
                           pickup, dropoff, status) -> Result[Reservation, ValidationFailure]:
        try:
            return Result.success(Reservation(
                id, customer_id, vehicle_id,
                self._to_millis(begin), self._to_millis(end),
                pickup, dropoff, status, _key=FACTORY_KEY,
            ))
        except ValueError as e:
            return self._dropped("Reservation", id, e)

    def _dropped(self, entity: str, entity_id, error: Exception) -> Result:
        failure = ValidationFailure(entity, entity_id, str(error))
        logger.error(f"{entity}(id: {entity_id}), {type(error).__name__}: {error}, dropped")
        return Result.fail(failure)

    # ── Batches ───────────────────────────────────────────────────────────

    def create_all(self, rows: Optional[Iterable[Sequence]], creator: Callable[..., Result]) -> list:
        """
        Best-effort batch: call `creator(*args)` for every args tuple in `rows`
        and collect the entities that could be built. Invalid entries are logged
        and left out; one bad entry never aborts the batch.

        Example:
            factory.create_all([
                (1, "Meyer, Eric", "eme22@gmail.com", "Active"),
                (2, "", "030 22458 29425", "Active"),        # dropped: empty name
            ], factory.create_customer)
        """
        created = []
        if rows is None or creator is None:
            return created
        for index, args in enumerate(rows):
            try:
                result = creator(*args)
            except TypeError as e:
                logger.error(f"batch entry {index}: {e}, dropped")
                continue
            if result.ok:
                created.append(result.value)
            else:
                logger.warning(f"batch entry {index} dropped: {result.failure}")
        return created
