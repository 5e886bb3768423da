"""
Reservation lifecycle: the 3-stage booking protocol.

  1. Inquired: a new reservation is submitted. If the vehicle is free for the
     requested window it is stored as InquiryConfirmed and held until
     now + hold timeout. Otherwise it is returned as Cancelled and never stored.
  2. InquiryConfirmed: the same customer resubmits the reservation id within
     the hold window with status InquiryConfirmed (or Booked) and it becomes
     Booked. Any other resubmitted status, an explicit cancel, or the hold
     running out cancels it: the row is removed and a cancelled_hold tombstone
     takes its place. A resubmission must name its status.
  3. Booked: durable. Cancelling keeps the row as Cancelled.

Cancelled is terminal; cancelling it again is a no-op success, also for a hold
that was already removed.

Abandoned holds are purged by the hold sweeper (expire_holds) and, exactly at
their deadline, by any resubmission that arrives too late.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from freerider.domain.enums import ReservationStatus
from freerider.domain.factory import EntityFactory
from freerider.domain.reservation import Reservation
from freerider.errors import Result, bad_request, conflict, not_found
from freerider.services.data_store import DataStore, ReservationHold, normalize_keys, parse_number
from freerider.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HOLD_TIMEOUT = timedelta(minutes=10)

RESERVATION_FIELDS = ("id", "customer_id", "vehicle_id", "begin", "end", "pickup", "dropoff", "status")
CONFIRMING = {ReservationStatus.InquiryConfirmed, ReservationStatus.Booked}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class ReservationLifecycle:

    def __init__(self, store: DataStore, factory: EntityFactory,
                 clock: Callable[[], datetime] = utc_now,
                 hold_timeout: timedelta = DEFAULT_HOLD_TIMEOUT):
        self.store = store
        self.factory = factory
        self.clock = clock
        self.hold_timeout = hold_timeout

    def _now_ms(self) -> int:
        return to_millis(self.clock())

    # ── Entry point ───────────────────────────────────────────────────────

    def submit(self, attributes: dict) -> Result:
        """
        Handle a reservation submitted as an attribute map. An id already in the
        store (or a hold cancelled earlier) is a resubmission and must carry a
        status; otherwise it is a new inquiry and status defaults to Inquired.
        """
        if not isinstance(attributes, dict):
            return bad_request("attributes must be a name-value map")
        attrs = normalize_keys(attributes)
        id = parse_number(attrs.get("id"))
        if id is None or id < 0:
            return bad_request("reservation id missing or invalid")

        known = (self.store.find_reservation_hold(id) is not None
                 or self.store.find_cancelled_hold(id) is not None)
        if known and attrs.get("status") is None:
            return bad_request(f"status required to resubmit reservation id: {id}")

        try:
            status = ReservationStatus.parse(attrs.get("status", ReservationStatus.Inquired.value))
        except ValueError as e:
            return bad_request(str(e))

        if known:
            customer_id = parse_number(attrs.get("customer_id"))
            if customer_id is None:
                return bad_request("customer_id missing or invalid")
            return self.resubmit(id, customer_id, status)

        if status is not ReservationStatus.Inquired:
            return not_found(f"reservation id not found: {id}, can't resubmit with status {status}")

        missing = [f for f in RESERVATION_FIELDS if attrs.get(f) is None and f != "status"]
        if missing:
            return bad_request(f"incomplete attributes: {', '.join(missing)}")
        created = self.factory.create_reservation(
            id, parse_number(attrs["customer_id"]), parse_number(attrs["vehicle_id"]),
            attrs["begin"], attrs["end"], attrs["pickup"], attrs["dropoff"], status,
        )
        if not created.ok:
            return bad_request(created.failure.reason)
        return self.inquire(created.value)

    # ── Stage 1 ───────────────────────────────────────────────────────────

    def inquire(self, reservation: Reservation) -> Result:
        if reservation.status is not ReservationStatus.Inquired:
            return bad_request(f"reservation {reservation.id} is {reservation.status}, expected Inquired")
        if reservation.begin >= reservation.end:
            return bad_request(f"reservation {reservation.id}: begin must be before end")
        if self.store.find_customer_by_id(reservation.customer_id) is None:
            return not_found(f"customer id not found: {reservation.customer_id}")
        if self.store.find_vehicle_by_id(reservation.vehicle_id) is None:
            return not_found(f"vehicle id not found: {reservation.vehicle_id}")

        now = self.clock()
        if not self.store.is_vehicle_available(reservation.vehicle_id, reservation.begin,
                                               reservation.end, to_millis(now)):
            reservation.status = ReservationStatus.Cancelled
            logger.info(f"Reservation {reservation.id}: vehicle {reservation.vehicle_id} "
                        f"not available, Cancelled (not stored)")
            return Result.success(reservation)

        reservation.status = ReservationStatus.InquiryConfirmed
        hold_expires = to_millis(now + self.hold_timeout)
        stored = self.store.insert_reservation(reservation, hold_expires)
        if not stored.ok:
            return stored
        logger.info(f"Reservation {reservation.id}: InquiryConfirmed, held until "
                    f"{datetime.fromtimestamp(hold_expires / 1000, timezone.utc).isoformat()}")
        return Result.success(reservation)

    # ── Stages 2 and 3 ────────────────────────────────────────────────────

    def resubmit(self, id: int, customer_id: int, status) -> Result:
        try:
            status = ReservationStatus.parse(status)
        except ValueError as e:
            return bad_request(str(e))

        hold = self.store.find_reservation_hold(id)
        if hold is None:
            cancelled = self.store.find_cancelled_hold(id)
            if cancelled is None:
                return not_found(f"reservation id not found: {id}")
            if cancelled.customer_id != customer_id:
                return conflict(f"reservation {id} is held by another customer")
            return Result.success(cancelled)
        reservation = hold.reservation
        if reservation.customer_id != customer_id:
            return conflict(f"reservation {id} is held by another customer")

        if reservation.status is ReservationStatus.Cancelled:
            return Result.success(reservation)

        if reservation.status is ReservationStatus.Booked:
            if status is ReservationStatus.Cancelled:
                return self._cancel_booked(reservation)
            return Result.success(reservation)

        # InquiryConfirmed (or a stray Inquired row)
        if self._hold_expired(hold):
            logger.info(f"Reservation {id}: hold expired before resubmission")
            return self._purge(reservation)
        if status in CONFIRMING and reservation.status is ReservationStatus.InquiryConfirmed:
            booked = self.store.update_reservation_status(
                id, ReservationStatus.Booked, expected_status=ReservationStatus.InquiryConfirmed)
            if not booked.ok:
                return booked
            reservation.status = ReservationStatus.Booked
            logger.info(f"Reservation {id}: Booked")
            return Result.success(reservation)
        return self._purge(reservation)

    def cancel(self, id: int) -> Result:
        hold = self.store.find_reservation_hold(id)
        if hold is None:
            cancelled = self.store.find_cancelled_hold(id)
            if cancelled is None:
                return not_found(f"reservation id not found: {id}")
            return Result.success(cancelled)
        reservation = hold.reservation
        if reservation.status is ReservationStatus.Cancelled:
            return Result.success(reservation)
        if reservation.status is ReservationStatus.Booked:
            return self._cancel_booked(reservation)
        return self._purge(reservation)

    # ── Expiry ────────────────────────────────────────────────────────────

    def expire_holds(self) -> int:
        """Purge every InquiryConfirmed reservation whose hold has run out."""
        purged = self.store.purge_expired_holds(self._now_ms())
        if purged:
            logger.info(f"Expired holds purged: {purged}")
        return len(purged)

    def _hold_expired(self, hold: ReservationHold) -> bool:
        return hold.hold_expires is not None and hold.hold_expires <= self._now_ms()

    # ── Transitions ───────────────────────────────────────────────────────

    def _purge(self, reservation: Reservation) -> Result:
        deleted = self.store.delete_reservation(reservation.id, expected_status=reservation.status,
                                                tombstone_at=self._now_ms())
        if not deleted.ok:
            return deleted
        reservation.status = ReservationStatus.Cancelled
        logger.info(f"Reservation {reservation.id}: Cancelled before booking, removed")
        return Result.success(reservation)

    def _cancel_booked(self, reservation: Reservation) -> Result:
        updated = self.store.update_reservation_status(
            reservation.id, ReservationStatus.Cancelled, expected_status=ReservationStatus.Booked)
        if not updated.ok:
            return updated
        reservation.status = ReservationStatus.Cancelled
        logger.info(f"Reservation {reservation.id}: Booked → Cancelled (kept)")
        return Result.success(reservation)
