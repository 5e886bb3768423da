"""
Query executor for customers, vehicles and reservations.

Reads map every row through the EntityFactory; rows that fail validation are
dropped and logged, the rest of the result is kept. Writes return a Result whose
failure is one of BadRequest, NotFound or Conflict; SQLAlchemy exceptions are
rolled back and translated here and never reach the caller. All values reach
the database as bound parameters.
"""

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from freerider.domain.customer import Customer
from freerider.domain.enums import ReservationStatus
from freerider.domain.factory import DATETIME_FORMAT, EntityFactory
from freerider.domain.reservation import Reservation
from freerider.domain.vehicle import Vehicle
from freerider.errors import Result, bad_request, conflict, not_found
from freerider.models.cancelled_hold import CancelledHoldRecord
from freerider.models.customer import CustomerRecord
from freerider.models.reservation import ReservationRecord
from freerider.models.vehicle import VehicleRecord
from freerider.utils.logger import get_logger

logger = get_logger(__name__)

CUSTOMER_FIELDS = ("id", "name", "contact", "status")


@dataclass(frozen=True)
class ReservationHold:
    reservation: Reservation
    hold_expires: Optional[int]   # ms since epoch; None unless InquiryConfirmed


def parse_number(value) -> Optional[int]:
    """Int or numeric string -> int, anything else -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def normalize_keys(attributes) -> dict:
    """Lower-case the keys of an attribute map and keep only string keys."""
    return {key.lower(): value for key, value in attributes.items() if isinstance(key, str)}


def _wall_clock_str(value):
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    return value


class DataStore:

    def __init__(self, db: Session, factory: EntityFactory):
        self.db = db
        self.factory = factory

    # ── Row mapping ───────────────────────────────────────────────────────

    def _to_customer(self, row: CustomerRecord) -> Result:
        return self.factory.create_customer(row.id, row.name, row.contact, row.status)

    def _to_vehicle(self, row: VehicleRecord) -> Result:
        return self.factory.create_vehicle(row.id, row.make, row.model, row.seats,
                                           row.category, row.power, row.status)

    def _to_reservation(self, row: ReservationRecord) -> Result:
        return self.factory.create_reservation(
            row.id, row.customer_id, row.vehicle_id,
            _wall_clock_str(row.begin), _wall_clock_str(row.end),
            row.pickup, row.dropoff, row.status,
        )

    @staticmethod
    def _collect(rows, mapper, label: str) -> list:
        """Map rows to entities, dropping (and logging) the ones that fail validation."""
        entities = []
        for row in rows:
            result = mapper(row)
            if result.ok:
                entities.append(result.value)
            else:
                logger.warning(f"dropping {label} id: {row.id} ({result.failure.reason})")
        return entities

    @staticmethod
    def _first(row, mapper):
        if row is None:
            return None
        result = mapper(row)
        return result.value if result.ok else None

    # ── Customers ─────────────────────────────────────────────────────────

    def count_customers(self) -> int:
        return self.db.query(func.count(CustomerRecord.id)).scalar() or 0

    def find_all_customers(self) -> list[Customer]:
        rows = self.db.query(CustomerRecord).order_by(CustomerRecord.id).all()
        return self._collect(rows, self._to_customer, "customer")

    def find_customer_by_id(self, id: int) -> Optional[Customer]:
        row = self.db.query(CustomerRecord).filter(CustomerRecord.id == id).first()
        return self._first(row, self._to_customer)

    def find_all_customers_by_ids(self, ids: Iterable[int]) -> list[Customer]:
        ids = list(ids or ())
        if not ids:
            return []
        rows = (self.db.query(CustomerRecord)
                .filter(CustomerRecord.id.in_(ids))
                .order_by(CustomerRecord.id)
                .all())
        return self._collect(rows, self._to_customer, "customer")

    def find_customers_by_name(self, name: str) -> list[Customer]:
        rows = self.db.query(CustomerRecord).filter(CustomerRecord.name == name).order_by(CustomerRecord.id).all()
        return self._collect(rows, self._to_customer, "customer")

    def find_customers_by_name_starting_with(self, prefix: str) -> list[Customer]:
        rows = (self.db.query(CustomerRecord)
                .filter(CustomerRecord.name.startswith(prefix, autoescape=True))
                .order_by(CustomerRecord.id)
                .all())
        return self._collect(rows, self._to_customer, "customer")

    def find_customers_by_name_match(self, pattern: str) -> list[Customer]:
        """SQL LIKE match on the name, e.g. "%, T%" for every first name starting with T."""
        rows = (self.db.query(CustomerRecord)
                .filter(CustomerRecord.name.like(pattern))
                .order_by(CustomerRecord.id)
                .all())
        return self._collect(rows, self._to_customer, "customer")

    def find_reservations_by_customer_id(self, customer_id: int) -> list[Reservation]:
        rows = (self.db.query(ReservationRecord)
                .join(CustomerRecord, ReservationRecord.customer_id == CustomerRecord.id)
                .filter(CustomerRecord.id == customer_id)
                .order_by(ReservationRecord.id)
                .all())
        return self._collect(rows, self._to_reservation, "reservation")

    def create_customer(self, attributes: dict) -> Result:
        """
        Insert a customer from an attribute map {id, name, contact, status}
        (keys case-insensitive, unknown keys ignored). Returns the new Customer.
        BadRequest: attribute missing or invalid. Conflict: id already exists.
        """
        if not isinstance(attributes, dict):
            return bad_request("attributes must be a name-value map")
        attrs = normalize_keys(attributes)
        id = parse_number(attrs.get("id"))
        if id is None or id < 0 or any(attrs.get(f) is None for f in CUSTOMER_FIELDS[1:]):
            return bad_request("incomplete attributes")

        created = self.factory.create_customer(id, attrs["name"], attrs["contact"], attrs["status"])
        if not created.ok:
            return bad_request(created.failure.reason)
        customer = created.value

        if self.db.query(CustomerRecord.id).filter(CustomerRecord.id == id).first() is not None:
            return conflict(f"INSERT failed, id exists: {id}")
        try:
            self.db.add(CustomerRecord(id=customer.id, name=customer.name,
                                       contact=customer.contact, status=customer.status.value))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return conflict(f"INSERT exception, id may exist: {id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"INSERT customer {id} failed: {e}")
            return bad_request(f"customer not created for id: {id}")

        logger.info(f"Customer created: [{customer.id}, {customer.name!r}, {customer.contact!r}, {customer.status}]")
        return Result.success(customer)

    def update_customer(self, attributes: dict) -> Result:
        """
        Partial update: `id` is required, any of name/contact/status present is
        applied. BadRequest: no usable id or invalid values. NotFound: no such row.
        """
        if not isinstance(attributes, dict):
            return bad_request("attributes must be a name-value map")
        attrs = normalize_keys(attributes)
        id = parse_number(attrs.get("id"))
        if id is None or id < 0:
            return bad_request("incomplete attributes, id missing or invalid")

        row = self.db.query(CustomerRecord).filter(CustomerRecord.id == id).first()
        if row is None:
            return not_found(f"id not found: {id}, 0 records updated")

        changes = {f: attrs[f] for f in CUSTOMER_FIELDS[1:] if f in attrs}
        merged = {"name": row.name, "contact": row.contact, "status": row.status, **changes}
        validated = self.factory.create_customer(id, merged["name"], merged["contact"], merged["status"])
        if not validated.ok:
            return bad_request(validated.failure.reason)
        customer = validated.value

        try:
            updated = (self.db.query(CustomerRecord)
                       .filter(CustomerRecord.id == id)
                       .update({
                           CustomerRecord.name: customer.name,
                           CustomerRecord.contact: customer.contact,
                           CustomerRecord.status: customer.status.value,
                       }))
            if updated != 1:
                self.db.rollback()
                return not_found(f"id not found: {id}, {updated} records updated")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            return bad_request(str(e))

        logger.info(f"Customer {id} updated: {sorted(changes)}")
        return Result.success(True)

    def delete_customer(self, id: int) -> Result:
        """BadRequest: negative id. NotFound: no such row. Conflict: reservations reference it."""
        if id is None or id < 0:
            return bad_request(f"invalid id: {id}")
        try:
            deleted = self.db.query(CustomerRecord).filter(CustomerRecord.id == id).delete()
            if deleted != 1:
                self.db.rollback()
                return not_found(f"id not found: {id}, {deleted} records deleted")
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return conflict(f"conflict deleting item id: {id}, foreign key dependency may exist")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"DELETE customer {id} failed: {e}")
            return conflict(f"conflict deleting item id: {id}")

        logger.info(f"Customer {id} deleted")
        return Result.success(True)

    # ── Vehicles ──────────────────────────────────────────────────────────

    def count_vehicles(self) -> int:
        return self.db.query(func.count(VehicleRecord.id)).scalar() or 0

    def find_all_vehicles(self) -> list[Vehicle]:
        rows = self.db.query(VehicleRecord).order_by(VehicleRecord.id).all()
        return self._collect(rows, self._to_vehicle, "vehicle")

    def find_vehicle_by_id(self, id: int) -> Optional[Vehicle]:
        row = self.db.query(VehicleRecord).filter(VehicleRecord.id == id).first()
        return self._first(row, self._to_vehicle)

    def find_all_vehicles_by_ids(self, ids: Iterable[int]) -> list[Vehicle]:
        ids = list(ids or ())
        if not ids:
            return []
        rows = (self.db.query(VehicleRecord)
                .filter(VehicleRecord.id.in_(ids))
                .order_by(VehicleRecord.id)
                .all())
        return self._collect(rows, self._to_vehicle, "vehicle")

    # ── Reservations ──────────────────────────────────────────────────────

    def count_reservations(self) -> int:
        return self.db.query(func.count(ReservationRecord.id)).scalar() or 0

    def find_all_reservations(self) -> list[Reservation]:
        rows = self.db.query(ReservationRecord).order_by(ReservationRecord.id).all()
        return self._collect(rows, self._to_reservation, "reservation")

    def find_reservation_by_id(self, id: int) -> Optional[Reservation]:
        row = self.db.query(ReservationRecord).filter(ReservationRecord.id == id).first()
        return self._first(row, self._to_reservation)

    def find_all_reservations_by_ids(self, ids: Iterable[int]) -> list[Reservation]:
        ids = list(ids or ())
        if not ids:
            return []
        rows = (self.db.query(ReservationRecord)
                .filter(ReservationRecord.id.in_(ids))
                .order_by(ReservationRecord.id)
                .all())
        return self._collect(rows, self._to_reservation, "reservation")

    def find_reservation_hold(self, id: int) -> Optional[ReservationHold]:
        row = self.db.query(ReservationRecord).filter(ReservationRecord.id == id).first()
        if row is None:
            return None
        result = self._to_reservation(row)
        if not result.ok:
            logger.warning(f"reservation id: {id} unreadable ({result.failure.reason})")
            return None
        return ReservationHold(result.value, row.hold_expires)

    def insert_reservation(self, reservation: Reservation, hold_expires: Optional[int] = None) -> Result:
        """Persist a reservation. Conflict: id exists or a foreign key is violated."""
        exists = self.db.query(ReservationRecord.id).filter(ReservationRecord.id == reservation.id).first()
        if exists is not None:
            return conflict(f"INSERT failed, reservation id exists: {reservation.id}")
        try:
            self.db.add(ReservationRecord(
                id=reservation.id,
                customer_id=reservation.customer_id,
                vehicle_id=reservation.vehicle_id,
                begin=self.factory.to_wall_clock(reservation.begin),
                end=self.factory.to_wall_clock(reservation.end),
                pickup=reservation.pickup,
                dropoff=reservation.dropoff,
                status=reservation.status.value,
                hold_expires=hold_expires,
            ))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return conflict(f"INSERT exception for reservation id: {reservation.id}, "
                            f"id or foreign key conflict")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"INSERT reservation {reservation.id} failed: {e}")
            return bad_request(f"reservation not created for id: {reservation.id}")
        return Result.success(reservation)

    def update_reservation_status(self, id: int, status: ReservationStatus,
                                  hold_expires: Optional[int] = None,
                                  expected_status: Optional[ReservationStatus] = None) -> Result:
        """
        Set status (and hold expiry). With `expected_status` the row only changes
        while it is still in that status; otherwise NotFound is returned.
        """
        q = self.db.query(ReservationRecord).filter(ReservationRecord.id == id)
        if expected_status is not None:
            q = q.filter(ReservationRecord.status == expected_status.value)
        try:
            updated = q.update({
                ReservationRecord.status: status.value,
                ReservationRecord.hold_expires: hold_expires,
            }, synchronize_session="fetch")
            if updated != 1:
                self.db.rollback()
                return not_found(f"reservation id not found: {id}, {updated} records updated")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            return bad_request(str(e))
        return Result.success(True)

    def delete_reservation(self, id: int, expected_status: Optional[ReservationStatus] = None,
                           tombstone_at: Optional[int] = None) -> Result:
        """
        Delete a reservation row. With `tombstone_at` (ms since epoch) the row is
        copied to cancelled_hold in the same transaction.
        """
        if id is None or id < 0:
            return bad_request(f"invalid id: {id}")
        q = self.db.query(ReservationRecord).filter(ReservationRecord.id == id)
        if expected_status is not None:
            q = q.filter(ReservationRecord.status == expected_status.value)
        try:
            if tombstone_at is not None:
                row = q.first()
                if row is not None:
                    self.db.merge(self._tombstone(row, tombstone_at))
            deleted = q.delete(synchronize_session="fetch")
            if deleted != 1:
                self.db.rollback()
                return not_found(f"reservation id not found: {id}, {deleted} records deleted")
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return conflict(f"conflict deleting reservation id: {id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            return bad_request(str(e))
        return Result.success(True)

    @staticmethod
    def _tombstone(row: ReservationRecord, cancelled_at: int) -> CancelledHoldRecord:
        return CancelledHoldRecord(
            id=row.id, customer_id=row.customer_id, vehicle_id=row.vehicle_id,
            begin=row.begin, end=row.end, pickup=row.pickup, dropoff=row.dropoff,
            cancelled_at=cancelled_at,
        )

    def find_cancelled_hold(self, id: int) -> Optional[Reservation]:
        """A hold removed before it was booked, returned with status Cancelled."""
        row = self.db.query(CancelledHoldRecord).filter(CancelledHoldRecord.id == id).first()
        if row is None:
            return None
        result = self.factory.create_reservation(
            row.id, row.customer_id, row.vehicle_id,
            _wall_clock_str(row.begin), _wall_clock_str(row.end),
            row.pickup, row.dropoff, ReservationStatus.Cancelled.value,
        )
        if not result.ok:
            logger.warning(f"cancelled hold id: {id} unreadable ({result.failure.reason})")
            return None
        return result.value

    def _expired_hold_filter(self, now_ms: int):
        return and_(
            ReservationRecord.status == ReservationStatus.InquiryConfirmed.value,
            ReservationRecord.hold_expires.is_not(None),
            ReservationRecord.hold_expires <= now_ms,
        )

    def find_expired_holds(self, now_ms: int) -> list[int]:
        rows = (self.db.query(ReservationRecord.id)
                .filter(self._expired_hold_filter(now_ms))
                .order_by(ReservationRecord.id)
                .all())
        return [row.id for row in rows]

    def purge_expired_holds(self, now_ms: int) -> list[int]:
        """
        Delete every InquiryConfirmed row whose hold expired at or before now_ms,
        leaving a cancelled_hold tombstone for each.
        """
        rows = (self.db.query(ReservationRecord)
                .filter(self._expired_hold_filter(now_ms))
                .order_by(ReservationRecord.id)
                .all())
        ids = [row.id for row in rows]
        if not ids:
            return []
        try:
            for row in rows:
                self.db.merge(self._tombstone(row, now_ms))
            (self.db.query(ReservationRecord)
             .filter(ReservationRecord.id.in_(ids), self._expired_hold_filter(now_ms))
             .delete(synchronize_session="fetch"))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"purging expired holds {ids} failed: {e}")
            return []
        return ids

    def is_vehicle_available(self, vehicle_id: int, begin: int, end: int, now_ms: int,
                             exclude_id: Optional[int] = None) -> bool:
        """
        False when a Booked reservation, or an InquiryConfirmed one whose hold is
        still running, overlaps [begin, end) for the same vehicle.
        """
        begin_dt = self.factory.to_wall_clock(begin)
        end_dt = self.factory.to_wall_clock(end)
        q = self.db.query(func.count(ReservationRecord.id)).filter(
            ReservationRecord.vehicle_id == vehicle_id,
            ReservationRecord.begin < end_dt,
            ReservationRecord.end > begin_dt,
            or_(
                ReservationRecord.status == ReservationStatus.Booked.value,
                and_(
                    ReservationRecord.status == ReservationStatus.InquiryConfirmed.value,
                    or_(ReservationRecord.hold_expires.is_(None), ReservationRecord.hold_expires > now_ms),
                ),
            ),
        )
        if exclude_id is not None:
            q = q.filter(ReservationRecord.id != exclude_id)
        return (q.scalar() or 0) == 0

    # ── Generic ───────────────────────────────────────────────────────────

    @staticmethod
    def count(collection) -> int:
        """Number of elements of an already materialised collection, -1 if it has no size."""
        return len(collection) if isinstance(collection, Collection) else -1
