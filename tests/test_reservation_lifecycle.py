# tests/test_reservation_lifecycle.py
"""The 3-stage booking protocol: inquiry, hold, booking, cancellation, expiry."""

import logging
from datetime import timedelta

import pytest

from conftest import add_reservation_row
from freerider.domain.enums import ReservationStatus
from freerider.errors import ErrorKind
from freerider.services.reservation_lifecycle import ReservationLifecycle, to_millis


def inquiry(id=201, customer_id=1, vehicle_id=1, begin="2024-06-01 10:00:00",
            end="2024-06-01 18:00:00", status="Inquired"):
    return {
        "id": id, "customer_id": customer_id, "vehicle_id": vehicle_id,
        "begin": begin, "end": end, "pickup": "Berlin Hbf", "dropoff": "Potsdam",
        "status": status,
    }


@pytest.fixture
def lifecycle(store, factory, clock, seeded):
    return ReservationLifecycle(store, factory, clock)


class TestInquiry:
    def test_free_vehicle_is_held(self, lifecycle, store, clock):
        result = lifecycle.submit(inquiry())

        assert result.value.status is ReservationStatus.InquiryConfirmed
        hold = store.find_reservation_hold(201)
        assert hold.reservation.status is ReservationStatus.InquiryConfirmed
        assert hold.hold_expires == to_millis(clock()) + 10 * 60 * 1000

    def test_status_defaults_to_inquired(self, lifecycle):
        attributes = inquiry()
        del attributes["status"]
        assert lifecycle.submit(attributes).value.status is ReservationStatus.InquiryConfirmed

    def test_booked_vehicle_is_cancelled_and_not_stored(self, lifecycle, store, db):
        add_reservation_row(db, 145, 2, 1, "2024-06-01 16:00:00", "2024-06-02 10:00:00", "Booked")

        result = lifecycle.submit(inquiry())

        assert result.ok
        assert result.value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201) is None
        assert store.count_reservations() == 1

    def test_running_hold_blocks_second_inquiry(self, lifecycle, clock):
        lifecycle.submit(inquiry(id=201, customer_id=1))
        clock.advance(minutes=3)

        second = lifecycle.submit(inquiry(id=202, customer_id=2, begin="2024-06-01 12:00:00"))
        assert second.value.status is ReservationStatus.Cancelled

    def test_expired_hold_no_longer_blocks(self, lifecycle, clock):
        lifecycle.submit(inquiry(id=201, customer_id=1))
        clock.advance(minutes=10, seconds=1)

        second = lifecycle.submit(inquiry(id=202, customer_id=2))
        assert second.value.status is ReservationStatus.InquiryConfirmed

    def test_other_vehicle_unaffected(self, lifecycle):
        lifecycle.submit(inquiry(id=201, vehicle_id=1))
        assert lifecycle.submit(inquiry(id=202, vehicle_id=2)).value.status is ReservationStatus.InquiryConfirmed

    @pytest.mark.parametrize("begin, end", [
        ("2024-06-01 18:00:00", "2024-06-01 10:00:00"),
        ("2024-06-01 10:00:00", "2024-06-01 10:00:00"),
    ])
    def test_begin_must_precede_end(self, lifecycle, store, begin, end):
        assert lifecycle.submit(inquiry(begin=begin, end=end)).failure.kind is ErrorKind.BAD_REQUEST
        assert store.count_reservations() == 0

    def test_unknown_customer_or_vehicle(self, lifecycle):
        assert lifecycle.submit(inquiry(customer_id=9999)).failure.kind is ErrorKind.NOT_FOUND
        assert lifecycle.submit(inquiry(vehicle_id=9999)).failure.kind is ErrorKind.NOT_FOUND

    def test_new_id_with_non_inquiry_status(self, lifecycle):
        result = lifecycle.submit(inquiry(status="InquiryConfirmed"))
        assert result.failure.kind is ErrorKind.NOT_FOUND

    @pytest.mark.parametrize("attributes", [
        {"id": 201, "customer_id": 1, "vehicle_id": 1, "begin": "2024-06-01 10:00:00", "status": "Inquired"},
        inquiry(status="Pending"),
        inquiry(begin="2031-01-01 10:00:00", end="2031-01-01 12:00:00"),
        inquiry(id=-4),
        "not a map",
    ])
    def test_bad_request(self, lifecycle, attributes):
        assert lifecycle.submit(attributes).failure.kind is ErrorKind.BAD_REQUEST

    def test_inquire_rejects_non_inquired_entity(self, lifecycle, factory):
        reservation = factory.create_reservation(
            300, 1, 1, "2024-06-01 10:00:00", "2024-06-01 18:00:00", "A", "B", "Booked").unwrap()
        assert lifecycle.inquire(reservation).failure.kind is ErrorKind.BAD_REQUEST


class TestHoldTimeout:
    def test_confirm_within_hold_books(self, lifecycle, store, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=5)

        result = lifecycle.submit(inquiry(status="InquiryConfirmed"))

        assert result.value.status is ReservationStatus.Booked
        hold = store.find_reservation_hold(201)
        assert hold.reservation.status is ReservationStatus.Booked
        assert hold.hold_expires is None

        clock.advance(minutes=30)
        assert lifecycle.expire_holds() == 0
        assert store.find_reservation_by_id(201).status is ReservationStatus.Booked

    def test_confirm_with_booked_status_also_books(self, lifecycle, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=1)
        assert lifecycle.submit(inquiry(status="booked")).value.status is ReservationStatus.Booked

    def test_late_confirmation_is_cancelled_and_purged(self, lifecycle, store, clock, caplog):
        lifecycle.submit(inquiry())
        clock.advance(minutes=11)

        with caplog.at_level(logging.INFO):
            result = lifecycle.submit(inquiry(status="InquiryConfirmed"))

        assert result.value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201) is None
        assert "hold expired" in caplog.text

    def test_hold_expires_at_deadline(self, lifecycle, store, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=10)

        assert lifecycle.resubmit(201, 1, "InquiryConfirmed").value.status is ReservationStatus.Cancelled
        assert store.count_reservations() == 0

    def test_abandoned_hold_swept(self, lifecycle, store, clock):
        lifecycle.submit(inquiry(id=201))
        lifecycle.submit(inquiry(id=202, vehicle_id=2))
        clock.advance(minutes=4)
        lifecycle.submit(inquiry(id=203, customer_id=2, vehicle_id=3))

        assert lifecycle.expire_holds() == 0
        clock.advance(minutes=7)
        assert lifecycle.expire_holds() == 2
        assert [r.id for r in store.find_all_reservations()] == [203]

    def test_custom_hold_timeout(self, store, factory, clock, seeded):
        lifecycle = ReservationLifecycle(store, factory, clock, hold_timeout=timedelta(minutes=2))
        lifecycle.submit(inquiry())
        clock.advance(minutes=3)
        assert lifecycle.expire_holds() == 1


class TestResubmission:
    def test_other_status_cancels_hold(self, lifecycle, store, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=2)

        result = lifecycle.submit(inquiry(status="Inquired"))
        assert result.value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201) is None

    def test_other_customer_conflicts(self, lifecycle, store):
        lifecycle.submit(inquiry(customer_id=1))

        result = lifecycle.submit(inquiry(customer_id=2, status="InquiryConfirmed"))
        assert result.failure.kind is ErrorKind.CONFLICT
        assert store.find_reservation_by_id(201).status is ReservationStatus.InquiryConfirmed

    def test_resubmission_needs_customer(self, lifecycle):
        lifecycle.submit(inquiry())
        result = lifecycle.submit({"id": 201, "status": "InquiryConfirmed"})
        assert result.failure.kind is ErrorKind.BAD_REQUEST

    def test_resubmission_needs_status(self, lifecycle, store):
        lifecycle.submit(inquiry())
        attributes = inquiry()
        del attributes["status"]

        result = lifecycle.submit(attributes)
        assert result.failure.kind is ErrorKind.BAD_REQUEST
        assert "status required" in result.failure.message
        assert store.find_reservation_by_id(201).status is ReservationStatus.InquiryConfirmed

    def test_unknown_id(self, lifecycle):
        assert lifecycle.resubmit(999, 1, "Booked").failure.kind is ErrorKind.NOT_FOUND

    def test_booked_is_idempotent(self, lifecycle, store):
        lifecycle.submit(inquiry())
        lifecycle.submit(inquiry(status="InquiryConfirmed"))

        for status in ("InquiryConfirmed", "Booked", "Inquired"):
            assert lifecycle.resubmit(201, 1, status).value.status is ReservationStatus.Booked
        assert store.find_reservation_by_id(201).status is ReservationStatus.Booked

    def test_booked_cancel_keeps_record(self, lifecycle, store):
        lifecycle.submit(inquiry())
        lifecycle.submit(inquiry(status="InquiryConfirmed"))

        result = lifecycle.submit(inquiry(status="Cancelled"))
        assert result.value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201).status is ReservationStatus.Cancelled

        again = lifecycle.submit(inquiry(status="InquiryConfirmed"))
        assert again.value.status is ReservationStatus.Cancelled


class TestCancel:
    def test_cancel_hold_purges(self, lifecycle, store):
        lifecycle.submit(inquiry())

        assert lifecycle.cancel(201).value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201) is None

    def test_cancel_hold_twice(self, lifecycle, store):
        lifecycle.submit(inquiry())

        first = lifecycle.cancel(201)
        second = lifecycle.cancel(201)
        assert first.value.status is ReservationStatus.Cancelled
        assert second.value.status is ReservationStatus.Cancelled
        assert (second.value.id, second.value.customer_id, second.value.dropoff) == (201, 1, "Potsdam")
        assert store.count_reservations() == 0

    def test_cancel_after_sweep(self, lifecycle, store, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=11)
        assert lifecycle.expire_holds() == 1

        assert lifecycle.cancel(201).value.status is ReservationStatus.Cancelled
        assert store.find_cancelled_hold(201).begin == lifecycle.cancel(201).value.begin

    def test_resubmit_after_sweep(self, lifecycle, clock):
        lifecycle.submit(inquiry())
        clock.advance(minutes=11)
        lifecycle.expire_holds()

        assert lifecycle.submit(inquiry(status="InquiryConfirmed")).value.status is ReservationStatus.Cancelled
        assert lifecycle.submit(inquiry(customer_id=2, status="InquiryConfirmed")).failure.kind \
            is ErrorKind.CONFLICT

    def test_cancel_unknown_id(self, lifecycle):
        assert lifecycle.cancel(999).failure.kind is ErrorKind.NOT_FOUND

    def test_cancel_booked_retains(self, lifecycle, store):
        lifecycle.submit(inquiry())
        lifecycle.submit(inquiry(status="InquiryConfirmed"))

        assert lifecycle.cancel(201).value.status is ReservationStatus.Cancelled
        assert store.find_reservation_by_id(201).status is ReservationStatus.Cancelled

    def test_cancel_is_idempotent(self, lifecycle, store, db):
        add_reservation_row(db, 145, 1, 2, "2024-06-01 10:00:00", "2024-06-01 18:00:00", "Cancelled")

        first = lifecycle.cancel(145)
        second = lifecycle.cancel(145)
        assert first.ok and second.ok
        assert second.value.status is ReservationStatus.Cancelled
        assert store.count_reservations() == 1

    def test_cancelled_booking_frees_vehicle(self, lifecycle):
        lifecycle.submit(inquiry())
        lifecycle.submit(inquiry(status="InquiryConfirmed"))
        lifecycle.cancel(201)

        assert lifecycle.submit(inquiry(id=202, customer_id=2)).value.status is ReservationStatus.InquiryConfirmed
