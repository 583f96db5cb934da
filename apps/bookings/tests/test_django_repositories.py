from contextlib import contextmanager
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.db import IntegrityError, OperationalError, transaction

from shared.application.message_bus import MessageBus
from shared.domain.errors import PersistenceError
from shared.domain.value_objects import DateRange, Money
from apps.bookings.application.coordinator import ReservationCoordinator
from apps.bookings.domain.availability import AvailabilityIndex
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.errors import ConflictError, LockTimeout
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.policy import ReservationPolicy
from apps.bookings.handlers import log_booking_event, register_event_handlers
from apps.bookings.infrastructure import django_orm
from apps.bookings.infrastructure.django_orm import DjangoUnitOfWork, set_lock_timeout
from apps.bookings.models import Booking as BookingModel
from apps.bookings.services import build_coordinator, get_coordinator
from apps.bookings.tasks import expire_pending_bookings
from apps.bookings.tests.factories import NOW, d, make_booking
from apps.properties.models import Property as PropertyModel

pytestmark = pytest.mark.django_db


class TestRepositories:
    def test_property_maps_to_domain(self, property_row):
        with DjangoUnitOfWork() as uow:
            prop = uow.properties.load_property(property_row.id, lock=True)

        assert prop.id == property_row.id
        assert prop.nightly_rate == Money(Decimal("80.00"), "USD")
        assert prop.name == "Seaside flat"

    def test_missing_rows_are_none(self):
        with DjangoUnitOfWork() as uow:
            assert uow.properties.load_property(uuid4()) is None
            assert uow.bookings.get_booking(uuid4()) is None

    def test_booking_round_trip(self, property_row):
        booking = make_booking(property_row.id, d(1), d(5))
        booking.confirm(payment_reference="pay_1", at=NOW + timedelta(minutes=2))

        with DjangoUnitOfWork() as uow:
            uow.bookings.save_booking(booking)

        row = BookingModel.objects.get(pk=booking.id)
        assert row.status == "confirmed"
        assert row.total_price == Decimal("320.00")
        assert row.updated_at == NOW + timedelta(minutes=2)

        with DjangoUnitOfWork() as uow:
            loaded = uow.bookings.get_booking(booking.id, lock=True)
        assert loaded.dates == DateRange(d(1), d(5))
        assert loaded.status is BookingStatus.CONFIRMED
        assert loaded.total_price == booking.total_price
        assert loaded.confirmed_at == booking.confirmed_at

    def test_rollback_on_error(self, property_row):
        booking = make_booking(property_row.id, d(1), d(5))

        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork() as uow:
                uow.bookings.save_booking(booking)
                raise RuntimeError("abort")

        assert not BookingModel.objects.filter(pk=booking.id).exists()

    def test_unique_backstop_surfaces_as_persistence_error(self, property_row):
        with DjangoUnitOfWork() as uow:
            uow.bookings.save_booking(make_booking(property_row.id, d(1), d(5)))

        with pytest.raises(PersistenceError):
            with DjangoUnitOfWork() as uow:
                uow.bookings.save_booking(make_booking(property_row.id, d(1), d(5)))

        assert BookingModel.objects.count() == 1

    def test_pending_listing_is_oldest_first(self, property_row):
        newer = make_booking(property_row.id, d(10), d(12), at=NOW + timedelta(minutes=5))
        older = make_booking(property_row.id, d(1), d(5), at=NOW)
        paid = make_booking(property_row.id, d(20), d(22), at=NOW)
        paid.confirm()
        with DjangoUnitOfWork() as uow:
            for booking in (newer, older, paid):
                uow.bookings.save_booking(booking)

        with DjangoUnitOfWork() as uow:
            pending = uow.bookings.list_pending_created_before(NOW + timedelta(hours=1))
            every = uow.bookings.load_bookings_for_property(property_row.id)

        assert [b.id for b in pending] == [older.id, newer.id]
        assert len(every) == 3

    def test_unsupported_currency_is_rejected_by_the_database(self):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PropertyModel.objects.create(
                    host_id=uuid4(),
                    name="London loft",
                    description="",
                    location="London",
                    price_per_night=Decimal("90.00"),
                    currency="GBP",
                )

    def test_unusable_row_surfaces_as_persistence_error(self):
        row = PropertyModel(
            id=uuid4(),
            host_id=uuid4(),
            name="Imported listing",
            price_per_night=Decimal("90.00"),
            currency="GBP",
        )

        with pytest.raises(PersistenceError, match="unusable data"):
            django_orm._to_domain_property(row)


class _FailingQuerySet:
    def __init__(self, error):
        self.error = error

    def first(self):
        raise self.error


def _database_error(sqlstate, message):
    driver_error = Exception(message)
    driver_error.sqlstate = sqlstate
    error = OperationalError(message)
    error.__cause__ = driver_error
    return error


class _RecordingConnection:
    def __init__(self, vendor):
        self.vendor = vendor
        self.executed = []

    @contextmanager
    def cursor(self):
        yield self

    def execute(self, sql, params):
        self.executed.append((sql, params))


class TestRowLockTimeout:
    def test_postgres_transactions_bound_lock_waits(self):
        connection = _RecordingConnection("postgresql")

        set_lock_timeout(connection, 2.5)

        assert connection.executed == [
            ("SELECT set_config('lock_timeout', %s, true)", ["2500ms"]),
        ]

    def test_other_backends_are_left_alone(self):
        connection = _RecordingConnection("sqlite")

        set_lock_timeout(connection, 2.5)

        assert connection.executed == []

    def test_lock_not_granted_is_a_lock_timeout(self, monkeypatch):
        error = _database_error("55P03", "canceling statement due to lock timeout")
        monkeypatch.setattr(django_orm, "_lock_queryset_if_possible", lambda qs: _FailingQuerySet(error))
        property_id, booking_id = uuid4(), uuid4()

        with pytest.raises(LockTimeout) as exc:
            with DjangoUnitOfWork(lock_timeout=0.5) as uow:
                uow.properties.load_property(property_id, lock=True)
        assert exc.value.resource_id == property_id
        assert exc.value.timeout == 0.5

        with pytest.raises(LockTimeout) as exc:
            with DjangoUnitOfWork(lock_timeout=0.5) as uow:
                uow.bookings.get_booking(booking_id, lock=True)
        assert exc.value.resource_id == booking_id

    def test_other_failures_stay_persistence_errors(self, monkeypatch):
        error = _database_error("08006", "server closed the connection unexpectedly")
        monkeypatch.setattr(django_orm, "_lock_queryset_if_possible", lambda qs: _FailingQuerySet(error))

        with pytest.raises(PersistenceError):
            with DjangoUnitOfWork(lock_timeout=0.5) as uow:
                uow.properties.load_property(uuid4(), lock=True)

    def test_engine_wiring_sets_the_database_timeout(self, settings):
        settings.BOOKING_ENGINE = {**settings.BOOKING_ENGINE, "LOCK_TIMEOUT_SECONDS": 1.5}

        coordinator = build_coordinator()

        with coordinator._uow_factory() as uow:
            assert uow.lock_timeout == 1.5
            assert uow.properties.lock_timeout == 1.5


class TestCoordinatorOnDjango:
    def test_reserve_conflict_and_cancel(self, property_row):
        coordinator = build_coordinator()
        user = uuid4()

        booking = coordinator.reserve(property_row.id, user, d(1), d(5))
        with pytest.raises(ConflictError):
            coordinator.reserve(property_row.id, uuid4(), d(3), d(6))

        coordinator.cancel(booking.id, "guest request")
        again = coordinator.reserve(property_row.id, uuid4(), d(3), d(6))

        assert BookingModel.objects.get(pk=booking.id).status == "canceled"
        assert BookingModel.objects.get(pk=again.id).total_price == Decimal("240.00")

    def test_fresh_process_sees_existing_bookings(self, property_row):
        booking = build_coordinator().reserve(property_row.id, uuid4(), d(1), d(5))

        other = build_coordinator(index=AvailabilityIndex())

        assert [b.id for b in other.conflicts(property_row.id, d(2), d(3))] == [booking.id]

    def test_events_go_out_on_commit(self, property_row, django_capture_on_commit_callbacks):
        bus = MessageBus()
        seen = []
        bus.register_event_handler(BookingCreated, seen.append)
        coordinator = ReservationCoordinator(
            uow_factory=lambda: DjangoUnitOfWork(bus),
            index=AvailabilityIndex(),
            policy=ReservationPolicy(allow_past_start=True),
        )

        with django_capture_on_commit_callbacks(execute=True):
            coordinator.reserve(property_row.id, uuid4(), d(1), d(5))

        assert len(seen) == 1

    def test_coordinator_is_memoized(self):
        assert get_coordinator() is get_coordinator()


class TestHoldExpiry:
    def test_task_cancels_stale_holds(self, property_row, settings):
        settings.BOOKING_ENGINE = {**settings.BOOKING_ENGINE, "PENDING_HOLD_MINUTES": 15}
        coordinator = get_coordinator()
        stale = coordinator.reserve(property_row.id, uuid4(), d(1), d(5))
        fresh = coordinator.reserve(property_row.id, uuid4(), d(5), d(8))
        BookingModel.objects.filter(pk=stale.id).update(
            created_at=stale.created_at - timedelta(hours=1)
        )

        result = expire_pending_bookings()

        assert result == {"expired": 1}
        assert BookingModel.objects.get(pk=stale.id).status == "canceled"
        assert BookingModel.objects.get(pk=fresh.id).status == "pending"
        assert coordinator.is_available(property_row.id, d(1), d(5))


def test_audit_handlers_are_registered_once():
    bus = MessageBus()
    register_event_handlers(bus)
    register_event_handlers(bus)

    assert bus.handlers_for(BookingCreated) == [log_booking_event]
