from decimal import Decimal
from uuid import uuid4

import pytest

from shared.application.message_bus import MessageBus
from apps.bookings.application.coordinator import ReservationCoordinator
from apps.bookings.application.locks import PropertyLockRegistry
from apps.bookings.domain.availability import AvailabilityIndex
from apps.bookings.infrastructure.memory import InMemoryStorage, InMemoryUnitOfWork
from apps.bookings.tests.factories import Clock, make_property


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def bus():
    return MessageBus()


@pytest.fixture
def p1(storage):
    return storage.add_property(make_property("80.00", name="p1"))


@pytest.fixture
def p2(storage):
    return storage.add_property(make_property("120.00", name="p2"))


@pytest.fixture
def index():
    return AvailabilityIndex()


@pytest.fixture
def coordinator(storage, bus, clock, index):
    return ReservationCoordinator(
        uow_factory=lambda: InMemoryUnitOfWork(storage, bus),
        index=index,
        locks=PropertyLockRegistry(timeout=2.0),
        clock=clock,
    )


@pytest.fixture
def property_row(db):
    from apps.properties.models import Property as PropertyModel

    return PropertyModel.objects.create(
        host_id=uuid4(),
        name="Seaside flat",
        description="Two rooms near the beach",
        location="Agadir",
        price_per_night=Decimal("80.00"),
    )
