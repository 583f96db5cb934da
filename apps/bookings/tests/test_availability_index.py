from uuid import uuid4

import pytest

from shared.domain.value_objects import DateRange
from apps.bookings.domain.availability import AvailabilityIndex
from apps.bookings.tests.factories import d, make_booking


@pytest.fixture
def property_id():
    return uuid4()


@pytest.fixture
def loaded(property_id):
    """Index over three bookings: [1,5) [5,8) [10,20)"""
    index = AvailabilityIndex()
    bookings = [
        make_booking(property_id, d(10), d(20)),
        make_booking(property_id, d(1), d(5)),
        make_booking(property_id, d(5), d(8)),
    ]
    index.rebuild(property_id, bookings)
    return index, bookings


def ids(bookings):
    return [b.id for b in bookings]


class TestConflicts:
    def test_unloaded_property_has_no_conflicts(self, property_id):
        index = AvailabilityIndex()
        assert not index.is_loaded(property_id)
        assert index.conflicts(property_id, DateRange(d(1), d(5))) == []

    def test_results_are_ordered_by_start(self, loaded, property_id):
        index, (late, first, second) = loaded
        found = index.conflicts(property_id, DateRange(d(3), d(12)))
        assert ids(found) == [first.id, second.id, late.id]

    def test_boundaries_are_half_open(self, loaded, property_id):
        index, (late, first, second) = loaded
        assert index.conflicts(property_id, DateRange(d(8), d(10))) == []
        assert ids(index.conflicts(property_id, DateRange(d(7), d(8)))) == [second.id]
        assert ids(index.conflicts(property_id, DateRange(d(19), d(25)))) == [late.id]
        assert index.conflicts(property_id, DateRange(d(20), d(25))) == []

    def test_long_booking_found_past_shorter_ones(self, property_id):
        index = AvailabilityIndex()
        long_stay = make_booking(property_id, d(1), d(30))
        short = make_booking(property_id, d(2), d(3))
        index.rebuild(property_id, [short, long_stay])

        found = index.conflicts(property_id, DateRange(d(20), d(21)))

        assert ids(found) == [long_stay.id]

    def test_other_properties_are_isolated(self, loaded, property_id):
        index, _ = loaded
        assert index.conflicts(uuid4(), DateRange(d(1), d(30))) == []
        assert not index.is_available(property_id, DateRange(d(1), d(2)))


class TestMutation:
    def test_rebuild_skips_canceled_bookings(self, property_id):
        index = AvailabilityIndex()
        canceled = make_booking(property_id, d(1), d(5))
        canceled.cancel("changed plans")

        index.rebuild(property_id, [canceled])

        assert index.is_loaded(property_id)
        assert index.bookings_for(property_id) == []

    def test_rebuild_rejects_foreign_bookings(self, property_id):
        with pytest.raises(ValueError):
            AvailabilityIndex().rebuild(property_id, [make_booking(uuid4(), d(1), d(2))])

    def test_insert_and_remove(self, loaded, property_id):
        index, _ = loaded
        booking = make_booking(property_id, d(8), d(10))

        index.insert(booking)
        assert ids(index.conflicts(property_id, DateRange(d(9), d(10)))) == [booking.id]
        assert index.owner_of(booking.id) == property_id

        assert index.remove(booking.id) is True
        assert index.remove(booking.id) is False
        assert index.conflicts(property_id, DateRange(d(8), d(10))) == []
        assert index.owner_of(booking.id) is None

    def test_insert_replaces_existing_entry(self, loaded, property_id):
        index, (_, first, _) = loaded
        first.confirm()

        index.insert(first)

        assert [b.id for b in index.bookings_for(property_id)].count(first.id) == 1

    def test_insert_of_canceled_booking_drops_it(self, loaded, property_id):
        index, (_, first, _) = loaded
        first.cancel()

        index.insert(first)

        assert index.conflicts(property_id, DateRange(d(1), d(5))) == []

    def test_insert_ignores_unloaded_property(self):
        index = AvailabilityIndex()
        booking = make_booking(uuid4(), d(1), d(2))

        index.insert(booking)

        assert not index.is_loaded(booking.property_id)
        assert index.owner_of(booking.id) is None

    def test_invalidate(self, loaded, property_id):
        index, (late, _, _) = loaded

        index.invalidate(property_id)

        assert not index.is_loaded(property_id)
        assert index.owner_of(late.id) is None

    def test_invalidate_everything(self, loaded, property_id):
        index, _ = loaded
        other = uuid4()
        index.rebuild(other, [])

        index.invalidate()

        assert not index.is_loaded(property_id)
        assert not index.is_loaded(other)


class TestIsolation:
    def test_stored_entries_are_copies(self, property_id):
        booking = make_booking(property_id, d(1), d(5))
        index = AvailabilityIndex()
        index.rebuild(property_id, [booking])

        booking.cancel()

        assert ids(index.conflicts(property_id, DateRange(d(1), d(5)))) == [booking.id]

    def test_returned_entries_are_copies(self, loaded, property_id):
        index, (_, first, _) = loaded

        for found in index.conflicts(property_id, DateRange(d(1), d(5))):
            found.cancel()
        for listed in index.bookings_for(property_id):
            listed.cancel()

        assert ids(index.conflicts(property_id, DateRange(d(1), d(5)))) == [first.id]
        assert len(index.bookings_for(property_id)) == 3
