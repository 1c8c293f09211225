import itertools
import unittest

from core.filters import (
    RideFilters,
    apply_filters,
    build_predicates,
    min_distance_filter,
)
from core.ride_normalizer import normalize_row


def rides():
    return (
        normalize_row({'ride_id': 'a', 'month': '2', 'year': '2024', 'distance_m': 12000}, 0),
        normalize_row({'ride_id': 'b', 'month': '3', 'year': '2024', 'distance_m': 4000}, 1),
        normalize_row({'ride_id': 'c', 'month': '3', 'year': '2024', 'distance_m': 10000}, 2),
        normalize_row({'ride_id': 'd', 'month': '3', 'year': '2023', 'distance_m': 31000}, 3),
    )


def ids(selection):
    return [ride.id for ride in selection]


class RideFiltersTests(unittest.TestCase):
    def test_no_filters_keeps_everything_in_order(self):
        self.assertEqual(ids(apply_filters(rides())), ['a', 'b', 'c', 'd'])
        self.assertEqual(ids(apply_filters(rides(), RideFilters())), ['a', 'b', 'c', 'd'])

    def test_month_filter(self):
        self.assertEqual(ids(apply_filters(rides(), RideFilters(month='2024-03'))), ['b', 'c'])

    def test_long_rides_are_inclusive_of_ten_km(self):
        self.assertEqual(ids(apply_filters(rides(), RideFilters(long_rides_only=True))), ['a', 'c', 'd'])
        self.assertTrue(min_distance_filter(10)(rides()[2]))

    def test_filters_combine_with_and(self):
        filters = RideFilters(month='2024-03', long_rides_only=True)
        self.assertEqual(ids(apply_filters(rides(), filters)), ['c'])

    def test_predicate_order_does_not_matter(self):
        filters = RideFilters(month='2024-03', long_rides_only=True, period_key='2024-03')
        predicates = build_predicates(filters)
        self.assertEqual(len(predicates), 3)

        expected = ids(apply_filters(rides(), filters))
        for ordering in itertools.permutations(predicates):
            selected = [r for r in rides() if all(p(r) for p in ordering)]
            self.assertEqual(ids(selected), expected)

    def test_toggle_period(self):
        filters = RideFilters().toggle_period('2024-03')
        self.assertEqual(filters.period_key, '2024-03')
        self.assertIsNone(filters.toggle_period('2024-03').period_key)
        self.assertEqual(filters.toggle_period('2024-02').period_key, '2024-02')
        self.assertIsNone(filters.toggle_period(None).period_key)

    def test_all_months_clears_month(self):
        filters = RideFilters(month='2024-03')
        self.assertIsNone(filters.with_month('all').month)
        self.assertEqual(filters.with_month('2024-02').month, '2024-02')

    def test_is_active_and_cleared(self):
        self.assertFalse(RideFilters().is_active)
        filters = RideFilters().with_long_rides(True)
        self.assertTrue(filters.is_active)
        self.assertEqual(filters.cleared(), RideFilters())

    def test_empty_result_is_empty_tuple(self):
        self.assertEqual(apply_filters(rides(), RideFilters(month='1999-01')), ())


if __name__ == "__main__":
    unittest.main()
