import unittest
from datetime import date

from constants import SUMMARY_DAILY, SUMMARY_MONTHLY, SUMMARY_WEEKLY, TREND_DOWN, TREND_UP
from core.aggregations import (
    activity_level,
    available_years,
    behavior_split,
    calendar_buckets,
    calendar_days,
    compute_dashboard,
    compute_totals,
    compute_trend,
    daily_summaries,
    efficiency_trend,
    iso_week_key,
    lifetime_mode_totals,
    mode_totals,
    month_options,
    monthly_overview,
    monthly_rollup,
    monthly_summaries,
    period_summaries,
    recent_mode_series,
    summary_breakdown,
    summary_trends,
    weekly_summaries,
)
from core.filters import RideFilters
from core.ride_normalizer import normalize_row


def make_ride(index, **raw):
    return normalize_row(raw, index)


def sample_rides():
    return (
        make_ride(0, ride_id='a', date='2024-02-28', month='2', year='2024', distance_m=4000,
                  efficiency_wh_km=18, soc_usage_wh=100, ride_start_time='2024-02-28 08:00:00',
                  riding_m=3000, braking_m=500, coasting_m=500, eco_mode_distance_m=4000),
        make_ride(1, ride_id='b', date='2024-03-01', month='3', year='2024', distance_m=10000,
                  duration_secs=1200, efficiency_wh_km=20, soc_usage_wh=1234, top_speed_kmph=55,
                  ride_start_time='2024-03-01 09:00:00', riding_m=8000, braking_m=1000, coasting_m=1000,
                  ride_mode_distance_m=6000, sport_mode_distance_m=4000),
        make_ride(2, ride_id='c', date='2024-03-01', month='3', year='2024', distance_m=15000,
                  duration_secs=1800, efficiency_wh_km=30, soc_usage_wh=2345, top_speed_kmph=61.26,
                  ride_start_time='2024-03-01 18:30:00', riding_m=12000, braking_m=2000, coasting_m=1000,
                  sport_mode_distance_m=15000),
    )


class MonthlyRollupTests(unittest.TestCase):
    def test_two_rides_in_one_month(self):
        rides = [
            make_ride(0, month='3', year='2024', distance_m=10000, efficiency_wh_km=20),
            make_ride(1, month='3', year='2024', distance_m=15000, efficiency_wh_km=30),
        ]
        (march,) = monthly_rollup(rides)

        self.assertEqual(march.key, '2024-03')
        self.assertEqual(march.name, '03/24')
        self.assertEqual(march.distance, 25.0)
        self.assertEqual(march.efficiency, 25.0)
        self.assertEqual(march.count, 2)

    def test_energy_is_kwh_to_two_places(self):
        rollups = monthly_rollup(sample_rides())
        march = next(r for r in rollups if r.key == '2024-03')
        self.assertEqual(march.energy, round((1234 + 2345) / 1000, 2))

    def test_groups_keep_first_appearance_order(self):
        self.assertEqual([r.key for r in monthly_rollup(sample_rides())], ['2024-02', '2024-03'])

    def test_empty_collection(self):
        self.assertEqual(monthly_rollup([]), [])

    def test_overview_figures(self):
        overview = monthly_overview(monthly_rollup(sample_rides()))
        self.assertEqual(overview.months, 2)
        self.assertEqual(overview.avg_distance, 14.5)
        self.assertEqual(overview.total_energy, 3.7)

        empty = monthly_overview([])
        self.assertEqual((empty.months, empty.avg_distance, empty.total_energy), (0, 0.0, 0.0))


class CalendarTests(unittest.TestCase):
    def test_buckets_sum_per_start_day(self):
        buckets = calendar_buckets(sample_rides())
        self.assertEqual(buckets, {'2024-02-28': 4.0, '2024-03-01': 25.0})

    def test_rides_without_start_time_are_not_placed(self):
        self.assertEqual(calendar_buckets([make_ride(0, distance_m=5000, date='2024-03-01')]), {})

    def test_activity_levels(self):
        self.assertEqual(activity_level(0), 0)
        self.assertEqual(activity_level(5), 1)
        self.assertEqual(activity_level(5.1), 2)
        self.assertEqual(activity_level(15), 2)
        self.assertEqual(activity_level(30), 3)
        self.assertEqual(activity_level(30.1), 4)

    def test_year_grid_starts_on_sunday(self):
        cells = calendar_days({'2024-01-02': 12.0}, 2024)
        # 2024-01-01 is a Monday: one blank Sunday cell in front.
        self.assertIsNone(cells[0].date)
        self.assertEqual(cells[1].date, '2024-01-01')
        self.assertEqual(len(cells), 1 + 366)
        self.assertEqual(cells[2].level, 2)

    def test_years_and_month_options(self):
        rides = sample_rides() + (make_ride(3, month='12', year='2023'),)
        self.assertEqual(available_years(rides), [2024, 2023])
        self.assertEqual(
            month_options(rides),
            [('2024-03', 'Mar 2024'), ('2024-02', 'Feb 2024'), ('2023-12', 'Dec 2023')],
        )


class SummaryTests(unittest.TestCase):
    def test_iso_week_boundaries(self):
        rides = [
            make_ride(0, ride_id='mon', ride_start_time='2024-01-01', distance_m=1000),
            make_ride(1, ride_id='sun', ride_start_time='2023-12-31', distance_m=2000),
        ]
        weeks = weekly_summaries(rides)

        self.assertEqual([w.key for w in weeks], ['2024-W01', '2023-W52'])
        self.assertEqual(weeks[0].ride_ids, ('mon',))
        self.assertEqual(weeks[1].label, 'Week 52, 2023')

    def test_iso_week_key(self):
        self.assertEqual(iso_week_key(date(2024, 1, 1)), '2024-W01')
        self.assertEqual(iso_week_key(date(2023, 12, 31)), '2023-W52')

    def test_daily_summaries_newest_first(self):
        days = daily_summaries(sample_rides())

        self.assertEqual([d.key for d in days], ['2024-03-01', '2024-02-28'])
        self.assertEqual(days[0].ride_count, 2)
        self.assertEqual(days[0].total_distance, 25.0)
        self.assertEqual(days[0].total_duration, 50.0)
        self.assertEqual(days[0].total_energy, 3.58)
        self.assertEqual(days[0].avg_efficiency, 25.0)
        self.assertEqual(days[0].max_speed, 61.3)
        self.assertEqual(days[0].ride_ids, ('b', 'c'))

    def test_unparseable_dates_sort_last(self):
        rides = [make_ride(0, distance_m=1000), make_ride(1, date='2024-05-01', distance_m=1000)]
        self.assertEqual([d.key for d in daily_summaries(rides)], ['2024-05-01', 'N/A'])

    def test_monthly_summaries(self):
        months = monthly_summaries(sample_rides())

        self.assertEqual([m.key for m in months], ['2024-03', '2024-02'])
        self.assertEqual(months[0].days_active, 1)
        self.assertEqual(months[0].label, 'Mar 2024')
        self.assertEqual(months[0].kind, SUMMARY_MONTHLY)

    def test_period_summaries_dispatch(self):
        rides = sample_rides()
        self.assertEqual(period_summaries(rides, SUMMARY_DAILY), daily_summaries(rides))
        self.assertEqual(period_summaries(rides, SUMMARY_WEEKLY), weekly_summaries(rides))
        with self.assertRaises(ValueError):
            period_summaries(rides, 'hourly')

    def test_trend_against_previous_period(self):
        current, previous = daily_summaries(sample_rides())
        trend = compute_trend(current, previous, 'total_distance')

        self.assertEqual(trend.direction, TREND_UP)
        self.assertEqual(trend.value, 525.0)
        self.assertEqual(compute_trend(previous, current, 'total_distance').direction, TREND_DOWN)

    def test_trend_with_zero_previous_is_none(self):
        rides = [
            make_ride(0, ride_id='x', date='2024-03-02', distance_m=5000),
            make_ride(1, ride_id='y', date='2024-03-01', distance_m=0),
        ]
        current, previous = daily_summaries(rides)
        self.assertIsNone(compute_trend(current, previous, 'total_distance'))
        self.assertIsNone(compute_trend(current, None, 'total_distance'))
        self.assertEqual(summary_trends([current, previous], 'total_distance'), [None, None])

    def test_breakdown_per_ride_and_per_day(self):
        rides = sample_rides()
        day = daily_summaries(rides)[0]
        points = summary_breakdown(rides, day)
        self.assertEqual([p.name for p in points], ['Ride 1', 'Ride 2'])
        self.assertEqual([p.distance for p in points], [10.0, 15.0])

        month = monthly_summaries(rides)[0]
        (only_day,) = summary_breakdown(rides, month)
        self.assertEqual(only_day.name, '01')
        self.assertEqual(only_day.distance, 25.0)


class ModeAndTotalsTests(unittest.TestCase):
    def test_mode_totals_drop_zero_modes(self):
        totals = mode_totals(sample_rides())
        self.assertEqual(
            [(t.name, t.distance) for t in totals],
            [('Eco', 4.0), ('Ride', 6.0), ('Sport', 19.0)],
        )

    def test_lifetime_totals_sorted_largest_first(self):
        self.assertEqual([t.name for t in lifetime_mode_totals(sample_rides())], ['Sport', 'Ride', 'Eco'])

    def test_modes_that_round_to_zero_are_dropped(self):
        ride = make_ride(0, ride_id='x', eco_mode_distance_m=1, sport_mode_distance_m=2500)
        self.assertEqual([(t.name, t.distance) for t in lifetime_mode_totals([ride])], [('Sport', 2.5)])
        self.assertEqual(mode_totals([make_ride(0, eco_mode_distance_m=4)]), [])

    def test_efficiency_trend_keeps_last_rides_in_order(self):
        points = efficiency_trend(sample_rides(), window=2)
        self.assertEqual([(p.date, p.efficiency) for p in points], [('2024-03-01', 20.0), ('2024-03-01', 30.0)])
        self.assertEqual(len(efficiency_trend(sample_rides())), 3)
        self.assertEqual(efficiency_trend(()), [])

    def test_recent_mode_series_window(self):
        series = recent_mode_series(sample_rides(), window=2)
        self.assertEqual([entry['id'] for entry in series], ['b', 'c'])
        self.assertEqual(series[0]['Ride'], 6.0)
        self.assertEqual(series[1]['Eco'], 0.0)

    def test_behavior_split_over_components(self):
        behavior = behavior_split(sample_rides())
        self.assertEqual((behavior.riding, behavior.braking, behavior.coasting), (79.3, 12.1, 8.6))

    def test_totals_for_empty_selection_are_zero(self):
        totals = compute_totals(())
        self.assertEqual(totals.rides, 0)
        self.assertEqual(totals.distance, 0.0)

    def test_totals(self):
        totals = compute_totals(sample_rides())
        self.assertEqual(totals.rides, 3)
        self.assertEqual(totals.distance, 29.0)
        self.assertEqual(totals.top_speed, 61.3)
        self.assertEqual(totals.energy, 3.68)


class DashboardTests(unittest.TestCase):
    def test_filters_narrow_totals_but_not_history(self):
        rides = sample_rides()
        agg = compute_dashboard(rides, RideFilters(long_rides_only=True))

        self.assertEqual([r.id for r in agg.filtered], ['b', 'c'])
        self.assertEqual(agg.totals.rides, 2)
        self.assertEqual(len(agg.monthly), 2)
        self.assertEqual(len(agg.daily), 2)
        self.assertNotIn('Eco', [t.name for t in agg.lifetime_modes])
        self.assertEqual([p.efficiency for p in agg.efficiency_trend], [20.0, 30.0])
        self.assertEqual(agg.monthly_overview.months, 2)

    def test_recompute_is_idempotent(self):
        rides = sample_rides()
        filters = RideFilters(month='2024-03')
        self.assertEqual(compute_dashboard(rides, filters), compute_dashboard(rides, filters))

    def test_empty_collection(self):
        agg = compute_dashboard(())
        self.assertEqual(agg.filtered, ())
        self.assertEqual(agg.monthly, ())
        self.assertEqual(agg.weekly, ())
        self.assertEqual(agg.calendar, {})


if __name__ == "__main__":
    unittest.main()
