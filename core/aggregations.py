"""
Aggregation engine for the ride dashboard.

Every function here is a pure derivation of a ride collection (already
filtered by the caller where that matters). Nothing is cached or mutated;
the dashboard recomputes the whole set on every data or filter change.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date as date_cls, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from constants import (
    CALENDAR_LEVEL_BOUNDS,
    CALENDAR_MAX_LEVEL,
    EFFICIENCY_TREND_WINDOW,
    MODE_NAMES,
    MONTH_ABBREVIATIONS,
    RECENT_MODE_WINDOW,
    SUMMARY_DAILY,
    SUMMARY_MONTHLY,
    SUMMARY_WEEKLY,
    TREND_DOWN,
    TREND_SAME,
    TREND_UP,
)
from core.filters import RideFilters, apply_filters
from core.ride_normalizer import Behavior, Ride, behavior_from_components


FRAME_COLUMNS = (
    'id', 'date', 'month', 'year', 'month_key', 'start_date', 'distance',
    'duration', 'efficiency', 'top_speed', 'energy_used',
    'riding_m', 'braking_m', 'coasting_m',
)


# --- Result types --------------------------------------------------------------

@dataclass(frozen=True)
class MonthlyRollup:
    key: str
    name: str
    year: int
    month: str
    distance: float
    efficiency: float
    energy: float
    count: int


@dataclass(frozen=True)
class MonthlyOverview:
    months: int = 0
    avg_distance: float = 0.0
    total_energy: float = 0.0


@dataclass(frozen=True)
class EfficiencyPoint:
    date: str
    efficiency: float


@dataclass(frozen=True)
class PeriodSummary:
    key: str
    ride_count: int
    total_distance: float
    total_duration: float
    total_energy: float
    avg_efficiency: float
    max_speed: float
    ride_ids: Tuple[str, ...]

    kind = ''


@dataclass(frozen=True)
class DailySummary(PeriodSummary):
    kind = SUMMARY_DAILY

    @property
    def label(self) -> str:
        return self.key


@dataclass(frozen=True)
class WeeklySummary(PeriodSummary):
    days_active: int = 0

    kind = SUMMARY_WEEKLY

    @property
    def label(self) -> str:
        year, week = self.key.split('-W')
        return f"Week {week}, {year}"


@dataclass(frozen=True)
class MonthlySummary(PeriodSummary):
    days_active: int = 0
    year: int = 0
    month: str = ''

    kind = SUMMARY_MONTHLY

    @property
    def month_name(self) -> str:
        return month_abbreviation(self.month)

    @property
    def label(self) -> str:
        return f"{self.month_name} {self.year}"


@dataclass(frozen=True)
class TrendDelta:
    change: float
    value: float
    direction: str


@dataclass(frozen=True)
class CalendarBucket:
    date: Optional[str]
    distance: float
    level: int


@dataclass(frozen=True)
class ModeTotal:
    name: str
    distance: float


@dataclass(frozen=True)
class BreakdownPoint:
    name: str
    distance: float
    efficiency: float


@dataclass(frozen=True)
class RideTotals:
    distance: float = 0.0
    efficiency: float = 0.0
    top_speed: float = 0.0
    rides: int = 0
    duration: float = 0.0
    energy: float = 0.0
    behavior: Behavior = field(default_factory=Behavior)


@dataclass(frozen=True)
class DashboardAggregates:
    filters: RideFilters
    filtered: Tuple[Ride, ...]
    totals: RideTotals
    behavior: Behavior
    monthly: Tuple[MonthlyRollup, ...]
    monthly_overview: MonthlyOverview
    calendar: Dict[str, float]
    years: Tuple[int, ...]
    month_options: Tuple[Tuple[str, str], ...]
    recent_modes: Tuple[Dict[str, object], ...]
    efficiency_trend: Tuple[EfficiencyPoint, ...]
    lifetime_modes: Tuple[ModeTotal, ...]
    daily: Tuple[DailySummary, ...]
    weekly: Tuple[WeeklySummary, ...]
    monthly_summaries: Tuple[MonthlySummary, ...]


# --- Helpers -----------------------------------------------------------------

def month_abbreviation(month) -> str:
    try:
        index = int(month) - 1
    except (TypeError, ValueError):
        return 'Unknown'
    if 0 <= index < len(MONTH_ABBREVIATIONS):
        return MONTH_ABBREVIATIONS[index]
    return 'Unknown'


def iso_week_key(day: date_cls) -> str:
    """ISO-8601 week key, e.g. 2024-01-01 -> '2024-W01', 2023-12-31 -> '2023-W52'."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def _parse_display_date(value: str) -> Optional[date_cls]:
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def ride_day(ride: Ride) -> Optional[date_cls]:
    """Calendar day of a ride: its start time, else its display date."""
    return ride.start_date or _parse_display_date(ride.date)


def rides_to_frame(rides: Sequence[Ride]) -> pd.DataFrame:
    """Flatten rides into one row each, in collection order."""
    records = [
        {
            'id': ride.id,
            'date': ride.date,
            'month': ride.month,
            'year': ride.year,
            'month_key': ride.month_key,
            'start_date': ride.start_date,
            'distance': ride.distance,
            'duration': ride.duration,
            'efficiency': ride.efficiency,
            'top_speed': ride.top_speed,
            'energy_used': ride.energy_used,
            'riding_m': ride.distance_components.riding,
            'braking_m': ride.distance_components.braking,
            'coasting_m': ride.distance_components.coasting,
        }
        for ride in rides
    ]
    return pd.DataFrame.from_records(records, columns=list(FRAME_COLUMNS))


def _round(value, places: int) -> float:
    return float(round(float(value), places))


# --- Monthly rollup ------------------------------------------------------------

def monthly_rollup(rides: Sequence[Ride]) -> List[MonthlyRollup]:
    """
    Per (year, month) distance, mean efficiency, energy in kWh and ride count.

    Groups come out in order of first appearance. Efficiency is the plain
    mean across rides, not weighted by distance.
    """
    if not rides:
        return []

    frame = rides_to_frame(rides)
    grouped = frame.groupby('month_key', sort=False).agg(
        year=('year', 'first'),
        month=('month', 'first'),
        distance=('distance', 'sum'),
        efficiency=('efficiency', 'mean'),
        energy=('energy_used', 'sum'),
        count=('id', 'size'),
    )

    return [
        MonthlyRollup(
            key=key,
            name=f"{row['month']}/{str(row['year'])[-2:]}",
            year=int(row['year']),
            month=row['month'],
            distance=_round(row['distance'], 1),
            efficiency=_round(row['efficiency'], 1),
            energy=_round(row['energy'] / 1000, 2),
            count=int(row['count']),
        )
        for key, row in grouped.iterrows()
    ]


def monthly_overview(rollups: Sequence[MonthlyRollup]) -> MonthlyOverview:
    """Month count, mean km per month and total kWh shown above the monthly chart."""
    if not rollups:
        return MonthlyOverview()
    distance = sum(r.distance for r in rollups)
    return MonthlyOverview(
        months=len(rollups),
        avg_distance=_round(distance / len(rollups), 1),
        total_energy=_round(sum(r.energy for r in rollups), 1),
    )


# --- Calendar ------------------------------------------------------------------

def calendar_buckets(rides: Sequence[Ride]) -> Dict[str, float]:
    """ISO date -> total km. Rides without a start time are not placed."""
    buckets: Dict[str, float] = {}
    for ride in rides:
        day = ride.start_date
        if day is None:
            continue
        key = day.isoformat()
        buckets[key] = buckets.get(key, 0.0) + ride.distance
    return buckets


def activity_level(distance: float) -> int:
    """0 for no riding, then (0, 5], (5, 15], (15, 30] and above 30 km."""
    if distance <= 0:
        return 0
    for level, upper in enumerate(CALENDAR_LEVEL_BOUNDS, start=1):
        if distance <= upper:
            return level
    return CALENDAR_MAX_LEVEL


def calendar_days(buckets: Dict[str, float], year: int) -> List[CalendarBucket]:
    """One cell per day of ``year``, padded at the front so the grid starts on Sunday."""
    first = date_cls(year, 1, 1)
    padding = (first.weekday() + 1) % 7
    cells = [CalendarBucket(date=None, distance=0.0, level=0) for _ in range(padding)]

    days_in_year = 366 if calendar.isleap(year) else 365
    for offset in range(days_in_year):
        key = (first + timedelta(days=offset)).isoformat()
        distance = buckets.get(key, 0.0)
        cells.append(CalendarBucket(date=key, distance=distance, level=activity_level(distance)))
    return cells


def available_years(rides: Sequence[Ride]) -> List[int]:
    return sorted({ride.year for ride in rides}, reverse=True)


def month_options(rides: Sequence[Ride]) -> List[Tuple[str, str]]:
    """(key, label) pairs for the month filter, newest first."""
    keys = sorted({ride.month_key for ride in rides}, reverse=True)
    options = []
    for key in keys:
        year, _, month = key.partition('-')
        options.append((key, f"{month_abbreviation(month)} {year}"))
    return options


# --- Period summaries ----------------------------------------------------------

def _summary_frame(frame: pd.DataFrame, key_column: str) -> pd.DataFrame:
    return frame.groupby(key_column, sort=False).agg(
        ride_count=('id', 'size'),
        total_distance=('distance', 'sum'),
        total_duration=('duration', 'sum'),
        total_energy=('energy_used', 'sum'),
        avg_efficiency=('efficiency', 'mean'),
        max_speed=('top_speed', 'max'),
        days_active=('date', 'nunique'),
        ride_ids=('id', list),
        year=('year', 'first'),
        month=('month', 'first'),
    )


def _summary_values(key: str, row) -> dict:
    return dict(
        key=key,
        ride_count=int(row['ride_count']),
        total_distance=_round(row['total_distance'], 2),
        total_duration=_round(row['total_duration'], 0),
        total_energy=_round(row['total_energy'] / 1000, 2),
        avg_efficiency=_round(row['avg_efficiency'], 1),
        max_speed=_round(row['max_speed'], 1),
        ride_ids=tuple(row['ride_ids']),
    )


def daily_summaries(rides: Sequence[Ride]) -> List[DailySummary]:
    """Per display date, newest first; dates that do not parse sort last."""
    if not rides:
        return []
    grouped = _summary_frame(rides_to_frame(rides), 'date')
    summaries = [DailySummary(**_summary_values(key, row)) for key, row in grouped.iterrows()]
    days = {summary.key: _parse_display_date(summary.key) for summary in summaries}

    def newest_first(summary):
        day = days[summary.key]
        return (day is None, -day.toordinal() if day is not None else 0)

    return sorted(summaries, key=newest_first)


def weekly_summaries(rides: Sequence[Ride]) -> List[WeeklySummary]:
    """Per ISO week, newest first. Rides with no usable date are left out."""
    frame = rides_to_frame(rides)
    if frame.empty:
        return []
    frame['week'] = [
        iso_week_key(day) if day is not None else None
        for day in (ride_day(ride) for ride in rides)
    ]
    frame = frame[frame['week'].notna()]
    if frame.empty:
        return []
    grouped = _summary_frame(frame, 'week').sort_index(ascending=False)
    return [
        WeeklySummary(**_summary_values(key, row), days_active=int(row['days_active']))
        for key, row in grouped.iterrows()
    ]


def monthly_summaries(rides: Sequence[Ride]) -> List[MonthlySummary]:
    if not rides:
        return []
    grouped = _summary_frame(rides_to_frame(rides), 'month_key').sort_index(ascending=False)
    return [
        MonthlySummary(
            **_summary_values(key, row),
            days_active=int(row['days_active']),
            year=int(row['year']),
            month=row['month'],
        )
        for key, row in grouped.iterrows()
    ]


def period_summaries(rides: Sequence[Ride], kind: str) -> List[PeriodSummary]:
    builders = {
        SUMMARY_DAILY: daily_summaries,
        SUMMARY_WEEKLY: weekly_summaries,
        SUMMARY_MONTHLY: monthly_summaries,
    }
    if kind not in builders:
        raise ValueError(f"Unknown summary kind: {kind}")
    return builders[kind](rides)


def compute_trend(current, previous, metric: str) -> Optional[TrendDelta]:
    """Percent change of ``metric`` against the previous (older) period, or None."""
    if previous is None:
        return None
    previous_value = float(getattr(previous, metric))
    if previous_value == 0:
        return None
    change = (float(getattr(current, metric)) - previous_value) / previous_value * 100
    if change > 0:
        direction = TREND_UP
    elif change < 0:
        direction = TREND_DOWN
    else:
        direction = TREND_SAME
    return TrendDelta(change=change, value=round(abs(change), 1), direction=direction)


def summary_trends(summaries: Sequence[PeriodSummary], metric: str) -> List[Optional[TrendDelta]]:
    """Trend of each summary against the next one in a newest-first sequence."""
    trends = []
    for index, summary in enumerate(summaries):
        previous = summaries[index + 1] if index + 1 < len(summaries) else None
        trends.append(compute_trend(summary, previous, metric))
    return trends


def summary_breakdown(rides: Sequence[Ride], summary: PeriodSummary) -> List[BreakdownPoint]:
    """Chart points for one summary: each ride for a day, each day for a week or month."""
    members = set(summary.ride_ids)
    selected = [ride for ride in rides if ride.id in members]
    if summary.kind == SUMMARY_DAILY:
        return [
            BreakdownPoint(name=f"Ride {i}", distance=ride.distance, efficiency=ride.efficiency)
            for i, ride in enumerate(selected, start=1)
        ]
    if not selected:
        return []

    frame = rides_to_frame(selected)
    per_day = frame.groupby('date', sort=False).agg(
        distance=('distance', 'sum'),
        efficiency=('efficiency', 'mean'),
    )
    points = []
    for day, row in per_day.iterrows():
        parts = str(day).split('-')
        if summary.kind == SUMMARY_WEEKLY:
            name = '/'.join(parts[1:]) if len(parts) > 1 else str(day)
        else:
            name = parts[2] if len(parts) > 2 else str(day)
        points.append(BreakdownPoint(
            name=name,
            distance=_round(row['distance'], 2),
            efficiency=_round(row['efficiency'], 1),
        ))

    if summary.kind == SUMMARY_MONTHLY:
        def sort_key(point):
            return int(point.name) if point.name.isdigit() else 0
        return sorted(points, key=sort_key)
    return sorted(points, key=lambda point: point.name)


# --- Modes -------------------------------------------------------------------

def mode_totals(
    rides: Sequence[Ride],
    window: Optional[int] = None,
    sort_desc: bool = False,
) -> List[ModeTotal]:
    """
    Kilometres per mode, summed over the rides (or the last ``window`` rides).

    Modes with no distance are left out. Display order follows the mode
    table unless ``sort_desc`` asks for the largest first.
    """
    selected = list(rides)[-window:] if window else list(rides)
    if not selected:
        return []

    matrix = np.array([[ride.modes.get(mode, 0.0) for mode in MODE_NAMES] for ride in selected], dtype=float)
    totals_km = matrix.sum(axis=0) / 1000

    rounded = [(mode, _round(km, 2)) for mode, km in zip(MODE_NAMES, totals_km)]
    totals = [ModeTotal(name=mode, distance=km) for mode, km in rounded if km > 0]
    if sort_desc:
        totals.sort(key=lambda item: item.distance, reverse=True)
    return totals


def lifetime_mode_totals(rides: Sequence[Ride]) -> List[ModeTotal]:
    return mode_totals(rides, sort_desc=True)


def recent_mode_series(rides: Sequence[Ride], window: int = RECENT_MODE_WINDOW) -> List[Dict[str, object]]:
    """Per-ride km in each mode for the last ``window`` rides (stacked bar data)."""
    series = []
    for ride in list(rides)[-window:]:
        entry: Dict[str, object] = {'date': ride.date, 'id': ride.id}
        for mode in MODE_NAMES:
            entry[mode] = _round(ride.modes.get(mode, 0.0) / 1000, 2)
        series.append(entry)
    return series


def ride_mode_breakdown(ride: Ride) -> List[ModeTotal]:
    return mode_totals([ride])


def efficiency_trend(rides: Sequence[Ride], window: int = EFFICIENCY_TREND_WINDOW) -> List[EfficiencyPoint]:
    """Wh/km of each of the last ``window`` rides, oldest first."""
    return [EfficiencyPoint(date=ride.date, efficiency=ride.efficiency) for ride in list(rides)[-window:]]


# --- Behavior and totals -------------------------------------------------------

def behavior_split(rides: Sequence[Ride]) -> Behavior:
    """Riding/braking/coasting share of the summed distance components."""
    riding = sum(ride.distance_components.riding for ride in rides)
    braking = sum(ride.distance_components.braking for ride in rides)
    coasting = sum(ride.distance_components.coasting for ride in rides)
    return behavior_from_components(riding, braking, coasting)


def compute_totals(rides: Sequence[Ride]) -> RideTotals:
    """Headline figures for the filtered rides; all zero for an empty selection."""
    if not rides:
        return RideTotals()

    frame = rides_to_frame(rides)
    return RideTotals(
        distance=_round(frame['distance'].sum(), 1),
        efficiency=_round(frame['efficiency'].mean(), 1),
        top_speed=_round(frame['top_speed'].max(), 1),
        rides=len(frame),
        duration=_round(frame['duration'].sum(), 0),
        energy=_round(frame['energy_used'].sum() / 1000, 2),
        behavior=behavior_split(rides),
    )


def compute_dashboard(rides: Sequence[Ride], filters: Optional[RideFilters] = None) -> DashboardAggregates:
    """
    Recompute every dashboard aggregate for one (collection, filters) pair.

    Monthly rollup, calendar, summaries and the year/month pickers use the
    whole collection; totals, behavior and mode charts use the filtered rides.
    """
    filters = filters or RideFilters()
    rides = tuple(rides)
    filtered = apply_filters(rides, filters)
    monthly = tuple(monthly_rollup(rides))

    return DashboardAggregates(
        filters=filters,
        filtered=filtered,
        totals=compute_totals(filtered),
        behavior=behavior_split(filtered),
        monthly=monthly,
        monthly_overview=monthly_overview(monthly),
        calendar=calendar_buckets(rides),
        years=tuple(available_years(rides)),
        month_options=tuple(month_options(rides)),
        recent_modes=tuple(recent_mode_series(filtered)),
        efficiency_trend=tuple(efficiency_trend(filtered)),
        lifetime_modes=tuple(lifetime_mode_totals(filtered)),
        daily=tuple(daily_summaries(rides)),
        weekly=tuple(weekly_summaries(rides)),
        monthly_summaries=tuple(monthly_summaries(rides)),
    )
