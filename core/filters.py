"""Ride selection: month, long-ride and clicked-period filters combined with AND."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple

from constants import FILTER_ALL_MONTHS, LONG_RIDE_MIN_KM
from core.ride_normalizer import Ride


RidePredicate = Callable[[Ride], bool]


@dataclass(frozen=True)
class RideFilters:
    """Active dashboard filters. ``None`` means the filter is off."""

    month: Optional[str] = None
    long_rides_only: bool = False
    period_key: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.month or self.long_rides_only or self.period_key)

    def with_month(self, month: Optional[str]) -> 'RideFilters':
        if month == FILTER_ALL_MONTHS:
            month = None
        return replace(self, month=month or None)

    def with_long_rides(self, enabled: bool) -> 'RideFilters':
        return replace(self, long_rides_only=bool(enabled))

    def toggle_period(self, key: Optional[str]) -> 'RideFilters':
        """Select ``key``; selecting the active key again clears it."""
        if not key or key == self.period_key:
            return replace(self, period_key=None)
        return replace(self, period_key=key)

    def cleared(self) -> 'RideFilters':
        return RideFilters()


def month_filter(month_key: str) -> RidePredicate:
    return lambda ride: ride.month_key == month_key


def min_distance_filter(min_km: float = LONG_RIDE_MIN_KM) -> RidePredicate:
    return lambda ride: ride.distance >= min_km


def period_key_filter(period_key: str) -> RidePredicate:
    return lambda ride: ride.month_key == period_key


def build_predicates(filters: RideFilters) -> List[RidePredicate]:
    predicates = []
    if filters.month:
        predicates.append(month_filter(filters.month))
    if filters.long_rides_only:
        predicates.append(min_distance_filter())
    if filters.period_key:
        predicates.append(period_key_filter(filters.period_key))
    return predicates


def apply_filters(rides: Iterable[Ride], filters: Optional[RideFilters] = None) -> Tuple[Ride, ...]:
    """Rides passing every active filter, in collection order."""
    predicates = build_predicates(filters or RideFilters())
    return tuple(ride for ride in rides if all(predicate(ride) for predicate in predicates))
