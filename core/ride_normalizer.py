"""Row normalisation: one raw CSV record in, one immutable Ride out."""

from __future__ import annotations

import json
import logging
import math
import numbers
from dataclasses import dataclass, field
from datetime import date as date_cls, datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from constants import MODE_COLUMNS
from core.errors import RowNormalizationError


logger = logging.getLogger(__name__)

MISSING_DATE = 'N/A'
DEFAULT_MONTH = '01'
MONTH_SEPARATORS = ('-', '/')
EPOCH_MILLIS_THRESHOLD = 1e11

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class DistanceComponents:
    """Mutually exclusive distance categories, in meters."""

    riding: float = 0.0
    braking: float = 0.0
    coasting: float = 0.0

    @property
    def total(self) -> float:
        return self.riding + self.braking + self.coasting


@dataclass(frozen=True)
class Behavior:
    """Percent share of each distance category."""

    riding: float = 0.0
    braking: float = 0.0
    coasting: float = 0.0


@dataclass(frozen=True)
class Location:
    start: Coordinate = (0.0, 0.0)
    end: Coordinate = (0.0, 0.0)
    start_address: str = ''
    end_address: str = ''

    @property
    def has_start_fix(self) -> bool:
        return is_valid_fix(self.start)

    @property
    def has_end_fix(self) -> bool:
        return is_valid_fix(self.end)


@dataclass(frozen=True)
class Ride:
    id: str
    date: str
    month: str
    year: int
    timestamp: Optional[str]
    started_at: Optional[datetime]
    distance: float
    duration: float
    efficiency: float
    efficiency_alt: float
    top_speed: float
    avg_speed: float
    energy_used: float
    soc_usage_percent: float
    distance_components: DistanceComponents
    behavior: Behavior
    modes: Mapping[str, float]
    location: Location
    route_encoding: str = ''
    speed_series: Tuple[float, ...] = ()

    @property
    def month_key(self) -> str:
        """Year-month key used by the month and period filters, e.g. '2024-03'."""
        return f"{self.year}-{self.month}"

    @property
    def start_date(self) -> Optional[date_cls]:
        return self.started_at.date() if self.started_at is not None else None


@dataclass
class NormalizationReport:
    rides: Tuple[Ride, ...] = ()
    dropped: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


def is_valid_fix(point) -> bool:
    """A [0, 0] coordinate means the scooter had no GPS fix."""
    try:
        lat, lon = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError):
        return False
    return not (lat == 0 and lon == 0)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def to_number(value: Any) -> float:
    """Coerce a raw cell to a finite, non-negative float; anything else becomes 0."""
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def to_coordinate(value: Any) -> float:
    """Coordinates keep their sign; unusable input becomes 0."""
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_text(value: Any) -> str:
    """Render a scalar cell as text, dropping the '.0' pandas adds to integer ids."""
    if _is_missing(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_month(value: Any) -> str:
    """Return the 2-digit month code from '3', 3, '03' or '2024-03'."""
    text = _to_text(value)
    if not text:
        return DEFAULT_MONTH
    for separator in MONTH_SEPARATORS:
        if separator in text:
            parts = text.split(separator)
            text = parts[1].strip() if len(parts) > 1 else ''
            break
    if not text:
        return DEFAULT_MONTH
    return text.zfill(2)


def normalize_year(value: Any, today: Optional[date_cls] = None) -> int:
    year = to_number(value)
    if year <= 0:
        return (today or date_cls.today()).year
    return int(year)


def behavior_from_components(riding: float, braking: float, coasting: float) -> Behavior:
    """Percent shares rounded to 1 dp; all zero when there is no distance to split."""
    total = riding + braking + coasting
    if total <= 0:
        return Behavior(0.0, 0.0, 0.0)
    return Behavior(
        riding=round(riding / total * 100, 1),
        braking=round(braking / total * 100, 1),
        coasting=round(coasting / total * 100, 1),
    )


def parse_speed_series(value: Any) -> Tuple[float, ...]:
    """Decode the JSON speed array. Any failure yields an empty series."""
    if _is_missing(value):
        return ()
    try:
        samples = json.loads(value) if isinstance(value, str) else value
        if not isinstance(samples, (list, tuple)):
            return ()
        series = []
        for sample in samples:
            if isinstance(sample, bool) or not isinstance(sample, (int, float)):
                raise ValueError(f"non-numeric speed sample {sample!r}")
            series.append(to_number(sample))
        return tuple(series)
    except (TypeError, ValueError) as exc:
        logger.debug("Discarding unparseable speed series: %s", exc)
        return ()


def parse_start_time(value: Any) -> Optional[datetime]:
    """Parse ride_start_time. Aware values are moved to UTC; naive values are kept as-is."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        if isinstance(value, numbers.Real):
            unit = 'ms' if value > EPOCH_MILLIS_THRESHOLD else 's'
            parsed = pd.to_datetime(value, unit=unit, utc=True)
        else:
            parsed = pd.to_datetime(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is pd.NaT or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert(timezone.utc)
    return parsed.to_pydatetime()


def normalize_row(raw: Mapping[str, Any], index: int, today: Optional[date_cls] = None) -> Ride:
    """
    Build one Ride from a raw CSV record.

    Every column is optional. Numeric cells that are missing, negative or
    non-numeric become 0, and the speed array degrades to empty on a bad
    payload. Anything else that goes wrong raises RowNormalizationError so
    the caller can skip just this row.
    """
    if not isinstance(raw, Mapping):
        raise RowNormalizationError(index, f"expected a mapping, got {type(raw).__name__}")

    try:
        riding_m = to_number(raw.get('riding_m'))
        braking_m = to_number(raw.get('braking_m'))
        coasting_m = to_number(raw.get('coasting_m'))

        timestamp_raw = raw.get('ride_start_time')
        timestamp = None if _is_missing(timestamp_raw) else _to_text(timestamp_raw)

        modes = MappingProxyType({
            mode: to_number(raw.get(column)) for mode, column in MODE_COLUMNS.items()
        })

        location = Location(
            start=(to_coordinate(raw.get('ride_start_lat')), to_coordinate(raw.get('ride_start_lon'))),
            end=(to_coordinate(raw.get('ride_end_lat')), to_coordinate(raw.get('ride_end_lon'))),
            start_address=_to_text(raw.get('ride_start_location')),
            end_address=_to_text(raw.get('ride_end_location')),
        )

        return Ride(
            id=_to_text(raw.get('ride_id')) or f"ride-{index}",
            date=_to_text(raw.get('date')) or MISSING_DATE,
            month=normalize_month(raw.get('month')),
            year=normalize_year(raw.get('year'), today=today),
            timestamp=timestamp,
            started_at=parse_start_time(timestamp_raw),
            distance=round(to_number(raw.get('distance_m')) / 1000, 2),
            duration=round(to_number(raw.get('duration_secs')) / 60, 2),
            efficiency=to_number(raw.get('efficiency_wh_km')),
            efficiency_alt=to_number(raw.get('efficiency_km_kwh')),
            top_speed=to_number(raw.get('top_speed_kmph')),
            avg_speed=to_number(raw.get('avg_speed_kmph')),
            energy_used=to_number(raw.get('soc_usage_wh')),
            soc_usage_percent=round(to_number(raw.get('soc_usage_percent')) * 100, 2),
            distance_components=DistanceComponents(riding_m, braking_m, coasting_m),
            behavior=behavior_from_components(riding_m, braking_m, coasting_m),
            modes=modes,
            location=location,
            route_encoding=_to_text(raw.get('polyline')),
            speed_series=parse_speed_series(raw.get('speed')),
        )
    except RowNormalizationError:
        raise
    except Exception as exc:
        raise RowNormalizationError(index, str(exc)) from exc


def normalize_rows(rows: Iterable[Any], today: Optional[date_cls] = None) -> NormalizationReport:
    """Normalise every row in source order, skipping (and counting) rows that fail."""
    rides: List[Ride] = []
    report = NormalizationReport()

    for index, raw in enumerate(rows):
        try:
            rides.append(normalize_row(raw, index, today=today))
        except RowNormalizationError as exc:
            logger.warning("Skipping malformed row %s: %s", index, exc.reason)
            report.dropped.append(index)
            report.errors.append(str(exc))

    report.rides = tuple(rides)
    logger.info("Normalised %s ride(s), dropped %s row(s)", len(rides), report.dropped_count)
    return report
