"""Route payload generation for the ride map: decoded points, speed colours, bounds."""

from __future__ import annotations

import logging
from typing import List, Sequence

import polyline

from constants import DEFAULT_MAP_CENTER, SPEED_COLOR_BANDS
from core.ride_normalizer import Ride, is_valid_fix


logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_COLOR = '#00E676'


def speed_color(speed: float) -> str:
    """Colour band for a speed sample in km/h."""
    for upper, color in SPEED_COLOR_BANDS:
        if speed < upper:
            return color
    return SPEED_COLOR_BANDS[-1][1]


class RoutePayloadBuilder:
    """Build the map payload for one ride from its encoded polyline or GPS fixes."""

    def decode_route(self, encoded: str) -> List[List[float]]:
        """Decode an encoded polyline into [lat, lon] points; a bad encoding gives no points."""
        if not encoded or not encoded.strip():
            return []
        try:
            return [[float(lat), float(lon)] for lat, lon in polyline.decode(encoded.strip())]
        except (ValueError, TypeError, IndexError) as ex:
            logger.warning("Error decoding polyline: %s", ex)
            return []

    def _normalize_bounds(self, bounds_value):
        """Validate and normalize bounds into [[min_lat, min_lon], [max_lat, max_lon]]."""
        try:
            if not isinstance(bounds_value, (list, tuple)) or len(bounds_value) != 2:
                return None
            if len(bounds_value[0]) != 2 or len(bounds_value[1]) != 2:
                return None

            min_lat, max_lat = sorted([float(bounds_value[0][0]), float(bounds_value[1][0])])
            min_lon, max_lon = sorted([float(bounds_value[0][1]), float(bounds_value[1][1])])

            if not (-90 <= min_lat <= 90 and -90 <= max_lat <= 90):
                return None
            if not (-180 <= min_lon <= 180 and -180 <= max_lon <= 180):
                return None
            if abs(max_lat - min_lat) < 1e-6:
                min_lat -= 0.0005
                max_lat += 0.0005
            if abs(max_lon - min_lon) < 1e-6:
                min_lon -= 0.0005
                max_lon += 0.0005

            return [[min_lat, min_lon], [max_lat, max_lon]]
        except (TypeError, ValueError):
            return None

    def _bounds_for(self, points: Sequence[Sequence[float]]):
        lats = [p[0] for p in points]
        lons = [p[1] for p in points]
        return self._normalize_bounds([[min(lats), min(lons)], [max(lats), max(lons)]])

    def speed_segments(self, points: Sequence[Sequence[float]], speeds: Sequence[float]) -> list:
        """
        Split the route into two-point segments coloured by speed.

        Speed samples are spread evenly over the route: each sample covers
        ``len(points) // len(speeds)`` points (at least one), and the last
        sample covers whatever remains.
        """
        if len(points) < 2 or not speeds:
            return []
        points_per_speed = max(1, len(points) // len(speeds))
        segments = []
        for i in range(len(points) - 1):
            speed = speeds[min(i // points_per_speed, len(speeds) - 1)] or 0.0
            segments.append([
                points[i][0], points[i][1], points[i + 1][0], points[i + 1][1],
                speed_color(speed), speed,
            ])
        return segments

    def build(self, ride: Ride, speed_colors: bool = True) -> dict:
        """
        Assemble the payload the map view renders.

        Falls back to a straight start -> end line when the route is missing
        or undecodable and both ends have a GPS fix.
        """
        points = self.decode_route(ride.route_encoding)

        start, end = ride.location.start, ride.location.end
        has_start, has_end = is_valid_fix(start), is_valid_fix(end)
        if not points and has_start and has_end:
            points = [list(start), list(end)]

        if points:
            center = list(points[len(points) // 2])
        elif has_start:
            center = list(start)
        else:
            center = list(DEFAULT_MAP_CENTER)

        if points and speed_colors:
            segments = self.speed_segments(points, ride.speed_series)
        else:
            segments = []
        if points and not segments:
            segments = [
                [a[0], a[1], b[0], b[1], DEFAULT_SEGMENT_COLOR, None]
                for a, b in zip(points, points[1:])
            ]

        return {
            'has_route': bool(points),
            'points': points,
            'segments': segments,
            'bounds': self._bounds_for(points) if points else None,
            'center': center,
            'zoom': 13 if points else 12,
            'start': list(start) if has_start else None,
            'end': list(end) if has_end else None,
        }


def build_route_payload(ride: Ride, speed_colors: bool = True) -> dict:
    return RoutePayloadBuilder().build(ride, speed_colors=speed_colors)
