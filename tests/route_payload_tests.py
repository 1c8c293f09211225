import unittest

from constants import DEFAULT_MAP_CENTER
from core.ride_normalizer import normalize_row
from core.route_payload import RoutePayloadBuilder, build_route_payload, speed_color


# Reference encoding: (38.5, -120.2), (40.7, -120.95), (43.252, -126.453)
ENCODED = '_p~iF~ps|U_ulLnnqC_mqNvxq`@'


class RoutePayloadTests(unittest.TestCase):
    def setUp(self):
        self.builder = RoutePayloadBuilder()

    def test_decodes_polyline(self):
        points = self.builder.decode_route(ENCODED)
        self.assertEqual(len(points), 3)
        self.assertAlmostEqual(points[0][0], 38.5)
        self.assertAlmostEqual(points[2][1], -126.453)

    def test_blank_route_has_no_points(self):
        self.assertEqual(self.builder.decode_route(''), [])
        self.assertEqual(self.builder.decode_route('   '), [])

    def test_route_payload_with_speed_colours(self):
        ride = normalize_row({'polyline': ENCODED, 'speed': '[5, 45]'}, 0)
        payload = build_route_payload(ride)

        self.assertTrue(payload['has_route'])
        self.assertEqual(len(payload['segments']), 2)
        self.assertEqual(payload['segments'][0][4], '#00E676')
        self.assertEqual(payload['segments'][1][4], '#FF9800')
        self.assertEqual(payload['center'], payload['points'][1])
        self.assertEqual(payload['zoom'], 13)

        (min_lat, min_lon), (max_lat, max_lon) = payload['bounds']
        self.assertAlmostEqual(min_lat, 38.5)
        self.assertAlmostEqual(max_lat, 43.252)
        self.assertAlmostEqual(min_lon, -126.453)
        self.assertAlmostEqual(max_lon, -120.2)

    def test_speed_samples_spread_over_points(self):
        points = [[0.0, float(i)] for i in range(6)]
        segments = self.builder.speed_segments(points, [5, 25, 55])
        # 6 points / 3 samples -> 2 points per sample
        self.assertEqual([seg[5] for seg in segments], [5, 5, 25, 25, 55])

    def test_more_samples_than_points(self):
        segments = self.builder.speed_segments([[0, 0], [0, 1]], [12, 60, 70])
        self.assertEqual([seg[5] for seg in segments], [12])

    def test_falls_back_to_start_end_line(self):
        ride = normalize_row({
            'ride_start_lat': 12.9, 'ride_start_lon': 77.5,
            'ride_end_lat': 13.0, 'ride_end_lon': 77.7,
        }, 0)
        payload = build_route_payload(ride)

        self.assertTrue(payload['has_route'])
        self.assertEqual(payload['points'], [[12.9, 77.5], [13.0, 77.7]])
        self.assertEqual(len(payload['segments']), 1)
        self.assertIsNone(payload['segments'][0][5])

    def test_zero_fix_is_not_a_location(self):
        ride = normalize_row({
            'ride_start_lat': 12.9, 'ride_start_lon': 77.5,
            'ride_end_lat': 0, 'ride_end_lon': 0,
        }, 0)
        payload = build_route_payload(ride)

        self.assertFalse(payload['has_route'])
        self.assertEqual(payload['center'], [12.9, 77.5])
        self.assertIsNone(payload['end'])
        self.assertEqual(payload['zoom'], 12)

    def test_no_gps_uses_default_centre(self):
        payload = build_route_payload(normalize_row({}, 0))
        self.assertFalse(payload['has_route'])
        self.assertEqual(payload['center'], list(DEFAULT_MAP_CENTER))
        self.assertIsNone(payload['bounds'])

    def test_degenerate_bounds_are_padded(self):
        bounds = self.builder._normalize_bounds([[12.0, 77.0], [12.0, 77.0]])
        self.assertLess(bounds[0][0], bounds[1][0])
        self.assertLess(bounds[0][1], bounds[1][1])
        self.assertIsNone(self.builder._normalize_bounds([[95, 0], [96, 1]]))
        self.assertIsNone(self.builder._normalize_bounds('nope'))

    def test_speed_colour_bands(self):
        self.assertEqual(speed_color(0), '#00E676')
        self.assertEqual(speed_color(10), '#76FF03')
        self.assertEqual(speed_color(29.9), '#FFEB3B')
        self.assertEqual(speed_color(35), '#FFC107')
        self.assertEqual(speed_color(49), '#FF9800')
        self.assertEqual(speed_color(80), '#FF5252')


if __name__ == "__main__":
    unittest.main()
