import unittest
from unittest import mock

import requests

from core.errors import (
    EmptyDataError,
    HttpError,
    NetworkError,
    ProcessingError,
    RequestTimeoutError,
    RideSourceError,
    WrongFormatError,
)
from core.ride_normalizer import NormalizationReport
from core.source_loader import (
    count_usable_rows,
    fetch_csv_text,
    load_rides,
    looks_like_markup,
    parse_csv_text,
)


URL = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"

RIDE_CSV = (
    "ride_id,date,month,year,distance_m,duration_secs,efficiency_wh_km,riding_m,braking_m,coasting_m\n"
    "r1,2024-03-01,3,2024,5000,600,20,3000,1000,1000\n"
    "\n"
    "r2,2024-03-02,3,2024,15000,1800,30,,,\n"
)


class StubResponse:
    def __init__(self, text="", status_code=200, reason="OK"):
        self.text = text
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400


class StubSession:
    """Minimal requests-like session returning a canned response (or raising)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class SourceLoaderTests(unittest.TestCase):
    def _load(self, text="", status_code=200, reason="OK"):
        session = StubSession(StubResponse(text, status_code, reason))
        return load_rides(URL, session=session)

    def test_loads_rides_in_source_order(self):
        result = self._load(RIDE_CSV)

        self.assertEqual([ride.id for ride in result.rides], ['r1', 'r2'])
        self.assertEqual(result.row_count, 2)
        self.assertEqual(result.report.dropped_count, 0)
        self.assertEqual(result.rides[0].distance, 5.0)
        self.assertEqual(result.rides[1].behavior.riding, 0.0)
        self.assertIsNotNone(result.fetched_at)

    def test_timeout_is_passed_to_the_request(self):
        session = StubSession(StubResponse(RIDE_CSV))
        load_rides(URL, timeout=7, session=session)
        self.assertEqual(session.calls, [(URL, 7)])

    def test_html_body_is_wrong_format_even_with_200(self):
        body = "<!DOCTYPE html>\n<html><head><title>Sheet</title></head>\n<body>Sign in</body></html>\n"
        with self.assertRaises(WrongFormatError):
            self._load(body, status_code=200)

    def test_html_body_with_leading_whitespace_and_bom(self):
        body = "\ufeff  <html>\n<body>nope</body>\n</html>"
        with self.assertRaises(WrongFormatError):
            self._load(body)

    def test_timeout_is_classified(self):
        session = StubSession(error=requests.exceptions.ReadTimeout("slow"))
        with self.assertRaises(RequestTimeoutError) as ctx:
            load_rides(URL, session=session)
        self.assertIn('timed out', ctx.exception.message)

    def test_connection_failure_is_network_error(self):
        session = StubSession(error=requests.exceptions.ConnectionError("dns"))
        with self.assertRaises(NetworkError):
            load_rides(URL, session=session)

    def test_http_failure_keeps_status(self):
        with self.assertRaises(HttpError) as ctx:
            self._load("missing", status_code=404, reason="Not Found")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.message, 'Failed to fetch CSV: 404 Not Found')

    def test_empty_body_is_empty_data(self):
        with self.assertRaises(EmptyDataError):
            self._load("")

    def test_header_only_is_empty_data(self):
        with self.assertRaises(EmptyDataError):
            self._load("ride_id,distance_m\n")

    def test_unrecognised_columns_are_empty_data(self):
        with self.assertRaises(EmptyDataError):
            self._load("foo,bar\n1,2\n")

    def test_unexpected_failure_is_processing_error(self):
        with mock.patch('core.source_loader.normalize_rows', side_effect=RuntimeError("boom")):
            with self.assertRaises(ProcessingError) as ctx:
                self._load(RIDE_CSV)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_all_rows_dropped_is_empty_data(self):
        report = NormalizationReport(rides=(), dropped=[0, 1], errors=['x', 'y'])
        with mock.patch('core.source_loader.normalize_rows', return_value=report):
            with self.assertRaises(EmptyDataError):
                self._load(RIDE_CSV)

    def test_errors_share_a_base_class(self):
        for error in (RequestTimeoutError(), NetworkError(), HttpError(500), WrongFormatError(),
                      EmptyDataError(), ProcessingError()):
            self.assertIsInstance(error, RideSourceError)
            self.assertTrue(error.message)

    def test_blank_url_returns_empty_result_without_fetching(self):
        session = StubSession(StubResponse(RIDE_CSV))
        result = load_rides("   ", session=session)
        self.assertEqual(result.rides, ())
        self.assertEqual(session.calls, [])

    def test_fetch_returns_body_text(self):
        session = StubSession(StubResponse("a,b\n1,2\n"))
        self.assertEqual(fetch_csv_text(URL, session=session), "a,b\n1,2\n")


class CsvParsingTests(unittest.TestCase):
    def test_blank_lines_skipped_and_missing_cells_are_none(self):
        rows = parse_csv_text("ride_id, distance_m\nr1,5000\n\n,\nr2,\n")

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]['ride_id'], 'r1')
        self.assertEqual(rows[0]['distance_m'], 5000)
        self.assertEqual(rows[1]['ride_id'], 'r2')
        self.assertIsNone(rows[1]['distance_m'])

    def test_usable_rows_need_a_recognised_value(self):
        rows = [
            {'ride_id': None, 'unknown': 'x'},
            {'ride_id': '   '},
            {'distance_m': 0},
        ]
        self.assertEqual(count_usable_rows(rows), 1)

    def test_markup_detection(self):
        self.assertTrue(looks_like_markup("<!DOCTYPE html><html></html>"))
        self.assertTrue(looks_like_markup("  <HTML>"))
        self.assertFalse(looks_like_markup("ride_id,date\n"))
        self.assertFalse(looks_like_markup(""))


if __name__ == "__main__":
    unittest.main()
