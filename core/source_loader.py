"""Fetch the published ride log over HTTP and turn it into normalised rides."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests

from constants import FETCH_TIMEOUT_SEC, MARKUP_SIGNATURES, RECOGNIZED_COLUMNS
from core.errors import (
    EmptyDataError,
    HttpError,
    NetworkError,
    ProcessingError,
    RequestTimeoutError,
    RideSourceError,
    WrongFormatError,
)
from core.ride_normalizer import NormalizationReport, Ride, normalize_rows


logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    rides: Tuple[Ride, ...] = ()
    report: NormalizationReport = field(default_factory=NormalizationReport)
    row_count: int = 0
    fetched_at: Optional[str] = None


def looks_like_markup(text: str) -> bool:
    """True when the body is an HTML document rather than CSV."""
    prefix = (text or '').lstrip('\ufeff').strip().lower()
    return prefix.startswith(MARKUP_SIGNATURES)


def fetch_csv_text(url: str, timeout: float = FETCH_TIMEOUT_SEC, session=None) -> str:
    """GET the source URL and return the body text, classifying transport failures."""
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        logger.warning("Fetching ride data timed out after %ss: %s", timeout, exc)
        raise RequestTimeoutError() from exc
    except requests.exceptions.RequestException as exc:
        logger.warning("Fetching ride data failed: %s", exc)
        raise NetworkError() from exc

    if not response.ok:
        logger.warning("Ride data source answered %s %s", response.status_code, response.reason)
        raise HttpError(response.status_code, response.reason or '')

    return response.text


def _skip_bad_line(fields: List[str]):
    logger.warning("CSV parse warning: skipping malformed line with %s field(s)", len(fields))
    return None


def parse_csv_text(text: str) -> List[Dict[str, Any]]:
    """
    Parse header-delimited CSV into row dicts.

    pandas infers numbers and booleans per column; everything else stays a
    string. Blank lines and rows with no values at all are dropped, and
    missing cells come back as None.
    """
    body = (text or '').lstrip('\ufeff')
    try:
        frame = pd.read_csv(
            io.StringIO(body),
            skip_blank_lines=True,
            engine='python',
            on_bad_lines=_skip_bad_line,
        )
    except pd.errors.EmptyDataError:
        return []

    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.dropna(how='all')
    if frame.empty:
        return []

    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient='records')


def count_usable_rows(rows: List[Dict[str, Any]]) -> int:
    """Rows carrying at least one non-empty recognised column."""
    usable = 0
    for row in rows:
        for column in RECOGNIZED_COLUMNS:
            value = row.get(column)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            usable += 1
            break
    return usable


def load_rides(url: str, timeout: float = FETCH_TIMEOUT_SEC, session=None) -> LoadResult:
    """
    Fetch, parse and normalise the ride log at ``url``.

    Returns the rides in source order. Raises a RideSourceError subclass
    for timeouts, HTTP failures, HTML bodies, empty data and anything
    unexpected while parsing; malformed rows are skipped, not raised.
    """
    url = (url or '').strip()
    if not url:
        return LoadResult()

    text = fetch_csv_text(url, timeout=timeout, session=session)

    try:
        try:
            rows = parse_csv_text(text)
        except pd.errors.ParserError as exc:
            if looks_like_markup(text):
                raise WrongFormatError() from exc
            raise

        if count_usable_rows(rows) == 0:
            if looks_like_markup(text):
                logger.warning("Ride data source returned HTML instead of CSV")
                raise WrongFormatError()
            logger.warning("Ride data source returned no usable rows")
            raise EmptyDataError()

        report = normalize_rows(rows)
    except RideSourceError:
        raise
    except Exception as exc:
        logger.warning("Data transformation error: %s", exc)
        raise ProcessingError() from exc

    if not report.rides:
        logger.warning("All %s row(s) were dropped during normalisation", len(rows))
        raise EmptyDataError()

    return LoadResult(
        rides=report.rides,
        report=report,
        row_count=len(rows),
        fetched_at=datetime.now(timezone.utc).isoformat(),
    )
