"""Classified failures raised by the ride data source loader."""

from __future__ import annotations

from typing import Optional

from constants import UI_COPY


class RideSourceError(Exception):
    """Base class for every loader failure the dashboard can explain to the rider."""

    kind = 'source'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['processing'])
        self.message = message or UI_COPY['processing']


class RequestTimeoutError(RideSourceError):
    kind = 'timeout'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['timeout'])


class NetworkError(RideSourceError):
    kind = 'network'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['network'])


class HttpError(RideSourceError):
    """The server answered with a non-success status."""

    kind = 'http'

    def __init__(self, status_code: int, reason: str = ''):
        self.status_code = status_code
        self.reason = reason or ''
        super().__init__(UI_COPY['http'].format(status=status_code, reason=self.reason).strip())


class WrongFormatError(RideSourceError):
    """The body is an HTML page, usually a sheet link that was not published as CSV."""

    kind = 'wrong_format'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['wrong_format'])


class EmptyDataError(RideSourceError):
    kind = 'empty'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['empty'])


class ProcessingError(RideSourceError):
    kind = 'processing'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or UI_COPY['processing'])


class RowNormalizationError(ValueError):
    """A single raw row could not be turned into a Ride; the batch skips it."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"row {index}: {reason}")
        self.index = index
        self.reason = reason
