"""Core data lifecycle for Ather Stats: load, snapshot, recompute."""

from __future__ import annotations

import logging

from nicegui import run

from core.aggregations import compute_dashboard
from core.errors import RideSourceError
from core.source_loader import load_rides


logger = logging.getLogger(__name__)


class DataManager:
    """Owns the ride snapshot and the latest aggregates.

    Loads run off the event loop through ``io_runner`` (``run.io_bound`` by
    default); every state write happens back on the caller's loop.
    """

    def __init__(self, db, state, loader=load_rides, io_runner=None):
        self.db = db
        self.state = state
        self.loader = loader
        self.io_runner = io_runner or run.io_bound
        self.rides = ()
        self.last_result = None
        self.aggregates = None

    @property
    def has_data(self) -> bool:
        return bool(self.rides)

    @property
    def last_updated(self):
        """ISO timestamp of the snapshot in use, or None before the first load."""
        return self.last_result.fetched_at if self.last_result is not None else None

    def _replace_snapshot(self, result) -> None:
        self.last_result = result
        self.rides = tuple(result.rides)
        self.recompute()

    async def _load(self, url):
        self.state.loading = True
        try:
            return await self.io_runner(self.loader, url)
        finally:
            self.state.loading = False

    async def connect(self, url):
        """
        Load rides from ``url`` and make it the stored source.

        Raises the loader's RideSourceError on failure; the stored URL and
        the current snapshot are left untouched in that case.
        """
        url = (url or '').strip()
        result = await self._load(url)

        self.db.set_source_url(url)
        self._replace_snapshot(result)
        self.state.error = None
        self.state.source_url = url
        logger.info("Connected to ride source with %s ride(s)", len(self.rides))
        return result

    async def refresh(self) -> bool:
        """Reload from the stored URL; keep the previous snapshot if it fails."""
        url = self.state.source_url or self.db.get_source_url()
        if not url:
            return False

        try:
            result = await self._load(url)
        except RideSourceError as exc:
            logger.warning("Refresh failed, keeping %s ride(s): %s", len(self.rides), exc.message)
            self.state.error = exc.message
            return False

        self._replace_snapshot(result)
        self.state.error = None
        logger.info("Refreshed ride source: %s ride(s)", len(self.rides))
        return True

    def disconnect(self) -> None:
        self.db.clear_source_url()
        self.rides = ()
        self.last_result = None
        self.aggregates = None
        self.state.filters = self.state.filters.cleared()
        self.state.error = None
        self.state.source_url = None

    def recompute(self):
        """Run the aggregation engine over the snapshot and the active filters."""
        self.aggregates = compute_dashboard(self.rides, self.state.filters)
        return self.aggregates

    def find_ride(self, ride_id):
        for ride in self.rides:
            if ride.id == ride_id:
                return ride
        return None
