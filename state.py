"""
state.py
────────
Centralised session state for the dashboard.

Fields are plain attributes. Writing a field whose value changes calls every
callback registered for it with ``subscribe(field, callback)``, which is how
the UI learns it has to recompute aggregates or re-render.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from constants import DEFAULT_THEME
from core.filters import RideFilters


logger = logging.getLogger(__name__)

VIEW_DASHBOARD = 'dashboard'
VIEW_SUMMARY = 'summary'


class AppState:
    """Observable session state shared by the app shell and its components."""

    _OBSERVED = (
        'source_url',
        'theme',
        'current_view',
        'filters',
        'selected_year',
        'loading',
        'error',
    )

    def __init__(self):
        object.__setattr__(self, '_subscribers', defaultdict(list))
        self.source_url = None
        self.theme = DEFAULT_THEME
        self.current_view = VIEW_DASHBOARD
        self.filters = RideFilters()
        self.selected_year = None
        self.loading = False
        self.error = None

    def subscribe(self, field: str, callback: Callable[[Any], None]) -> None:
        if field not in self._OBSERVED:
            raise ValueError(f"Unknown state field: {field}")
        self._subscribers[field].append(callback)

    def __setattr__(self, name: str, value: Any) -> None:
        previous = self.__dict__.get(name, _UNSET)
        object.__setattr__(self, name, value)
        if name in self._OBSERVED and previous is not _UNSET and previous != value:
            self._notify(name, value)

    def _notify(self, name: str, value: Any) -> None:
        callbacks: List[Callable[[Any], None]] = list(self._subscribers.get(name, ()))
        for callback in callbacks:
            try:
                callback(value)
            except Exception as exc:
                logger.warning("State subscriber for %s failed: %s", name, exc)

    def snapshot(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self._OBSERVED}


_UNSET = object()
