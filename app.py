"""
Ather Stats: ride dashboard for an Ather scooter's published ride log.
"""

# Standard library imports
import logging

# Third-party imports
from nicegui import ui

# Local imports
from constants import THEME_DARK, THEME_LIGHT, UI_COPY
from db import DatabaseManager
from state import AppState, VIEW_DASHBOARD, VIEW_SUMMARY
from core.data_manager import DataManager
from components.dashboard_view import DashboardView
from components.layout import AppShell
from components.ride_modal import RideModal
from components.setup_page import SetupPage
from components.summary_view import SummaryView


logger = logging.getLogger(__name__)


class MuteFrameworkNoise(logging.Filter):
    def filter(self, record):
        # Filter out the specific NiceGUI warning about event listeners
        return "Event listeners changed after initial definition" not in record.getMessage()


# --- MAIN APPLICATION CLASS ---
class AtherStatsApp:
    """Main application class: wires settings, state, data and views together."""

    def __init__(self, db=None):
        self.db = db or DatabaseManager()

        # ── Centralized session state ───────────────────────────────────
        self.state = AppState()
        self.state.theme = self.db.get_theme()
        self.state.source_url = self.db.get_source_url()

        # ── Data lifecycle controller ───────────────────────────────────
        self.data_manager = DataManager(db=self.db, state=self.state)

        # ── UI components ───────────────────────────────────────────────
        self.dark = ui.dark_mode(value=self.state.theme == THEME_DARK)
        self.root = ui.column().classes('w-full min-h-screen p-0 gap-0')
        self.layout = None
        self.dashboard_view = None
        self.summary_view = None
        self.ride_modal = RideModal(self.state)

        # ── Reactive subscriptions ──────────────────────────────────────
        self.state.subscribe('source_url', self._on_source_changed)
        self.state.subscribe('filters', lambda _: self.render_views())
        self.state.subscribe('selected_year', lambda _: self.render_views(recompute=False))
        self.state.subscribe('current_view', lambda _: self.render_views(recompute=False))
        self.state.subscribe('theme', self._on_theme_changed)
        self.state.subscribe('loading', self._on_loading_changed)
        self.state.subscribe('error', self._on_error_changed)

        if self.state.source_url:
            self.build_dashboard()
            ui.timer(0.1, self.refresh_data, once=True)
        else:
            self.build_setup()

    # --- Screens ---

    def build_setup(self):
        self.root.clear()
        with self.root:
            SetupPage(on_connect=self.connect).build()

    def build_dashboard(self):
        self.root.clear()
        self.layout = AppShell(
            state=self.state,
            callbacks={
                'on_view_change': self.on_view_change,
                'on_toggle_theme': self.toggle_theme,
                'on_refresh': self.refresh_data,
                'on_disconnect': self.disconnect,
                'on_month_change': self.on_month_change,
                'on_long_rides_change': self.on_long_rides_change,
                'on_clear_period': self.clear_period,
                'on_clear_filters': self.clear_filters,
            },
        )
        with self.root:
            self.layout.build()

        self.dashboard_view = DashboardView(
            state=self.state,
            callbacks={
                'on_period_click': self.on_period_click,
                'on_open_ride': self.open_ride,
            },
        )
        self.summary_view = SummaryView(state=self.state)
        with self.layout.content_container:
            self.dashboard_view.build()
            self.summary_view.build()
        self.render_views(recompute=False)

    def render_views(self, recompute=True):
        """Push fresh aggregates into whichever view is active."""
        if self.layout is None:
            return
        if recompute or self.data_manager.aggregates is None:
            self.data_manager.recompute()
        aggregates = self.data_manager.aggregates

        self.layout.set_month_options(aggregates.month_options)
        self.layout.set_last_updated(self.data_manager.last_updated)
        is_dashboard = self.state.current_view == VIEW_DASHBOARD
        self.dashboard_view.container.set_visibility(is_dashboard)
        self.summary_view.container.set_visibility(not is_dashboard)
        if is_dashboard:
            self.dashboard_view.set_data(aggregates)
        else:
            self.summary_view.set_data(self.data_manager.rides, aggregates)

    # --- Data lifecycle ---

    async def connect(self, url):
        """Setup form handler; RideSourceError propagates back to the form."""
        result = await self.data_manager.connect(url)
        ui.notify(f'Loaded {len(self.data_manager.rides)} rides', type='positive')
        self._notify_skipped_rows(result)

    async def refresh_data(self):
        if self.state.loading:
            return
        refreshed = await self.data_manager.refresh()
        if refreshed:
            self.render_views(recompute=False)
            self._notify_skipped_rows(self.data_manager.last_result)
        elif not self.data_manager.has_data:
            self.render_views()

    def _notify_skipped_rows(self, result):
        dropped = result.report.dropped_count
        if dropped:
            message = UI_COPY['rows_skipped'].format(dropped=dropped, total=result.row_count)
            ui.notify(message, type='warning')

    def disconnect(self):
        self.data_manager.disconnect()
        ui.notify('Disconnected from ride log', type='info')

    # --- State reactions ---

    def _on_source_changed(self, url):
        if url:
            self.build_dashboard()
        else:
            self.layout = None
            self.build_setup()

    def _on_theme_changed(self, theme):
        self.dark.set_value(theme == THEME_DARK)
        if self.layout is not None:
            self.layout.update_theme_icon(theme)
            self.render_views(recompute=False)

    def _on_loading_changed(self, loading):
        if self.layout is not None:
            self.layout.set_loading(loading)

    def _on_error_changed(self, message):
        if self.layout is not None:
            self.layout.show_error(message)

    # --- Handlers ---

    def on_view_change(self, view):
        if view in (VIEW_DASHBOARD, VIEW_SUMMARY):
            self.state.current_view = view

    def toggle_theme(self):
        theme = THEME_LIGHT if self.state.theme == THEME_DARK else THEME_DARK
        self.db.set_theme(theme)
        self.state.theme = theme

    def on_month_change(self, month):
        self.state.filters = self.state.filters.with_month(month)

    def on_long_rides_change(self, enabled):
        self.state.filters = self.state.filters.with_long_rides(enabled)

    def on_period_click(self, key):
        self.state.filters = self.state.filters.toggle_period(key)

    def clear_period(self):
        self.state.filters = self.state.filters.toggle_period(None)

    def clear_filters(self):
        self.state.filters = self.state.filters.cleared()

    def open_ride(self, ride_id):
        ride = self.data_manager.find_ride(ride_id)
        if ride is None:
            ui.notify(UI_COPY['no_rides'], type='warning')
            return
        self.ride_modal.open(ride)


def main():
    """Application entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    # Suppress known NiceGUI framework listener-churn warning noise
    nicegui_logger = logging.getLogger('nicegui')
    nicegui_logger.addFilter(MuteFrameworkNoise())

    @ui.page('/')
    def index():
        AtherStatsApp()

    try:
        ui.run(
            title=UI_COPY['app_title'],
            reload=False,
            favicon='🛵',
        )
    except KeyboardInterrupt:
        # Graceful terminal interrupt during local development.
        pass


if __name__ in {"__main__", "__mp_main__"}:
    main()
