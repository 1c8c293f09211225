"""
components/dashboard_view.py
────────────────────────────
DashboardView: the main ride dashboard.

Renders stat cards, the behavior bar, the activity calendar, the efficiency
trend, mode and behavior charts, the monthly chart with its overview
figures (click a bar to toggle its period filter) and the ride table
(click a row to open the ride dialog).
App-level side effects stay injected via callbacks.
"""
from __future__ import annotations

from nicegui import ui

from constants import THEME_DARK, UI_COPY
from components.activity_calendar import ActivityCalendar
from components.cards import create_behavior_bar, create_stat_row, format_duration
from components.charts import (
    build_behavior_pie,
    build_efficiency_trend,
    build_lifetime_modes_chart,
    build_monthly_chart,
    build_recent_modes_chart,
)


TABLE_COLUMNS = [
    {'name': 'date', 'label': 'Date', 'field': 'date', 'align': 'left'},
    {'name': 'distance', 'label': 'Distance', 'field': 'distance', 'align': 'right'},
    {'name': 'duration', 'label': 'Duration', 'field': 'duration', 'align': 'right'},
    {'name': 'efficiency', 'label': 'Wh/km', 'field': 'efficiency', 'align': 'right'},
    {'name': 'top_speed', 'label': 'Top km/h', 'field': 'top_speed', 'align': 'right'},
    {'name': 'route', 'label': 'Route', 'field': 'route', 'align': 'left'},
]


def ride_table_rows(rides):
    """Table rows for the filtered rides, newest first."""
    rows = []
    for ride in reversed(tuple(rides)):
        start = ride.location.start_address
        end = ride.location.end_address
        rows.append({
            'id': ride.id,
            'date': ride.date,
            'distance': f"{ride.distance:.2f} km",
            'duration': format_duration(ride.duration),
            'efficiency': f"{ride.efficiency:.1f}",
            'top_speed': f"{ride.top_speed:.1f}",
            'route': f"{start} → {end}" if start or end else '',
        })
    return rows


def overview_metrics(overview):
    """Label/value pairs shown above the monthly chart."""
    if not overview.months:
        return []
    return [
        ('Total Months', str(overview.months)),
        ('Avg Distance/Month', f"{overview.avg_distance:.1f} km"),
        ('Total Energy', f"{overview.total_energy:.1f} kWh"),
    ]


def clicked_period_key(event_args):
    """Month key carried in ``customdata`` of a plotly click on the monthly chart."""
    try:
        point = event_args['points'][0]
    except (KeyError, IndexError, TypeError):
        return None
    key = point.get('customdata')
    if isinstance(key, (list, tuple)):
        key = key[0] if key else None
    return key or None


class DashboardView:
    """Owns dashboard rendering and chart/table interactions."""

    def __init__(self, state, callbacks=None):
        self.state = state
        self.callbacks = callbacks or {}
        self.aggregates = None
        self.calendar = ActivityCalendar(state)

        self.container = None
        self.monthly_chart = None
        self.table = None

    def _invoke_callback(self, name, *args, **kwargs):
        cb = self.callbacks.get(name)
        if not callable(cb):
            return None
        return cb(*args, **kwargs)

    def set_data(self, aggregates):
        self.aggregates = aggregates
        self.refresh()

    def build(self):
        self.container = ui.column().classes('w-full gap-4')
        self.refresh()
        return self

    def refresh(self):
        if self.container is None:
            return
        self.container.clear()
        agg = self.aggregates
        theme = self.state.theme or THEME_DARK

        with self.container:
            if agg is None or (not agg.filtered and not agg.monthly):
                ui.label(UI_COPY['no_rides']).classes('w-full text-center text-zinc-500 mt-20 font-mono')
                return

            create_stat_row(agg.totals)
            create_behavior_bar(agg.behavior, theme)
            self.calendar.build(agg.calendar, list(agg.years), theme)

            with ui.row().classes('w-full gap-4 no-wrap'):
                with self._chart_card('Efficiency trend (Wh/km)', 'flex-1'):
                    ui.plotly(build_efficiency_trend(list(agg.efficiency_trend), theme)).classes('w-full')
                with self._chart_card('Behavior', 'flex-1'):
                    ui.plotly(build_behavior_pie(agg.behavior, theme)).classes('w-full')

            with self._chart_card('Monthly distance, energy & efficiency', 'w-full'):
                with ui.row().classes('w-full gap-6'):
                    for label, value in overview_metrics(agg.monthly_overview):
                        with ui.column().classes('gap-0'):
                            ui.label(label).classes('text-[10px] text-zinc-500 uppercase tracking-wider')
                            ui.label(value).classes('text-lg font-bold text-white')
                fig = build_monthly_chart(list(agg.monthly), theme, selected_key=agg.filters.period_key)
                self.monthly_chart = ui.plotly(fig).classes('w-full').style('cursor: pointer')
                self.monthly_chart.on('plotly_click', self.handle_month_click)

            with ui.row().classes('w-full gap-4 no-wrap'):
                with self._chart_card('Recent ride modes', 'flex-[2]'):
                    ui.plotly(build_recent_modes_chart(list(agg.recent_modes), theme)).classes('w-full')
                with self._chart_card('Distance by mode', 'flex-1'):
                    ui.plotly(build_lifetime_modes_chart(list(agg.lifetime_modes), theme)).classes('w-full')

            self._build_table(agg.filtered)

    def _chart_card(self, title, flex):
        card = ui.card().classes(f'{flex} min-w-0 bg-zinc-900/80 border border-zinc-800 p-4 gap-2').style(
            'border-radius: 12px;'
        )
        with card:
            ui.label(title.upper()).classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
        return card

    def _build_table(self, rides):
        with ui.card().classes('w-full bg-zinc-900/80 p-0 border border-zinc-800 shadow-2xl overflow-hidden').style(
            'border-radius: 12px;'
        ):
            if not rides:
                ui.label('No rides match these filters.').classes('w-full text-center text-zinc-500 py-10 font-mono')
                return
            self.table = ui.table(
                columns=TABLE_COLUMNS,
                rows=ride_table_rows(rides),
                row_key='id',
                pagination={'rowsPerPage': 20},
            ).classes('w-full text-sm')
            self.table.props('flat dense')
            self.table.on('rowClick', self.handle_row_click)

    def handle_month_click(self, e):
        key = clicked_period_key(e.args)
        if key:
            self._invoke_callback('on_period_click', key)

    def handle_row_click(self, e):
        # rowClick args are [event, row, index]
        args = e.args if isinstance(e.args, (list, tuple)) else []
        row = args[1] if len(args) > 1 and isinstance(args[1], dict) else None
        if row and row.get('id'):
            self._invoke_callback('on_open_ride', row['id'])
