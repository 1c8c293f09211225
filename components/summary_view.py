"""
components/summary_view.py
──────────────────────────
SummaryView: daily / weekly / monthly period summaries with trend arrows.

Selecting a period shows its breakdown chart (rides within a day, days
within a week or month). Data is pushed in with ``set_data`` and the view
re-renders itself; it never loads anything.
"""
from __future__ import annotations

from nicegui import ui

from constants import (
    SUMMARY_DAILY,
    SUMMARY_MONTHLY,
    SUMMARY_WEEKLY,
    THEME_DARK,
    TREND_DOWN,
    TREND_UP,
)
from core.aggregations import summary_breakdown, summary_trends
from components.cards import format_duration
from components.charts import build_breakdown_chart

TAB_LABELS = {
    SUMMARY_DAILY: 'Daily',
    SUMMARY_WEEKLY: 'Weekly',
    SUMMARY_MONTHLY: 'Monthly',
}

# Lower Wh/km is better, so efficiency trends colour the other way round.
TREND_METRICS = (
    ('total_distance', 'km', False),
    ('avg_efficiency', 'Wh/km', True),
)


def trend_badge(trend, lower_is_better=False):
    """(arrow, tailwind colour class, text) for a TrendDelta, or None."""
    if trend is None:
        return None
    if trend.direction == TREND_UP:
        arrow, good = '▲', not lower_is_better
    elif trend.direction == TREND_DOWN:
        arrow, good = '▼', lower_is_better
    else:
        return ('■', 'text-zinc-500', f"{trend.value:.1f}%")
    return (arrow, 'text-emerald-400' if good else 'text-red-400', f"{trend.value:.1f}%")


class SummaryView:
    def __init__(self, state):
        self.state = state
        self.rides = ()
        self.aggregates = None
        self.kind = SUMMARY_DAILY
        self.selected_key = None
        self.container = None
        self.breakdown_container = None

    def set_data(self, rides, aggregates):
        self.rides = tuple(rides)
        self.aggregates = aggregates
        self.refresh()

    def build(self):
        self.container = ui.column().classes('w-full gap-4')
        self.refresh()
        return self

    def _summaries(self):
        if self.aggregates is None:
            return []
        return {
            SUMMARY_DAILY: self.aggregates.daily,
            SUMMARY_WEEKLY: self.aggregates.weekly,
            SUMMARY_MONTHLY: self.aggregates.monthly_summaries,
        }[self.kind]

    def _on_tab_change(self, e):
        self.kind = e.value
        self.selected_key = None
        self.refresh()

    def _select(self, key):
        self.selected_key = None if key == self.selected_key else key
        self.refresh()

    def refresh(self):
        if self.container is None:
            return
        self.container.clear()
        theme = self.state.theme or THEME_DARK
        summaries = list(self._summaries())

        with self.container:
            ui.toggle(
                {kind: label for kind, label in TAB_LABELS.items()},
                value=self.kind,
                on_change=self._on_tab_change,
            ).props('dense no-caps toggle-color="green"')

            if not summaries:
                ui.label('No rides to summarise.').classes('text-sm text-zinc-500 font-mono')
                return

            trends = {
                metric: summary_trends(summaries, metric)
                for metric, _, _ in TREND_METRICS
            }

            selected = next((s for s in summaries if s.key == self.selected_key), None)
            if selected is not None:
                with ui.card().classes('w-full bg-zinc-900/80 border border-zinc-800 p-4 gap-2').style(
                    'border-radius: 12px;'
                ):
                    ui.label(selected.label).classes('text-sm font-bold text-white')
                    ui.plotly(build_breakdown_chart(summary_breakdown(self.rides, selected), theme)).classes(
                        'w-full'
                    )

            with ui.column().classes('w-full gap-2'):
                for index, summary in enumerate(summaries):
                    self._summary_row(summary, {m: trends[m][index] for m in trends})

    def _summary_row(self, summary, trends):
        active = summary.key == self.selected_key
        border = 'border-emerald-500' if active else 'border-zinc-800'
        with ui.card().classes(
            f'w-full bg-zinc-900/80 border {border} px-4 py-3 cursor-pointer hover:bg-zinc-800/80'
        ).style('border-radius: 12px;').on('click', lambda key=summary.key: self._select(key)):
            with ui.row().classes('w-full items-center justify-between no-wrap'):
                with ui.column().classes('gap-0'):
                    ui.label(summary.label).classes('text-sm font-bold text-white')
                    details = f"{summary.ride_count} ride{'s' if summary.ride_count != 1 else ''}"
                    if summary.kind != SUMMARY_DAILY:
                        details += f" · {summary.days_active} day{'s' if summary.days_active != 1 else ''}"
                    details += f" · {format_duration(summary.total_duration)}"
                    ui.label(details).classes('text-xs text-zinc-500')

                with ui.row().classes('items-center gap-6 no-wrap'):
                    for metric, unit, lower_is_better in TREND_METRICS:
                        value = getattr(summary, metric)
                        with ui.column().classes('gap-0 items-end'):
                            ui.label(f"{value:.1f} {unit}").classes('text-sm font-bold text-white')
                            badge = trend_badge(trends[metric], lower_is_better)
                            if badge:
                                arrow, color, text = badge
                                ui.label(f"{arrow} {text}").classes(f'text-[11px] font-mono {color}')
                    with ui.column().classes('gap-0 items-end'):
                        ui.label(f"{summary.total_energy:.2f} kWh").classes('text-sm font-bold text-white')
                        ui.label(f"max {summary.max_speed:.0f} km/h").classes('text-[11px] text-zinc-500')
