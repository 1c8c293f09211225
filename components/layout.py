"""
components/layout.py
────────────────────
Application shell for the dashboard.

Owns:
  • Header (branding, view switch, last-updated time, theme toggle, refresh,
    disconnect)
  • Error banner shown when a refresh fails
  • Filter bar (month select, long-ride toggle, active period chip)
  • The content container the views render into

Does not own:
  • Data loading or aggregation (injected callbacks)
  • View rendering (app calls into the view components)
"""
from __future__ import annotations

from datetime import datetime

from nicegui import ui

from constants import FILTER_ALL_MONTHS, LONG_RIDE_MIN_KM, THEME_DARK, UI_COPY
from state import VIEW_DASHBOARD, VIEW_SUMMARY


def format_last_updated(fetched_at, tz=None):
    """Header text for an ISO fetch timestamp, shown in local time unless ``tz`` is given."""
    if not fetched_at:
        return ''
    try:
        when = datetime.fromisoformat(fetched_at)
    except (TypeError, ValueError):
        return ''
    return UI_COPY['last_updated'].format(when=when.astimezone(tz).strftime('%d %b %H:%M'))


class AppShell:
    """Encapsulates app-level shell scaffolding and shell-owned UI refs."""

    def __init__(self, state, callbacks=None):
        self.state = state
        self.callbacks = callbacks or {}

        self.month_options = []

        # Header refs
        self.refresh_btn = None
        self.theme_btn = None
        self.view_toggle = None
        self.updated_label = None

        # Body refs
        self.error_banner = None
        self.error_label = None
        self.filter_container = None
        self.content_container = None

    def _invoke_callback(self, name, *args, **kwargs):
        cb = self.callbacks.get(name)
        if not callable(cb):
            return None
        return cb(*args, **kwargs)

    def build(self):
        """Build header, banner, filter bar and the empty content area."""
        self.build_header()
        with ui.column().classes('w-full max-w-6xl mx-auto p-4 gap-4'):
            self.build_error_banner()
            self.filter_container = ui.row().classes('w-full items-center gap-3')
            self.content_container = ui.column().classes('w-full gap-4')
        self.update_filter_bar()
        return self

    def build_header(self):
        with ui.row().classes(
            'w-full sticky top-0 z-50 bg-zinc-900 border-b border-zinc-800 items-center justify-between px-6 py-2'
        ):
            ui.label(f"🛵 {UI_COPY['app_title']}").classes('text-xl font-black tracking-tight text-white')

            self.view_toggle = ui.toggle(
                {VIEW_DASHBOARD: 'Dashboard', VIEW_SUMMARY: 'Summary'},
                value=self.state.current_view,
                on_change=lambda e: self._invoke_callback('on_view_change', e.value),
            ).props('dense no-caps toggle-color="green" text-color="grey-5"')

            with ui.row().classes('items-center gap-1'):
                self.updated_label = ui.label('').classes('text-xs text-zinc-500 mr-2')
                self.theme_btn = ui.button(
                    icon=self._theme_icon(),
                    on_click=lambda: self._invoke_callback('on_toggle_theme'),
                    color=None,
                ).props('flat round dense').classes('text-zinc-300').tooltip('Toggle theme')
                self.refresh_btn = ui.button(
                    icon='refresh',
                    on_click=lambda: self._invoke_callback('on_refresh'),
                    color=None,
                ).props('flat round dense').classes('text-zinc-300').tooltip('Refresh data')
                ui.button(
                    icon='link_off',
                    on_click=lambda: self._invoke_callback('on_disconnect'),
                    color=None,
                ).props('flat round dense').classes('text-zinc-300 hover:text-red-400').tooltip('Disconnect')

    def build_error_banner(self):
        self.error_banner = ui.row().classes(
            'w-full items-center gap-3 px-4 py-2 rounded-lg bg-red-500/10 border border-red-500/40'
        )
        with self.error_banner:
            ui.icon('error_outline').classes('text-red-400')
            self.error_label = ui.label('').classes('text-sm text-red-300 flex-1')
            ui.button(icon='close', on_click=self.clear_error, color=None).props('flat round dense').classes(
                'text-red-300'
            )
        self.error_banner.set_visibility(bool(self.state.error))

    def _theme_icon(self):
        return 'light_mode' if self.state.theme == THEME_DARK else 'dark_mode'

    # --- State reactions ---

    def set_loading(self, loading):
        if self.refresh_btn is None:
            return
        if loading:
            self.refresh_btn.props(add='loading disable')
        else:
            self.refresh_btn.props(remove='loading disable')

    def set_last_updated(self, fetched_at):
        if self.updated_label is not None:
            self.updated_label.text = format_last_updated(fetched_at)

    def show_error(self, message):
        if self.error_banner is None:
            return
        self.error_label.text = message or ''
        self.error_banner.set_visibility(bool(message))

    def clear_error(self):
        self.state.error = None

    def update_theme_icon(self, _theme=None):
        if self.theme_btn is not None:
            self.theme_btn.props(f'icon={self._theme_icon()}')

    def set_month_options(self, options):
        self.month_options = list(options or [])
        self.update_filter_bar()

    # --- Filter bar ---

    def update_filter_bar(self):
        """Render month select, long-ride switch and the active period chip."""
        if self.filter_container is None:
            return

        self.filter_container.clear()
        filters = self.state.filters
        options = {FILTER_ALL_MONTHS: 'All months'}
        options.update(dict(self.month_options))
        current = filters.month if filters.month in options else FILTER_ALL_MONTHS

        with self.filter_container:
            ui.select(
                options=options,
                value=current,
                on_change=lambda e: self._invoke_callback('on_month_change', e.value),
            ).classes('w-44').props('outlined dense options-dense')

            ui.switch(
                f'Long rides (≥ {LONG_RIDE_MIN_KM:g} km)',
                value=filters.long_rides_only,
                on_change=lambda e: self._invoke_callback('on_long_rides_change', e.value),
            ).classes('text-sm')

            if filters.period_key:
                ui.chip(
                    f'Period: {filters.period_key}',
                    icon='event',
                    removable=True,
                    on_value_change=lambda e: None if e.value else self._invoke_callback('on_clear_period'),
                ).props('outline color="orange"')

            if filters.is_active:
                ui.button(
                    'Clear filters',
                    on_click=lambda: self._invoke_callback('on_clear_filters'),
                    color=None,
                ).props('flat dense no-caps').classes('text-xs text-zinc-400 hover:text-white')
