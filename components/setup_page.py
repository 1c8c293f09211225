"""
components/setup_page.py
────────────────────────
First-run form asking for the published ride-log CSV URL.

The connect handler is injected; it is awaited and must raise a
RideSourceError when the URL cannot be loaded so the form can show it.
"""
from __future__ import annotations

from nicegui import ui

from constants import UI_COPY
from core.errors import RideSourceError


class SetupPage:
    def __init__(self, on_connect):
        self.on_connect = on_connect
        self.url_input = None
        self.error_label = None
        self.connect_btn = None

    def build(self):
        with ui.column().classes('w-full min-h-screen items-center justify-center p-6'):
            with ui.card().classes(
                'w-full max-w-lg bg-zinc-900/90 border border-zinc-800 p-8 gap-4 shadow-2xl'
            ).style('border-radius: 16px;'):
                ui.label(UI_COPY['setup_title']).classes('text-2xl font-black text-white')
                ui.label(UI_COPY['setup_subtitle']).classes('text-sm text-zinc-400')

                self.url_input = ui.input(
                    'Published CSV URL',
                    placeholder=UI_COPY['setup_placeholder'],
                ).classes('w-full').props('outlined dense clearable')
                self.url_input.on('keydown.enter', self.submit)

                ui.label(UI_COPY['setup_help']).classes('text-xs text-zinc-500 font-mono')

                self.error_label = ui.label('').classes('text-sm text-red-400')
                self.error_label.set_visibility(False)

                self.connect_btn = ui.button('Connect', icon='link', on_click=self.submit).classes(
                    'w-full bg-emerald-600 text-white font-bold'
                ).props('no-caps')
        return self

    def show_error(self, message):
        self.error_label.text = message
        self.error_label.set_visibility(bool(message))

    async def submit(self):
        url = (self.url_input.value or '').strip()
        if not url:
            self.show_error('Please enter the CSV URL.')
            return

        self.show_error('')
        self.connect_btn.props(add='loading disable')
        try:
            await self.on_connect(url)
        except RideSourceError as exc:
            self.show_error(exc.message)
        finally:
            if not self.connect_btn.is_deleted:
                self.connect_btn.props(remove='loading disable')
