import logging
import sqlite3
from datetime import datetime, timezone

from constants import (
    DEFAULT_DB_PATH,
    DEFAULT_THEME,
    SETTING_SOURCE_URL,
    SETTING_THEME,
    THEME_DARK,
    THEME_LIGHT,
)


logger = logging.getLogger(__name__)


class DatabaseManager:
    """Local key/value store for the rider's source URL and theme."""

    def __init__(self, db_path=DEFAULT_DB_PATH):
        self.db_path = db_path
        self.create_tables()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def create_tables(self):
        with self.get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')

    def get_setting(self, key, default=None):
        with self.get_connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
            if row is None:
                return default
            return row[0]

    def set_setting(self, key, value):
        now_iso = datetime.now(timezone.utc).isoformat()
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, str(value), now_iso),
            )

    def delete_setting(self, key):
        with self.get_connection() as conn:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))

    # --- Named settings ---

    def get_source_url(self):
        url = self.get_setting(SETTING_SOURCE_URL)
        return url or None

    def set_source_url(self, url):
        self.set_setting(SETTING_SOURCE_URL, url.strip())

    def clear_source_url(self):
        self.delete_setting(SETTING_SOURCE_URL)

    def get_theme(self):
        theme = self.get_setting(SETTING_THEME, DEFAULT_THEME)
        if theme not in (THEME_DARK, THEME_LIGHT):
            logger.warning("Ignoring unknown theme setting %r", theme)
            return DEFAULT_THEME
        return theme

    def set_theme(self, theme):
        if theme not in (THEME_DARK, THEME_LIGHT):
            raise ValueError(f"Unknown theme: {theme}")
        self.set_setting(SETTING_THEME, theme)
