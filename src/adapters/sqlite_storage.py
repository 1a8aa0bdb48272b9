"""SQLite storage adapter.

Implements the core AdminStore port using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Iterable

from core.models import Guild


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the AdminStore contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - admins: users allowed to run admin commands, per guild
        """

        with self._connect() as conn:
            # Fields:
            # - service_id: chat service the guild belongs to
            # - guild_id: chat id the permission applies to
            # - user: username without the leading "@"
            # - granted_at: when the row was written
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS admins (
                    service_id TEXT NOT NULL,
                    guild_id TEXT NOT NULL,
                    user TEXT NOT NULL,
                    granted_at TIMESTAMP NOT NULL,
                    PRIMARY KEY (service_id, guild_id, user)
                )
                """
            )

    def is_admin(self, guild: Guild, user: str) -> bool:
        """Check whether a user is an admin of a guild."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM admins WHERE service_id = ? AND guild_id = ? AND user = ?",
                (guild.service_id, guild.guild_id, user),
            ).fetchone()
        return row is not None

    def set_admin(self, guild: Guild, user: str) -> None:
        """Insert an admin row if it does not exist."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO admins (service_id, guild_id, user, granted_at)
                VALUES (?, ?, ?, ?)
                """,
                (guild.service_id, guild.guild_id, user, now.isoformat()),
            )

    def unset_admin(self, guild: Guild, user: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM admins WHERE service_id = ? AND guild_id = ? AND user = ?",
                (guild.service_id, guild.guild_id, user),
            )

    def seed_admins(self, guild_admins: Iterable[tuple[Guild, str]]) -> int:
        """Grant every (guild, user) pair and return how many were given."""

        count = 0
        for guild, user in guild_admins:
            self.set_admin(guild, user)
            count += 1
        return count
