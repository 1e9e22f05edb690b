"""Persistence tiers for the session.

A session lives in exactly one tier at a time: the durable tier survives
process restarts (SQLite file), the ephemeral tier lives only as long as
the process. The CLI plays the ephemeral role with a terminal tier, which
lasts as long as the shell it is run from.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from ..models.user import AuthMethod, TierKind, User
from .engine import get_db_path, get_terminal_db_path, init_db

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
AUTH_METHOD_KEY = "authMethod"
SESSION_KEYS = (TOKEN_KEY, USER_KEY, AUTH_METHOD_KEY)


class PersistenceTier(ABC):
    """Key/value storage holding at most one session."""

    @property
    @abstractmethod
    def kind(self) -> TierKind:
        """Return which tier this is."""
        pass

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def has_session(self) -> bool:
        return self.get(TOKEN_KEY) is not None

    def save_session(self, token: str, user: User, auth_method: AuthMethod) -> None:
        """Store a complete session."""
        self.set(TOKEN_KEY, token)
        self.set(USER_KEY, json.dumps(user.to_dict()))
        self.set(AUTH_METHOD_KEY, auth_method.value)

    def save_user(self, user: User) -> None:
        """Re-serialize the user of the session already stored here."""
        self.set(USER_KEY, json.dumps(user.to_dict()))

    def load_session(self) -> tuple[str, User, AuthMethod] | None:
        """Load the stored session, or None if incomplete or unreadable."""
        token = self.get(TOKEN_KEY)
        raw_user = self.get(USER_KEY)
        if token is None or raw_user is None:
            return None

        try:
            user = User.from_dict(json.loads(raw_user))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Discarding unreadable stored user in %s tier: %s", self.kind.value, e)
            return None

        try:
            auth_method = AuthMethod(self.get(AUTH_METHOD_KEY) or AuthMethod.CREDENTIALS.value)
        except ValueError:
            auth_method = AuthMethod.CREDENTIALS

        return token, user, auth_method

    def clear(self) -> None:
        """Remove every session key."""
        for key in SESSION_KEYS:
            self.remove(key)


class EphemeralTier(PersistenceTier):
    """Process-memory storage, gone when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    @property
    def kind(self) -> TierKind:
        return TierKind.EPHEMERAL

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class DurableTier(PersistenceTier):
    """SQLite-backed storage that survives restarts."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        init_db(self.db_path)

    @property
    def kind(self) -> TierKind:
        return TierKind.DURABLE

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def get(self, key: str) -> str | None:
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT value FROM session_store WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO session_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM session_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def clear(self) -> None:
        """Remove every session key; a storage failure is logged, not raised."""
        try:
            super().clear()
        except sqlite3.Error as e:
            logger.warning("Could not clear durable session store %s: %s", self.db_path, e)

    def keys(self) -> list[str]:
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT key FROM session_store ORDER BY key")
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()


class TerminalTier(DurableTier):
    """SQLite storage shared by the commands of one terminal session.

    An unremembered session survives from one command to the next in the
    same shell; other shells do not see it.
    """

    def __init__(self, db_path: Path | None = None):
        super().__init__(db_path or get_terminal_db_path())

    @property
    def kind(self) -> TierKind:
        return TierKind.EPHEMERAL
