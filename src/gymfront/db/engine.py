"""Session database setup."""

import getpass
import os
import sqlite3
import tempfile
from pathlib import Path

from ..config import DEFAULT_DATA_DIR


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the session database file path."""
    if data_dir is None:
        data_dir = DEFAULT_DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "session.db"


def get_terminal_db_path(runtime_dir: Path | None = None, terminal_id: int | None = None) -> Path:
    """Get the database shared by the commands run from one terminal.

    The file lives under ``$XDG_RUNTIME_DIR`` (the system temp directory
    when unset), in a directory only the current user can read. It is keyed
    by ``terminal_id``, by default the parent process id: the shell, for a
    command typed at a prompt.
    """
    if runtime_dir is None:
        runtime_dir = Path(os.environ.get("XDG_RUNTIME_DIR") or tempfile.gettempdir())
    if terminal_id is None:
        terminal_id = os.getppid()
    session_dir = runtime_dir / f"gymfront-{getpass.getuser()}"
    session_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    return session_dir / f"terminal-{terminal_id}.db"


def init_db(db_path: Path | None = None) -> None:
    """Initialize the key/value schema."""
    if db_path is None:
        db_path = get_db_path()

    conn = sqlite3.connect(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS session_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
    finally:
        conn.close()
