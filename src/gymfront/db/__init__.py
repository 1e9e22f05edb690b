"""Session persistence for gymfront."""

from .engine import get_db_path, get_terminal_db_path, init_db
from .tiers import DurableTier, EphemeralTier, PersistenceTier, TerminalTier

__all__ = [
    "DurableTier",
    "EphemeralTier",
    "get_db_path",
    "get_terminal_db_path",
    "init_db",
    "PersistenceTier",
    "TerminalTier",
]
