"""CLI commands for gymfront."""

from .admin import admin
from .auth import google_login, login, logout, password_reset, profile, register, whoami
from .measurements import measurements
from .progress import achievements, rank, routines

__all__ = [
    "achievements",
    "admin",
    "google_login",
    "login",
    "logout",
    "measurements",
    "password_reset",
    "profile",
    "rank",
    "register",
    "routines",
    "whoami",
]
