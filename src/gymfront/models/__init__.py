"""Data models for gymfront."""

from .achievement import Achievement, UserAchievement
from .admin import AdminStats
from .measurement import Measurement, MeasurementSummary
from .rank import RANK_CATALOG, Rank, UserRank
from .routine import CompletedRoutine, RoutineSummary
from .user import AuthMethod, Credentials, Registration, TierKind, User

__all__ = [
    "Achievement",
    "AdminStats",
    "AuthMethod",
    "CompletedRoutine",
    "Credentials",
    "Measurement",
    "MeasurementSummary",
    "RANK_CATALOG",
    "Rank",
    "Registration",
    "RoutineSummary",
    "TierKind",
    "User",
    "UserAchievement",
    "UserRank",
]
