"""Achievement tracker."""

import logging
from collections.abc import Callable, Iterable

from ..clients.base import ApiClient
from ..errors import AuthenticationError, GymFrontError
from ..models.achievement import Achievement, UserAchievement
from .base import BaseStore
from .session import SessionStore

logger = logging.getLogger(__name__)


def total_experience(achievements: Iterable[UserAchievement]) -> int:
    """Sum the experience of unlocked achievements."""
    return sum(a.experience for a in achievements if a.is_unlocked)


def group_by_category(
    achievements: Iterable[UserAchievement],
) -> dict[str, list[UserAchievement]]:
    """Group achievements by category, keeping their original order."""
    groups: dict[str, list[UserAchievement]] = {}
    for achievement in achievements:
        groups.setdefault(achievement.category, []).append(achievement)
    return groups


def completion_percentage(achievements: Iterable[UserAchievement]) -> int:
    """Percentage of unlocked achievements, rounded; 0 when there are none."""
    items = list(achievements)
    if not items:
        return 0
    unlocked = sum(1 for a in items if a.is_unlocked)
    return round(unlocked / len(items) * 100)


class AchievementTracker(BaseStore):
    """Fetches the achievement catalog and the user's progress on it.

    Reads need a session and raise :class:`AuthenticationError` without
    one. Backend failures on reads empty the matching list, keep the
    message in ``error`` and return the empty list.
    """

    def __init__(self, api: ApiClient, session: SessionStore):
        super().__init__(api)
        self.session = session
        self.available: list[Achievement] = []
        self.user_achievements: list[UserAchievement] = []
        self.recent: list[UserAchievement] = []

    @property
    def total_experience(self) -> int:
        return total_experience(self.user_achievements)

    @property
    def by_category(self) -> dict[str, list[UserAchievement]]:
        return group_by_category(self.user_achievements)

    @property
    def completion_percentage(self) -> int:
        return completion_percentage(self.user_achievements)

    async def _read(
        self,
        path: str,
        parse: Callable[[dict], object],
        error_message: str,
        params: dict | None = None,
    ) -> list:
        try:
            async with self._operation():
                token = self.session.require_token()
                result = await self.api.request(
                    "GET", path, token=token, params=params, error_message=error_message
                )
                return [parse(item) for item in result.data or []]
        except AuthenticationError:
            raise
        except GymFrontError as e:
            logger.warning("GET %s failed: %s", path, e)
            return []

    async def fetch_available(self) -> list[Achievement]:
        """Load the full achievement catalog."""
        self.available = await self._read(
            "/Logro/disponibles", Achievement.from_dict, "Error al cargar logros disponibles"
        )
        return self.available

    async def fetch_user_achievements(self) -> list[UserAchievement]:
        """Load the user's unlock state and progress for every achievement."""
        self.user_achievements = await self._read(
            "/Logro", UserAchievement.from_dict, "Error al cargar logros del usuario"
        )
        return self.user_achievements

    async def fetch_recent(self, count: int = 5) -> list[UserAchievement]:
        """Load the most recently unlocked achievements."""
        self.recent = await self._read(
            "/Logro/recientes",
            UserAchievement.from_dict,
            "Error al cargar logros recientes",
            params={"cantidad": count},
        )
        return self.recent

    async def verify_achievements(self) -> bool:
        """Have the backend re-evaluate unlock conditions, then refresh.

        The user's achievements and the recent list are reloaded before
        this returns.
        """
        async with self._operation():
            token = self.session.require_token()
            await self.api.request(
                "POST",
                "/Logro/verificar",
                token=token,
                error_message="Error al verificar logros",
            )
            logger.info("Achievements re-evaluated, refreshing")

        await self.fetch_user_achievements()
        await self.fetch_recent()
        return True
