"""Rank engine: the user's gamified weekly training rank."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime

from ..clients.base import ApiClient
from ..errors import GymFrontError, NotFoundTransient
from ..models.rank import RANK_CATALOG, Rank, UserRank
from .base import BaseStore
from .routines import CompletedRoutinesStore
from .session import SessionStore

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


def select_rank(catalog: Sequence[Rank], weekly_count: int) -> Rank:
    """Pick the rank band containing a weekly training count.

    Counts above the catalog go to the top band, counts below it to the
    bottom band.
    """
    if not catalog:
        raise ValueError("Rank catalog is empty")

    ordered = sorted(catalog, key=lambda r: r.min_days_per_week)
    top = ordered[-1]
    if weekly_count >= top.min_days_per_week:
        return top

    for rank in ordered:
        if rank.contains(weekly_count):
            return rank

    return ordered[0]


def _next_rank(catalog: Sequence[Rank], current: Rank) -> Rank | None:
    higher = [r for r in catalog if r.min_days_per_week > current.max_days_per_week]
    if not higher:
        return None
    return min(higher, key=lambda r: r.min_days_per_week)


def progress_to_next_rank(catalog: Sequence[Rank], weekly_count: int) -> float:
    """Progress through the current band as a percentage (0-100).

    A count at the top of its band, or in the top band, is 100.
    """
    current = select_rank(catalog, weekly_count)
    if _next_rank(catalog, current) is None:
        return 100.0
    if weekly_count >= current.max_days_per_week:
        return 100.0

    span = current.max_days_per_week - current.min_days_per_week
    if span == 0:
        return 100.0

    progress = (weekly_count - current.min_days_per_week) / span * 100
    return min(100.0, max(0.0, progress))


def days_to_next_rank(catalog: Sequence[Rank], weekly_count: int) -> int:
    """Training days still needed this week to reach the next rank."""
    current = select_rank(catalog, weekly_count)
    following = _next_rank(catalog, current)
    if following is None:
        return 0
    return max(0, following.min_days_per_week - weekly_count)


def compute_user_rank(
    catalog: Sequence[Rank], weekly_count: int, today: datetime | None = None
) -> UserRank:
    """Build a full :class:`UserRank` from a weekly training count."""
    today = today or datetime.now()
    rank = select_rank(catalog, weekly_count)
    return UserRank(
        rank_id=rank.id,
        rank_name=rank.name,
        color=rank.color,
        icon=rank.icon,
        assigned_date=today,
        days_trained_this_week=weekly_count,
        days_to_next_rank=days_to_next_rank(catalog, weekly_count),
        progress_to_next_rank=progress_to_next_rank(catalog, weekly_count),
        week_number=today.isocalendar()[1],
    )


class RankEngine(BaseStore):
    """Fetches the server-computed rank, with a client-side fallback.

    Args:
        api: Backend client
        session: Session providing the bearer token
        routines: Completed-routines store used by the fallback
        catalog: Rank bands, ordered by minimum days
        retry_delay: Seconds to wait before retrying a 404
        sleep: Coroutine used for that wait
    """

    def __init__(
        self,
        api: ApiClient,
        session: SessionStore,
        routines: CompletedRoutinesStore | None = None,
        catalog: Sequence[Rank] = RANK_CATALOG,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(api)
        self.session = session
        self.routines = routines
        self.catalog = tuple(catalog)
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.current_rank: UserRank | None = None

    def all_ranks(self) -> list[Rank]:
        return list(self.catalog)

    def get_rank_by_id(self, rank_id: int) -> Rank | None:
        for rank in self.catalog:
            if rank.id == rank_id:
                return rank
        return None

    async def _fetch_rank(self, token: str) -> UserRank:
        result = await self.api.request(
            "GET",
            "/Rol/usuario",
            token=token,
            params={"_": int(time.time() * 1000)},
            headers=NO_CACHE_HEADERS,
            error_message="Error al obtener el rango del usuario",
            status_errors={404: NotFoundTransient},
        )
        return UserRank.from_dict(result.data)

    async def get_current_user_rank(self) -> UserRank | None:
        """Ask the backend for the current rank.

        Returns None, without raising, when there is no session or the
        lookup fails; the failure message is kept in ``error``. A first 404
        (rank not computed yet for a new user) is retried once after
        ``retry_delay`` seconds.
        """
        if not self.session.is_authenticated:
            return None

        try:
            async with self._operation():
                token = self.session.require_token()
                try:
                    rank = await self._fetch_rank(token)
                except NotFoundTransient:
                    logger.info("Rank not computed yet, retrying in %.1fs", self.retry_delay)
                    await self._sleep(self.retry_delay)
                    rank = await self._fetch_rank(token)
        except GymFrontError as e:
            logger.warning("Could not fetch current rank: %s", e)
            self.current_rank = None
            return None

        self.current_rank = rank
        return rank

    async def get_fallback_rank(self) -> UserRank | None:
        """Compute the rank locally from the completed-routines summary."""
        if not self.session.is_authenticated or self.routines is None:
            return None

        try:
            async with self._operation():
                summary = await self.routines.fetch_summary()
        except GymFrontError as e:
            logger.warning("Could not fetch routine summary: %s", e)
            self.current_rank = None
            return None

        weekly_count = summary.completed_last_week if summary else 0
        rank = compute_user_rank(self.catalog, weekly_count)
        self.current_rank = rank
        return rank
