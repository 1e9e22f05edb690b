"""Wiring of the client, session and stores."""

from dataclasses import dataclass

import httpx

from .clients.base import ApiClient
from .config import Settings, load_settings
from .db.engine import get_db_path
from .db.tiers import DurableTier, EphemeralTier, PersistenceTier
from .services.achievements import AchievementTracker
from .services.admin import AdminUsersStore
from .services.measurements import MeasurementsStore
from .services.ranks import RankEngine
from .services.routines import CompletedRoutinesStore
from .services.session import SessionStore


@dataclass
class GymFrontContext:
    """Everything a caller needs, sharing one session."""

    settings: Settings
    api: ApiClient
    session: SessionStore
    routines: CompletedRoutinesStore
    ranks: RankEngine
    achievements: AchievementTracker
    measurements: MeasurementsStore
    admin: AdminUsersStore

    async def __aenter__(self) -> "GymFrontContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.api.aclose()


def build_context(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    durable: PersistenceTier | None = None,
    ephemeral: PersistenceTier | None = None,
) -> GymFrontContext:
    """Construct the client and every store once.

    Args:
        settings: Settings to use; read from the environment if omitted
        transport: Optional httpx transport for the API client
        durable: Durable tier; a SQLite file under ``settings.data_dir``
            if omitted
        ephemeral: Ephemeral tier; a fresh in-memory tier if omitted
    """
    settings = settings or load_settings()
    api = ApiClient(
        settings.api_url,
        timeout=settings.timeout,
        transport=transport,
        verify=settings.verify_tls,
    )
    session = SessionStore(
        api,
        durable=durable or DurableTier(get_db_path(settings.data_dir)),
        ephemeral=ephemeral or EphemeralTier(),
    )
    routines = CompletedRoutinesStore(api, session)
    return GymFrontContext(
        settings=settings,
        api=api,
        session=session,
        routines=routines,
        ranks=RankEngine(api, session, routines, retry_delay=settings.rank_retry_delay),
        achievements=AchievementTracker(api, session),
        measurements=MeasurementsStore(api, session),
        admin=AdminUsersStore(api, session),
    )
