"""Completed routines store."""

import logging
from datetime import datetime

from ..clients.base import ApiClient
from ..models.routine import CompletedRoutine, RoutineSummary, routine_payload
from .base import BaseStore
from .session import SessionStore

logger = logging.getLogger(__name__)

BASE_PATH = "/RutinaCompletada"


class CompletedRoutinesStore(BaseStore):
    """Caches the user's completed routines and their summary.

    Failed reads empty the cache; failed writes leave it as it was.
    Writes touching the same routine are serialized.
    """

    def __init__(self, api: ApiClient, session: SessionStore):
        super().__init__(api)
        self.session = session
        self.routines: list[CompletedRoutine] = []
        self.summary: RoutineSummary | None = None

    def _lock_key(self, routine_id: int | str) -> str:
        return f"routine:{routine_id}"

    async def fetch_all(self) -> list[CompletedRoutine]:
        """Load every completed routine of the current user."""
        try:
            async with self._operation():
                token = self.session.require_token()
                result = await self.api.request(
                    "GET",
                    BASE_PATH,
                    token=token,
                    error_message="Error al cargar las rutinas completadas",
                )
                routines = [CompletedRoutine.from_dict(item) for item in result.data or []]
        except Exception:
            self.routines = []
            raise

        self.routines = routines
        return routines

    async def get(self, routine_id: int) -> CompletedRoutine:
        """Load one completed routine."""
        async with self._operation():
            token = self.session.require_token()
            result = await self.api.request(
                "GET",
                f"{BASE_PATH}/{routine_id}",
                token=token,
                error_message="Error al cargar la rutina completada",
            )
            return CompletedRoutine.from_dict(result.data)

    async def list_for_workout(self, workout_id: int) -> list[CompletedRoutine]:
        """Load the completions of one workout."""
        async with self._operation():
            token = self.session.require_token()
            result = await self.api.request(
                "GET",
                f"{BASE_PATH}/Entrenamiento/{workout_id}",
                token=token,
                error_message="Error al cargar las rutinas completadas",
            )
            return [CompletedRoutine.from_dict(item) for item in result.data or []]

    async def fetch_summary(self) -> RoutineSummary:
        """Load weekly/monthly completion statistics."""
        try:
            async with self._operation():
                token = self.session.require_token()
                result = await self.api.request(
                    "GET",
                    f"{BASE_PATH}/Resumen",
                    token=token,
                    error_message="Error al cargar el resumen",
                )
                summary = RoutineSummary.from_dict(result.data)
        except Exception:
            self.summary = None
            raise

        self.summary = summary
        return summary

    async def complete(
        self,
        workout_id: int,
        completed_at: datetime | None = None,
        notes: str | None = None,
        duration_minutes: int | None = None,
        estimated_calories: int | None = None,
        perceived_effort: int | None = None,
    ) -> CompletedRoutine:
        """Mark a workout as completed."""
        async with self._operation():
            token = self.session.require_token()
            body = routine_payload(
                workout_id=workout_id,
                completed_at=completed_at,
                notes=notes,
                duration_minutes=duration_minutes,
                estimated_calories=estimated_calories,
                perceived_effort=perceived_effort,
            )
            async with self.session.locks.hold(self._lock_key(f"new:{workout_id}")):
                result = await self.api.request(
                    "POST",
                    BASE_PATH,
                    token=token,
                    json=body,
                    error_message="Error al marcar la rutina como completada",
                )
                routine = CompletedRoutine.from_dict(result.data)

            self.routines.insert(0, routine)
            logger.info("Workout %s marked as completed", workout_id)
            return routine

    async def update(
        self,
        routine_id: int,
        completed_at: datetime | None = None,
        notes: str | None = None,
        duration_minutes: int | None = None,
        estimated_calories: int | None = None,
        perceived_effort: int | None = None,
    ) -> CompletedRoutine:
        """Edit a completed routine."""
        async with self._operation():
            token = self.session.require_token()
            body = routine_payload(
                completed_at=completed_at,
                notes=notes,
                duration_minutes=duration_minutes,
                estimated_calories=estimated_calories,
                perceived_effort=perceived_effort,
            )
            async with self.session.locks.hold(self._lock_key(routine_id)):
                result = await self.api.request(
                    "PUT",
                    f"{BASE_PATH}/{routine_id}",
                    token=token,
                    json=body,
                    error_message="Error al actualizar la rutina completada",
                )
                routine = CompletedRoutine.from_dict(result.data)

                for i, cached in enumerate(self.routines):
                    if cached.id == routine_id:
                        self.routines[i] = routine
                        break
            return routine

    async def delete(self, routine_id: int) -> bool:
        """Delete a completed routine."""
        async with self._operation():
            token = self.session.require_token()
            async with self.session.locks.hold(self._lock_key(routine_id)):
                await self.api.request(
                    "DELETE",
                    f"{BASE_PATH}/{routine_id}",
                    token=token,
                    error_message="Error al eliminar la rutina completada",
                    expect_body=False,
                )
                self.routines = [r for r in self.routines if r.id != routine_id]
            return True
