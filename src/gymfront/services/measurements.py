"""Body measurements store."""

import logging

from ..clients.base import ApiClient
from ..errors import ValidationError
from ..models.measurement import (
    MEASUREMENT_WIRE_FIELDS,
    Measurement,
    MeasurementSummary,
    measurement_payload,
)
from .base import BaseStore
from .session import SessionStore

logger = logging.getLogger(__name__)

BASE_PATH = "/Medicion"


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - set(MEASUREMENT_WIRE_FIELDS)
    if unknown:
        raise ValidationError(f"Campos desconocidos: {', '.join(sorted(unknown))}")


class MeasurementsStore(BaseStore):
    """Caches the user's body measurements, newest first, and their monthly summary.

    Failed reads empty the cache; failed writes leave it as it was.
    Writes touching the same measurement are serialized.
    """

    def __init__(self, api: ApiClient, session: SessionStore):
        super().__init__(api)
        self.session = session
        self.measurements: list[Measurement] = []
        self.summary: list[MeasurementSummary] = []

    def _lock_key(self, measurement_id: int) -> str:
        return f"measurement:{measurement_id}"

    async def fetch_all(self) -> list[Measurement]:
        """Load every measurement of the current user."""
        try:
            async with self._operation():
                token = self.session.require_token()
                result = await self.api.request(
                    "GET",
                    BASE_PATH,
                    token=token,
                    error_message="Error al cargar mediciones",
                )
                measurements = [Measurement.from_dict(item) for item in result.data or []]
        except Exception:
            self.measurements = []
            raise

        self.measurements = measurements
        return measurements

    async def fetch_summary(self) -> list[MeasurementSummary]:
        """Load the monthly averages."""
        try:
            async with self._operation():
                token = self.session.require_token()
                result = await self.api.request(
                    "GET",
                    f"{BASE_PATH}/Resumen",
                    token=token,
                    error_message="Error al cargar resumen de mediciones",
                )
                summary = [MeasurementSummary.from_dict(item) for item in result.data or []]
        except Exception:
            self.summary = []
            raise

        self.summary = summary
        return summary

    async def get(self, measurement_id: int) -> Measurement:
        """Load one measurement."""
        async with self._operation():
            token = self.session.require_token()
            result = await self.api.request(
                "GET",
                f"{BASE_PATH}/{measurement_id}",
                token=token,
                error_message="Error al cargar medición",
            )
            return Measurement.from_dict(result.data)

    async def create(self, **fields) -> Measurement:
        """Record a new measurement for the signed-in user.

        Accepts ``date``, ``weight``, ``height``, ``body_fat``, ``arm``,
        ``chest``, ``waist``, ``thigh`` and ``notes``. The owner is always
        the session's user.
        """
        async with self._operation():
            token = self.session.require_token()
            _check_fields(fields)
            body = measurement_payload(user_id=self.session.user.id, **fields)
            result = await self.api.request(
                "POST",
                BASE_PATH,
                token=token,
                json=body,
                error_message="Error al crear medición",
            )
            measurement = Measurement.from_dict(result.data)

            self.measurements.insert(0, measurement)
            logger.info("Measurement %s recorded", measurement.id)
            return measurement

    async def update(self, measurement_id: int, **fields) -> Measurement:
        """Edit a measurement; takes the same fields as :meth:`create`."""
        async with self._operation():
            token = self.session.require_token()
            _check_fields(fields)
            body = measurement_payload(**fields)
            async with self.session.locks.hold(self._lock_key(measurement_id)):
                result = await self.api.request(
                    "PUT",
                    f"{BASE_PATH}/{measurement_id}",
                    token=token,
                    json=body,
                    error_message="Error al actualizar medición",
                )
                measurement = Measurement.from_dict(result.data)

                for i, cached in enumerate(self.measurements):
                    if cached.id == measurement_id:
                        self.measurements[i] = measurement
                        break
            return measurement

    async def delete(self, measurement_id: int) -> bool:
        """Delete a measurement."""
        async with self._operation():
            token = self.session.require_token()
            async with self.session.locks.hold(self._lock_key(measurement_id)):
                await self.api.request(
                    "DELETE",
                    f"{BASE_PATH}/{measurement_id}",
                    token=token,
                    error_message="Error al eliminar medición",
                    expect_body=False,
                )
                self.measurements = [m for m in self.measurements if m.id != measurement_id]
            return True
