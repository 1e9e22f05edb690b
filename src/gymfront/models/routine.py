"""Completed routine records and their weekly/monthly summary."""

from dataclasses import dataclass
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime


@dataclass
class CompletedRoutine:
    """A workout the user marked as done."""

    id: int
    user_id: int
    workout_id: int
    completed_at: datetime | None
    notes: str | None = None
    duration_minutes: int | None = None
    estimated_calories: int | None = None
    perceived_effort: int | None = None  # 1-10
    workout_name: str | None = None
    workout_difficulty: str | None = None

    def to_dict(self) -> dict:
        return {
            "rutinaCompletadaID": self.id,
            "usuarioID": self.user_id,
            "entrenamientoID": self.workout_id,
            "fechaCompletada": format_datetime(self.completed_at),
            "notas": self.notes,
            "duracionMinutos": self.duration_minutes,
            "caloriasEstimadas": self.estimated_calories,
            "nivelEsfuerzoPercibido": self.perceived_effort,
            "nombreEntrenamiento": self.workout_name,
            "dificultadEntrenamiento": self.workout_difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedRoutine":
        return cls(
            id=int(data["rutinaCompletadaID"]),
            user_id=int(data.get("usuarioID", 0) or 0),
            workout_id=int(data.get("entrenamientoID", 0) or 0),
            completed_at=parse_datetime(data.get("fechaCompletada")),
            notes=data.get("notas"),
            duration_minutes=data.get("duracionMinutos"),
            estimated_calories=data.get("caloriasEstimadas"),
            perceived_effort=data.get("nivelEsfuerzoPercibido"),
            workout_name=data.get("nombreEntrenamiento"),
            workout_difficulty=data.get("dificultadEntrenamiento"),
        )


def routine_payload(
    completed_at: datetime | None = None,
    notes: str | None = None,
    duration_minutes: int | None = None,
    estimated_calories: int | None = None,
    perceived_effort: int | None = None,
    workout_id: int | None = None,
) -> dict:
    """Build a create/update body, omitting unset fields."""
    payload = {
        "entrenamientoID": workout_id,
        "fechaCompletada": format_datetime(completed_at),
        "notas": notes,
        "duracionMinutos": duration_minutes,
        "caloriasEstimadas": estimated_calories,
        "nivelEsfuerzoPercibido": perceived_effort,
    }
    return {k: v for k, v in payload.items() if v is not None}


@dataclass
class RoutineSummary:
    """Aggregate statistics over the user's completed routines."""

    total_completed: int = 0
    completed_last_week: int = 0
    completed_last_month: int = 0
    average_effort: float = 0.0
    total_calories: int = 0
    total_minutes: int = 0
    most_repeated_workout_id: int | None = None
    most_repeated_workout_name: str | None = None
    times_completed: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RoutineSummary":
        if not isinstance(data, dict):
            raise TypeError(f"Summary payload must be an object, got {type(data).__name__}")
        return cls(
            total_completed=int(data.get("totalRutinasCompletadas", 0) or 0),
            completed_last_week=int(data.get("rutinasUltimaSemana", 0) or 0),
            completed_last_month=int(data.get("rutinasUltimoMes", 0) or 0),
            average_effort=float(data.get("promedioEsfuerzo", 0) or 0),
            total_calories=int(data.get("caloriasTotales", 0) or 0),
            total_minutes=int(data.get("minutosTotales", 0) or 0),
            most_repeated_workout_id=data.get("entrenamientoIDMasRepetido"),
            most_repeated_workout_name=data.get("nombreEntrenamientoMasRepetido"),
            times_completed=data.get("vecesCompletado"),
        )
