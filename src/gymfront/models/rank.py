"""Gamified training ranks."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime


@dataclass(frozen=True)
class Rank:
    """A rank band defined by distinct training days per week."""

    id: int
    name: str
    description: str
    icon: str
    color: str
    min_days_per_week: int
    max_days_per_week: int

    def contains(self, days: int) -> bool:
        """Check whether a weekly training count falls inside this band."""
        return self.min_days_per_week <= days <= self.max_days_per_week


RANK_CATALOG: tuple[Rank, ...] = (
    Rank(
        id=1,
        name="Principiante",
        description="Estás empezando tu camino fitness. ¡El primer paso es el más importante!",
        icon="mdi-run",
        color="#9E9E9E",
        min_days_per_week=0,
        max_days_per_week=1,
    ),
    Rank(
        id=2,
        name="Constante",
        description="Empiezas a crear un hábito saludable entrenando regularmente.",
        icon="mdi-trending-up",
        color="#8BC34A",
        min_days_per_week=2,
        max_days_per_week=2,
    ),
    Rank(
        id=3,
        name="Comprometido",
        description="Tu compromiso con el entrenamiento es evidente. ¡Sigue así!",
        icon="mdi-arm-flex",
        color="#4CAF50",
        min_days_per_week=3,
        max_days_per_week=3,
    ),
    Rank(
        id=4,
        name="Dedicado",
        description="Entrenas más de la mitad de la semana. ¡Tu dedicación es admirable!",
        icon="mdi-weight-lifter",
        color="#2196F3",
        min_days_per_week=4,
        max_days_per_week=4,
    ),
    Rank(
        id=5,
        name="Disciplinado",
        description="5 días a la semana. ¡Tu disciplina está construyendo resultados increíbles!",
        icon="mdi-medal",
        color="#FF9800",
        min_days_per_week=5,
        max_days_per_week=5,
    ),
    Rank(
        id=6,
        name="Atleta",
        description="Entrenas casi todos los días. ¡Eres un verdadero atleta!",
        icon="mdi-trophy",
        color="#F44336",
        min_days_per_week=6,
        max_days_per_week=6,
    ),
    Rank(
        id=7,
        name="Élite",
        description="¡Entrenas todos los días! Tu dedicación te coloca en la élite fitness.",
        icon="mdi-crown",
        color="#E91E63",
        min_days_per_week=7,
        max_days_per_week=7,
    ),
)


# Python attribute -> backend key
USER_RANK_WIRE_FIELDS = {
    "rank_id": "rolID",
    "rank_name": "nombreRol",
    "color": "color",
    "icon": "icono",
    "assigned_date": "fechaAsignacion",
    "days_trained_this_week": "diasEntrenadosSemana",
    "days_to_next_rank": "diasParaSiguienteRol",
    "progress_to_next_rank": "progresoSiguienteRol",
    "week_number": "numeroSemana",
}


@dataclass
class UserRank:
    """The current user's rank and progress for this week."""

    rank_id: int
    rank_name: str
    color: str
    icon: str
    days_trained_this_week: int
    days_to_next_rank: int
    progress_to_next_rank: float  # percentage 0-100
    week_number: int
    assigned_date: datetime | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> dict:
        data = {}
        for attr, key in USER_RANK_WIRE_FIELDS.items():
            value = getattr(self, attr)
            if attr == "assigned_date":
                value = format_datetime(value)
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UserRank":
        """Create from the backend's current-rank payload."""
        if not isinstance(data, dict):
            raise TypeError(f"Rank payload must be an object, got {type(data).__name__}")

        def pick(attr: str, default=None):
            key = USER_RANK_WIRE_FIELDS[attr]
            if key in data:
                return data[key]
            return data.get(attr, default)

        rank_id = pick("rank_id")
        if rank_id is None:
            raise ValueError("Rank payload has no rank id")

        return cls(
            rank_id=int(rank_id),
            rank_name=pick("rank_name", "") or "",
            color=pick("color", "") or "",
            icon=pick("icon", "") or "",
            assigned_date=parse_datetime(pick("assigned_date")),
            days_trained_this_week=int(pick("days_trained_this_week", 0) or 0),
            days_to_next_rank=int(pick("days_to_next_rank", 0) or 0),
            progress_to_next_rank=float(pick("progress_to_next_rank", 0) or 0),
            week_number=int(pick("week_number", 0) or 0),
            raw=dict(data),
        )

    def get_progress_display(self) -> str:
        """Get a human-readable progress string."""
        if self.days_to_next_rank == 0 and self.progress_to_next_rank >= 100:
            return f"{self.rank_name} (100%)"
        return (
            f"{self.rank_name} ({self.progress_to_next_rank:.0f}%, "
            f"{self.days_to_next_rank} day(s) to next rank)"
        )
