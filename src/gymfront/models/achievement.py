"""Achievement catalog and per-user achievement state."""

from dataclasses import dataclass
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime


@dataclass
class Achievement:
    """A catalog entry: a milestone with an experience reward."""

    id: int
    name: str
    description: str
    icon: str
    color: str
    experience: int
    category: str
    target_value: int
    is_secret: bool = False

    def to_dict(self) -> dict:
        return {
            "logroID": self.id,
            "nombre": self.name,
            "descripcion": self.description,
            "icono": self.icon,
            "color": self.color,
            "experiencia": self.experience,
            "categoria": self.category,
            "valorMeta": self.target_value,
            "secreto": self.is_secret,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        return cls(
            id=int(data["logroID"]),
            name=data.get("nombre", ""),
            description=data.get("descripcion", ""),
            icon=data.get("icono", ""),
            color=data.get("color", ""),
            experience=int(data.get("experiencia", 0) or 0),
            category=data.get("categoria", ""),
            target_value=int(data.get("valorMeta", 0) or 0),
            is_secret=bool(data.get("secreto", False)),
        )


@dataclass
class UserAchievement:
    """An achievement as seen by one user, with unlock state and progress.

    ``current_progress`` never exceeds ``target_value``; an unlocked
    achievement always reports full progress.
    """

    id: int
    name: str
    description: str
    icon: str
    color: str
    experience: int
    category: str
    target_value: int
    is_unlocked: bool = False
    unlocked_date: datetime | None = None
    current_progress: int = 0
    is_secret: bool = False

    def __post_init__(self):
        if self.target_value > 0:
            self.current_progress = min(self.current_progress, self.target_value)
            if self.is_unlocked:
                self.current_progress = self.target_value

    @property
    def progress_percentage(self) -> float:
        if self.target_value <= 0:
            return 100.0 if self.is_unlocked else 0.0
        return self.current_progress / self.target_value * 100

    def to_dict(self) -> dict:
        return {
            "logroID": self.id,
            "nombre": self.name,
            "descripcion": self.description,
            "icono": self.icon,
            "color": self.color,
            "experiencia": self.experience,
            "categoria": self.category,
            "valorMeta": self.target_value,
            "desbloqueado": self.is_unlocked,
            "fechaDesbloqueo": format_datetime(self.unlocked_date),
            "progresoActual": self.current_progress,
            "secreto": self.is_secret,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserAchievement":
        return cls(
            id=int(data["logroID"]),
            name=data.get("nombre", ""),
            description=data.get("descripcion", ""),
            icon=data.get("icono", ""),
            color=data.get("color", ""),
            experience=int(data.get("experiencia", 0) or 0),
            category=data.get("categoria", ""),
            target_value=int(data.get("valorMeta", 0) or 0),
            is_unlocked=bool(data.get("desbloqueado", False)),
            unlocked_date=parse_datetime(data.get("fechaDesbloqueo")),
            current_progress=int(data.get("progresoActual", 0) or 0),
            is_secret=bool(data.get("secreto", False)),
        )
