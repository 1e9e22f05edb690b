"""Administration dashboard figures and user-management payloads."""

from dataclasses import dataclass

# Keyword argument -> backend key for admin user create/update
ADMIN_USER_KEYS = {
    "name": "nombre",
    "surname": "apellido",
    "email": "email",
    "password": "password",
    "is_admin": "esAdmin",
    "is_active": "estaActivo",
    "age": "edad",
    "weight": "peso",
    "height": "altura",
}


@dataclass
class AdminStats:
    """Site-wide counters shown on the admin dashboard."""

    total_users: int = 0
    active_users: int = 0
    total_admins: int = 0
    total_exercises: int = 0
    total_workouts: int = 0
    public_workouts: int = 0
    registered_today: int = 0
    registered_this_month: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "AdminStats":
        if not isinstance(data, dict):
            raise TypeError(f"Dashboard payload must be an object, got {type(data).__name__}")
        return cls(
            total_users=int(data.get("totalUsuarios", 0) or 0),
            active_users=int(data.get("usuariosActivos", 0) or 0),
            total_admins=int(data.get("totalAdministradores", 0) or 0),
            total_exercises=int(data.get("totalEjercicios", 0) or 0),
            total_workouts=int(data.get("totalEntrenamientos", 0) or 0),
            public_workouts=int(data.get("entrenamientosPublicos", 0) or 0),
            registered_today=int(data.get("usuariosRegistradosHoy", 0) or 0),
            registered_this_month=int(data.get("usuariosRegistradosEsteMes", 0) or 0),
        )


def admin_user_payload(**fields) -> dict:
    """Build an admin create/update body, omitting unset fields."""
    return {ADMIN_USER_KEYS[key]: value for key, value in fields.items() if value is not None}
