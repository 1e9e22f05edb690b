"""User and session data models."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from ..utils.dates import format_datetime, parse_datetime


class AuthMethod(str, Enum):
    """How the current session was obtained."""

    CREDENTIALS = "credentials"
    GOOGLE = "google"


class TierKind(str, Enum):
    """Which persistence tier holds the live session."""

    DURABLE = "durable"
    EPHEMERAL = "ephemeral"


# Python attribute -> backend key
USER_WIRE_FIELDS = {
    "id": "usuarioID",
    "name": "nombre",
    "surname": "apellido",
    "email": "email",
    "registration_date": "fechaRegistro",
    "is_active": "estaActivo",
    "is_admin": "esAdmin",
    "age": "edad",
    "weight": "peso",
    "height": "altura",
    "photo_url": "fotoPerfilURL",
}

# Fields a profile update may patch locally
PROFILE_FIELDS = ("name", "surname", "email", "age", "weight", "height")


@dataclass
class User:
    """Authenticated user record as returned by the backend."""

    id: int
    name: str
    surname: str
    email: str
    registration_date: datetime | None = None
    is_active: bool = True
    is_admin: bool = False
    age: int | None = None
    weight: float | None = None  # in kg
    height: float | None = None  # in cm
    photo_url: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    def to_dict(self) -> dict:
        """Convert to the backend's wire representation."""
        data = {}
        for attr, key in USER_WIRE_FIELDS.items():
            value = getattr(self, attr)
            if attr == "registration_date":
                value = format_datetime(value)
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create from a backend payload.

        Accepts both the backend keys and the Python attribute names.
        """
        if not isinstance(data, dict):
            raise TypeError(f"User payload must be an object, got {type(data).__name__}")

        def pick(attr: str, default=None):
            key = USER_WIRE_FIELDS[attr]
            if key in data:
                return data[key]
            return data.get(attr, default)

        user_id = pick("id")
        if user_id is None:
            raise ValueError("User payload has no id")

        return cls(
            id=int(user_id),
            name=pick("name", "") or "",
            surname=pick("surname", "") or "",
            email=pick("email", "") or "",
            registration_date=parse_datetime(pick("registration_date")),
            is_active=bool(pick("is_active", True)),
            is_admin=pick("is_admin", False) is True,
            age=pick("age"),
            weight=pick("weight"),
            height=pick("height"),
            photo_url=pick("photo_url"),
        )

    def merged(self, changes: dict) -> "User":
        """Return a copy with the given attribute changes applied.

        ``changes`` may use backend keys or attribute names; unknown keys
        and the id are ignored.
        """
        reverse = {key: attr for attr, key in USER_WIRE_FIELDS.items()}
        updates = {}
        for key, value in changes.items():
            attr = reverse.get(key, key)
            if attr not in USER_WIRE_FIELDS or attr == "id":
                continue
            if attr == "registration_date":
                value = parse_datetime(value)
            elif attr == "is_admin":
                value = value is True
            updates[attr] = value
        return replace(self, **updates)


@dataclass
class Credentials:
    """Email/password pair for login."""

    email: str
    password: str

    def to_dict(self) -> dict:
        return {"email": self.email, "password": self.password}


@dataclass
class Registration:
    """Payload for creating a new account."""

    email: str
    password: str
    name: str
    surname: str

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "password": self.password,
            "nombre": self.name,
            "apellido": self.surname,
        }
