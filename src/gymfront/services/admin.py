"""Administration store: dashboard figures and user management.

Every operation requires an administrator session and fails with
``AuthenticationError`` or ``AuthorizationError`` before any request
otherwise. The backend enforces the same rule on its side.
"""

import logging

from ..clients.base import ApiClient
from ..errors import ValidationError
from ..models.admin import ADMIN_USER_KEYS, AdminStats, admin_user_payload
from ..models.user import User
from .base import BaseStore
from .session import SessionStore

logger = logging.getLogger(__name__)

BASE_PATH = "/admin"


class AdminUsersStore(BaseStore):
    """Caches the user list and dashboard counters for administrators.

    Every write reloads the user list, so ``users`` reflects the backend
    after a successful mutation.
    """

    def __init__(self, api: ApiClient, session: SessionStore):
        super().__init__(api)
        self.session = session
        self.users: list[User] = []
        self.stats: AdminStats | None = None

    def _lock_key(self, user_id: int) -> str:
        return f"admin-user:{user_id}"

    async def _load_users(self, token: str) -> list[User]:
        result = await self.api.request(
            "GET",
            f"{BASE_PATH}/usuarios",
            token=token,
            error_message="Error al cargar usuarios",
        )
        self.users = [User.from_dict(item) for item in result.data or []]
        return self.users

    async def fetch_stats(self) -> AdminStats:
        """Load the dashboard counters."""
        async with self._operation():
            self.session.require_admin()
            result = await self.api.request(
                "GET",
                f"{BASE_PATH}/dashboard",
                token=self.session.require_token(),
                error_message="Error al cargar estadísticas",
            )
            self.stats = AdminStats.from_dict(result.data)
            return self.stats

    async def fetch_users(self) -> list[User]:
        """Load every account."""
        async with self._operation():
            self.session.require_admin()
            return await self._load_users(self.session.require_token())

    async def create_user(
        self,
        email: str,
        password: str,
        name: str,
        surname: str,
        is_admin: bool = False,
        is_active: bool = True,
        age: int | None = None,
        weight: float | None = None,
        height: float | None = None,
    ) -> list[User]:
        """Create an account.

        Returns:
            The reloaded user list
        """
        async with self._operation():
            self.session.require_admin()
            token = self.session.require_token()
            if not email or "@" not in email:
                raise ValidationError("Introduce un correo electrónico válido")
            if not password:
                raise ValidationError("La contraseña es obligatoria")
            if not name or not surname:
                raise ValidationError("El nombre y el apellido son obligatorios")

            body = admin_user_payload(
                email=email,
                password=password,
                name=name,
                surname=surname,
                is_admin=is_admin,
                is_active=is_active,
                age=age,
                weight=weight,
                height=height,
            )
            await self.api.request(
                "POST",
                f"{BASE_PATH}/usuarios",
                token=token,
                json=body,
                error_message="Error al crear usuario",
                expect_body=False,
            )
            logger.info("Admin created a new account")
            return await self._load_users(token)

    async def update_user(self, user_id: int, **fields) -> list[User]:
        """Change fields of an account.

        Accepts ``name``, ``surname``, ``email``, ``password``,
        ``is_admin``, ``is_active``, ``age``, ``weight`` and ``height``.

        Returns:
            The reloaded user list
        """
        async with self._operation():
            self.session.require_admin()
            token = self.session.require_token()
            unknown = set(fields) - set(ADMIN_USER_KEYS)
            if unknown:
                raise ValidationError(f"Campos desconocidos: {', '.join(sorted(unknown))}")
            body = admin_user_payload(**fields)
            if not body:
                raise ValidationError("No hay cambios que guardar")

            async with self.session.locks.hold(self._lock_key(user_id)):
                await self.api.request(
                    "PUT",
                    f"{BASE_PATH}/usuarios/{user_id}",
                    token=token,
                    json=body,
                    error_message="Error al actualizar usuario",
                    expect_body=False,
                )
            logger.info("Admin updated account %s", user_id)
            return await self._load_users(token)

    async def delete_user(self, user_id: int) -> list[User]:
        """Delete an account.

        Returns:
            The reloaded user list
        """
        async with self._operation():
            self.session.require_admin()
            token = self.session.require_token()
            async with self.session.locks.hold(self._lock_key(user_id)):
                await self.api.request(
                    "DELETE",
                    f"{BASE_PATH}/usuarios/{user_id}",
                    token=token,
                    error_message="Error al eliminar usuario",
                    expect_body=False,
                )
            logger.info("Admin deleted account %s", user_id)
            return await self._load_users(token)
