"""Session store: authenticated identity, token and persistence tier."""

import logging
import mimetypes
from enum import Enum

from ..clients.base import INVALID_RESPONSE_MESSAGE, ApiClient, extract_auth_payload
from ..db.tiers import AUTH_METHOD_KEY, PersistenceTier
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    GymFrontError,
    PolicyError,
    RemoteError,
    ValidationError,
)
from ..models.user import (
    PROFILE_FIELDS,
    USER_WIRE_FIELDS,
    AuthMethod,
    Credentials,
    Registration,
    TierKind,
    User,
)
from .base import BaseStore
from .locks import ResourceLocks

logger = logging.getLogger(__name__)

MAX_PHOTO_BYTES = 5 * 1024 * 1024
ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

NOT_AUTHORIZED_MESSAGE = "No autorizado"
GOOGLE_INVALID_TOKEN_MESSAGE = "El token de Google es inválido o ha expirado"
GOOGLE_MISCONFIGURED_MESSAGE = "La autenticación con Google no está configurada correctamente"
GOOGLE_EMAIL_POLICY_MESSAGE = (
    "Las cuentas vinculadas a Google no pueden cambiar su correo electrónico directamente"
)
GOOGLE_PASSWORD_POLICY_MESSAGE = (
    "Las cuentas vinculadas a Google no pueden cambiar su contraseña directamente"
)

# Keyword argument -> backend key for profile updates
PROFILE_UPDATE_KEYS = {
    "name": "nombre",
    "surname": "apellido",
    "email": "email",
    "age": "edad",
    "weight": "peso",
    "height": "altura",
    "current_password": "currentPassword",
    "new_password": "newPassword",
}

_SESSION_LOCK = "session"


class SessionState(str, Enum):
    """Lifecycle of a session."""

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


class SessionStore(BaseStore):
    """Owns the logged-in user, its bearer token and where they are stored.

    One instance is built per process and handed to every store that needs
    a token. ``user`` and ``token`` are always set or cleared together.

    Args:
        api: Backend client
        durable: Tier used when the user asks to be remembered
        ephemeral: Tier used otherwise (and always for Google sign-in)
        locks: Lock registry shared with other stores
    """

    def __init__(
        self,
        api: ApiClient,
        durable: PersistenceTier,
        ephemeral: PersistenceTier,
        locks: ResourceLocks | None = None,
    ):
        super().__init__(api)
        self.durable = durable
        self.ephemeral = ephemeral
        self.locks = locks or ResourceLocks()
        self.user: User | None = None
        self.token: str | None = None
        self.auth_method: AuthMethod | None = None
        self.tier: PersistenceTier | None = None
        self.state = SessionState.ANONYMOUS

    # -- derived flags -----------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin is True

    @property
    def is_oauth_linked(self) -> bool:
        """Whether the account signed in through Google.

        Only the stored auth-method tag counts; the email address says
        nothing about how the account authenticates.
        """
        tiers = [self.tier] if self.tier else [self.durable, self.ephemeral]
        for tier in tiers:
            method = tier.get(AUTH_METHOD_KEY)
            if method is not None:
                return method == AuthMethod.GOOGLE.value
        return False

    def require_token(self) -> str:
        """Return the bearer token or raise if there is no session."""
        if self.token is None:
            raise AuthenticationError(NOT_AUTHORIZED_MESSAGE)
        return self.token

    def require_admin(self) -> User:
        """Return the user if it is an administrator."""
        self.require_token()
        if not self.is_admin:
            raise AuthorizationError("Se requieren permisos de administrador")
        return self.user

    def _require_same_session(self, token: str, user: User) -> User:
        """Return the live user, or raise if the session changed mid-request."""
        if self.token != token or self.user is None or self.user.id != user.id:
            logger.info("Session changed while a profile request was in flight")
            raise AuthenticationError(NOT_AUTHORIZED_MESSAGE)
        return self.user

    # -- persistence -------------------------------------------------------

    def _tier_for(self, kind: TierKind) -> PersistenceTier:
        return self.durable if kind == TierKind.DURABLE else self.ephemeral

    def _establish(
        self, user: User, token: str, auth_method: AuthMethod, kind: TierKind
    ) -> None:
        tier = self._tier_for(kind)
        other = self.ephemeral if tier is self.durable else self.durable
        other.clear()
        tier.save_session(token, user, auth_method)

        self.user = user
        self.token = token
        self.auth_method = auth_method
        self.tier = tier
        self.state = SessionState.AUTHENTICATED
        logger.info("Session started for user %s (%s, %s tier)", user.id, auth_method.value, kind.value)

    def _store_user(self, user: User) -> None:
        self.user = user
        if self.tier is not None:
            self.tier.save_user(user)

    def restore(self) -> bool:
        """Load a stored session into memory without contacting the backend.

        The durable tier is checked before the ephemeral one.
        """
        for tier in (self.durable, self.ephemeral):
            stored = tier.load_session()
            if stored is None:
                continue
            token, user, auth_method = stored
            self.user = user
            self.token = token
            self.auth_method = auth_method
            self.tier = tier
            self.state = SessionState.AUTHENTICATED
            return True
        return False

    # -- authentication ----------------------------------------------------

    async def _authenticate(
        self,
        path: str,
        body: dict,
        auth_method: AuthMethod,
        kind: TierKind,
        error_message: str,
        status_messages: dict[int, str] | None = None,
    ) -> tuple[User, bool]:
        previous = self.state
        async with self._operation(), self.locks.hold(_SESSION_LOCK):
            self.state = SessionState.AUTHENTICATING
            try:
                try:
                    result = await self.api.request(
                        "POST",
                        path,
                        json=body,
                        error_message=error_message,
                        default_error=AuthenticationError,
                        status_errors={403: AuthenticationError},
                    )
                except GymFrontError as e:
                    if status_messages and e.status_code in status_messages:
                        raise AuthenticationError(
                            status_messages[e.status_code], status_code=e.status_code
                        ) from e
                    raise
                raw_user, token = extract_auth_payload(result)
                user = User.from_dict(raw_user)
            except BaseException:
                self.state = previous
                raise

            self._establish(user, token, auth_method, kind)
            return user, user.is_admin

    async def login(self, email: str, password: str, remember: bool = False) -> tuple[User, bool]:
        """Sign in with email and password.

        Args:
            email: Account email
            password: Account password
            remember: Keep the session in the durable tier

        Returns:
            The user and whether it is an administrator
        """
        return await self._authenticate(
            "/auth/login",
            Credentials(email=email, password=password).to_dict(),
            AuthMethod.CREDENTIALS,
            TierKind.DURABLE if remember else TierKind.EPHEMERAL,
            "Error en la autenticación",
        )

    async def register(
        self, email: str, password: str, name: str, surname: str
    ) -> tuple[User, bool]:
        """Create an account and sign in to it (never remembered)."""
        return await self._authenticate(
            "/auth/register",
            Registration(email=email, password=password, name=name, surname=surname).to_dict(),
            AuthMethod.CREDENTIALS,
            TierKind.EPHEMERAL,
            "Error en el registro",
        )

    async def oauth_login(self, id_token: str) -> tuple[User, bool]:
        """Exchange a Google ID token for a session."""
        return await self._authenticate(
            "/auth/google",
            {"idToken": id_token},
            AuthMethod.GOOGLE,
            TierKind.EPHEMERAL,
            "Error en la autenticación con Google",
            status_messages={
                400: GOOGLE_INVALID_TOKEN_MESSAGE,
                401: GOOGLE_MISCONFIGURED_MESSAGE,
            },
        )

    async def init(self) -> bool:
        """Restore a stored session and confirm it with the backend."""
        if self.restore():
            return await self.check_auth()
        return False

    async def check_auth(self) -> bool:
        """Verify the stored token; drop the session if it is not accepted.

        Never raises. Returns whether a valid session remains.
        """
        tier = None
        token = None
        for candidate in (self.durable, self.ephemeral):
            stored = candidate.load_session()
            if stored is not None:
                tier = candidate
                token, _, auth_method = stored
                break

        if token is None:
            return False

        async with self.locks.hold(_SESSION_LOCK):
            try:
                result = await self.api.request(
                    "GET", "/auth/verify", token=token, default_error=AuthenticationError
                )
                data = result.data
                if isinstance(data, dict) and isinstance(data.get("user"), dict):
                    data = data["user"]
                user = User.from_dict(data)
            except Exception as e:
                logger.warning("Stored session rejected, signing out: %s", e)
                self.state = SessionState.EXPIRED
                self.logout()
                return False

            self.user = user
            self.token = token
            self.auth_method = auth_method
            self.tier = tier
            self.state = SessionState.AUTHENTICATED
            tier.save_user(user)
            return True

    def logout(self) -> None:
        """Forget the session everywhere. Safe to call repeatedly."""
        if self.user is not None:
            logger.info("Session ended for user %s", self.user.id)
        self.user = None
        self.token = None
        self.auth_method = None
        self.tier = None
        self.error = None
        self.state = SessionState.ANONYMOUS
        self.durable.clear()
        self.ephemeral.clear()

    # -- password reset ----------------------------------------------------

    async def request_password_reset(self, email: str):
        """Ask the backend to send a password reset email."""
        async with self._operation():
            if not email or "@" not in email:
                raise ValidationError("Introduce un correo electrónico válido")
            result = await self.api.request(
                "POST",
                "/auth/request-reset",
                json={"email": email},
                error_message="Error al solicitar recuperación de contraseña",
            )
            return result.data

    async def reset_password(self, token: str, password: str, confirm_password: str):
        """Set a new password using a reset token."""
        async with self._operation():
            if not token:
                raise ValidationError("El token de recuperación es obligatorio")
            if not password:
                raise ValidationError("La contraseña es obligatoria")
            if password != confirm_password:
                raise ValidationError("Las contraseñas no coinciden")
            result = await self.api.request(
                "POST",
                "/auth/reset-password",
                json={
                    "token": token,
                    "password": password,
                    "confirmPassword": confirm_password,
                },
                error_message="Error al restablecer la contraseña",
            )
            return result.data

    # -- profile -----------------------------------------------------------

    async def fetch_user(self) -> User:
        """Reload the user's profile from the backend."""
        async with self._operation():
            token = self.require_token()
            current = self.user
            result = await self.api.request(
                "GET", "/usuario/profile", token=token, error_message="Error al obtener el perfil"
            )
            user = User.from_dict(result.data)
            async with self.locks.hold(_SESSION_LOCK):
                self._require_same_session(token, current)
                self._store_user(user)
            return user

    async def update_profile(self, **fields) -> User:
        """Update profile fields.

        Accepts ``name``, ``surname``, ``email``, ``age``, ``weight``,
        ``height``, ``current_password`` and ``new_password``. Accounts
        signed in through Google may not change email or password.

        When the backend echoes the user back its values are kept;
        otherwise the supplied profile fields are applied locally.
        """
        async with self._operation():
            token = self.require_token()
            user = self.user

            unknown = set(fields) - set(PROFILE_UPDATE_KEYS)
            if unknown:
                raise ValidationError(f"Campos desconocidos: {', '.join(sorted(unknown))}")

            if self.is_oauth_linked:
                if fields.get("email"):
                    raise PolicyError(GOOGLE_EMAIL_POLICY_MESSAGE)
                if fields.get("current_password") or fields.get("new_password"):
                    raise PolicyError(GOOGLE_PASSWORD_POLICY_MESSAGE)

            body = {
                PROFILE_UPDATE_KEYS[key]: value
                for key, value in fields.items()
                if value is not None
            }

            async with self.locks.hold(_SESSION_LOCK):
                result = await self.api.request(
                    "PUT",
                    f"/usuario/{user.id}",
                    token=token,
                    json=body,
                    error_message="Error al actualizar el perfil",
                    expect_body=False,
                )

                current = self._require_same_session(token, user)
                echo = result.data
                if isinstance(echo, dict) and isinstance(echo.get("user"), dict):
                    echo = echo["user"]
                wire_keys = set(USER_WIRE_FIELDS.values())
                if isinstance(echo, dict) and wire_keys & set(echo):
                    user = current.merged(echo)
                else:
                    user = current.merged(
                        {key: fields[key] for key in PROFILE_FIELDS if fields.get(key) is not None}
                    )

                self._store_user(user)
                return user

    async def update_profile_photo(
        self, content: bytes, filename: str, content_type: str | None = None
    ) -> str:
        """Upload a new profile photo (at most 5 MB, JPEG/PNG/GIF/WebP).

        Returns:
            The new photo URL
        """
        async with self._operation():
            token = self.require_token()
            user = self.user

            if content_type is None:
                content_type, _ = mimetypes.guess_type(filename)
            if content_type not in ALLOWED_PHOTO_TYPES:
                raise ValidationError("Formato no permitido. Usa JPG, PNG, GIF o WEBP")
            if len(content) > MAX_PHOTO_BYTES:
                raise ValidationError("La imagen no puede superar los 5 MB")

            async with self.locks.hold(_SESSION_LOCK):
                result = await self.api.request(
                    "POST",
                    f"/usuario/{user.id}/foto",
                    token=token,
                    files={"file": (filename, content, content_type)},
                    error_message="Error al actualizar la foto de perfil",
                )

                photo_url = result.data
                if isinstance(photo_url, dict):
                    photo_url = photo_url.get(USER_WIRE_FIELDS["photo_url"]) or photo_url.get("url")
                if not isinstance(photo_url, str) or not photo_url:
                    raise RemoteError(INVALID_RESPONSE_MESSAGE)

                current = self._require_same_session(token, user)
                self._store_user(current.merged({"photo_url": photo_url}))
                return photo_url

    async def remove_profile_photo(self) -> bool:
        """Delete the profile photo."""
        async with self._operation():
            token = self.require_token()
            user = self.user
            async with self.locks.hold(_SESSION_LOCK):
                await self.api.request(
                    "DELETE",
                    f"/usuario/{user.id}/foto",
                    token=token,
                    error_message="Error al eliminar la foto de perfil",
                    expect_body=False,
                )
                current = self._require_same_session(token, user)
                self._store_user(current.merged({"photo_url": None}))
                return True
