"""Tests for the session store."""

import asyncio

import httpx
import pytest

from fake_backend import ADMIN, ANA, PASSWORD
from gymfront.clients.base import INVALID_RESPONSE_MESSAGE
from gymfront.db.tiers import AUTH_METHOD_KEY, TOKEN_KEY, EphemeralTier
from gymfront.errors import (
    AuthenticationError,
    AuthorizationError,
    PolicyError,
    RemoteError,
    ValidationError,
)
from gymfront.models.user import AuthMethod
from gymfront.services.session import (
    GOOGLE_INVALID_TOKEN_MESSAGE,
    GOOGLE_MISCONFIGURED_MESSAGE,
    MAX_PHOTO_BYTES,
    SessionState,
)


class TestLogin:
    """Tests for email/password sign-in."""

    def test_remembered_login_uses_durable_tier_only(
        self, make_context, durable_tier, ephemeral_tier
    ):
        """Test remember=True stores the session in the durable tier."""

        async def scenario():
            async with make_context() as ctx:
                user, is_admin = await ctx.session.login(ANA["email"], PASSWORD, remember=True)
                return ctx.session, user, is_admin

        session, user, is_admin = asyncio.run(scenario())

        assert user.email == ANA["email"]
        assert is_admin is False
        assert session.is_authenticated
        assert session.state == SessionState.AUTHENTICATED
        assert session.auth_method == AuthMethod.CREDENTIALS
        assert durable_tier.has_session()
        assert not ephemeral_tier.has_session()

    def test_unremembered_login_uses_ephemeral_tier_only(
        self, make_context, durable_tier, ephemeral_tier
    ):
        """Test remember=False keeps the session out of the durable tier."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=False)

        asyncio.run(scenario())

        assert ephemeral_tier.has_session()
        assert not durable_tier.has_session()

    def test_switching_tiers_clears_the_other_one(
        self, make_context, durable_tier, ephemeral_tier
    ):
        """Test a session is never kept in both tiers."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=True)
                await ctx.session.login(ANA["email"], PASSWORD, remember=False)

        asyncio.run(scenario())

        assert ephemeral_tier.has_session()
        assert durable_tier.keys() == []

    def test_admin_flag(self, make_context):
        """Test administrators are reported as such."""

        async def scenario():
            async with make_context() as ctx:
                _, is_admin = await ctx.session.login(ADMIN["email"], PASSWORD)
                return is_admin, ctx.session.is_admin

        assert asyncio.run(scenario()) == (True, True)

    def test_require_admin(self, make_context):
        """Test admin gating for anonymous, regular and admin sessions."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(AuthenticationError):
                    ctx.session.require_admin()
                await ctx.session.login(ANA["email"], PASSWORD)
                with pytest.raises(AuthorizationError):
                    ctx.session.require_admin()
                await ctx.session.login(ADMIN["email"], PASSWORD)
                return ctx.session.require_admin()

        assert asyncio.run(scenario()).email == ADMIN["email"]

    def test_bad_credentials(self, make_context, durable_tier, ephemeral_tier):
        """Test a rejected login raises and leaves no session behind."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(AuthenticationError) as exc_info:
                    await ctx.session.login(ANA["email"], "wrong", remember=True)
                return ctx.session, exc_info.value

        session, error = asyncio.run(scenario())

        assert error.message == "Credenciales inválidas"
        assert error.status_code == 401
        assert session.error == "Credenciales inválidas"
        assert session.state == SessionState.ANONYMOUS
        assert session.user is None and session.token is None
        assert not session.loading
        assert not durable_tier.has_session()
        assert not ephemeral_tier.has_session()

    def test_sends_json_without_token(self, make_context, backend_state):
        """Test login is a public JSON request."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)

        asyncio.run(scenario())

        headers = backend_state.headers[-1]
        assert headers["content-type"] == "application/json"
        assert "authorization" not in headers


class TestRegister:
    """Tests for account creation."""

    def test_register_signs_in(self, make_context, ephemeral_tier, durable_tier):
        """Test registration reads the wrapped envelope and signs in."""

        async def scenario():
            async with make_context() as ctx:
                user, _ = await ctx.session.register("new@example.com", "pw123456", "Nuevo", "Usuario")
                return user

        user = asyncio.run(scenario())

        assert user.full_name == "Nuevo Usuario"
        assert ephemeral_tier.has_session()
        assert not durable_tier.has_session()

    def test_duplicate_email(self, make_context):
        """Test the backend message is surfaced."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(AuthenticationError, match="ya está registrado"):
                    await ctx.session.register(ANA["email"], "pw", "Ana", "Otra")

        asyncio.run(scenario())


class TestGoogleLogin:
    """Tests for Google ID-token sign-in."""

    def test_google_login(self, make_context, ephemeral_tier, durable_tier):
        """Test Google sessions are tagged and never remembered."""

        async def scenario():
            async with make_context() as ctx:
                user, _ = await ctx.session.oauth_login("google-ok")
                return ctx.session, user

        session, user = asyncio.run(scenario())

        assert user.email == "gabi@gmail.com"
        assert session.is_oauth_linked
        assert ephemeral_tier.get(AUTH_METHOD_KEY) == "google"
        assert not durable_tier.has_session()

    @pytest.mark.parametrize(
        "id_token,status,message",
        [
            ("expired", 400, GOOGLE_INVALID_TOKEN_MESSAGE),
            ("misconfigured", 401, GOOGLE_MISCONFIGURED_MESSAGE),
            ("boom", 500, "Fallo interno"),
        ],
    )
    def test_google_failures(self, make_context, id_token, status, message):
        """Test each failure status gets its own message."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(AuthenticationError) as exc_info:
                    await ctx.session.oauth_login(id_token)
                return exc_info.value

        error = asyncio.run(scenario())
        assert error.status_code == status
        assert error.message == message

    def test_gmail_address_is_not_oauth(self, make_context, backend_state):
        """Test a gmail address alone does not make an account Google-linked."""
        backend_state.users["someone@gmail.com"] = dict(
            ANA, usuarioID=9, email="someone@gmail.com"
        )

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login("someone@gmail.com", PASSWORD)
                return ctx.session.is_oauth_linked

        assert asyncio.run(scenario()) is False


class TestSessionRestore:
    """Tests for restoring and verifying stored sessions."""

    def test_remembered_session_survives_restart(self, make_context, backend_state):
        """Test a new context picks up a durable session after verifying it."""

        async def first_run():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=True)

        async def second_run():
            async with make_context(ephemeral=EphemeralTier()) as ctx:
                ok = await ctx.session.init()
                return ok, ctx.session

        asyncio.run(first_run())
        ok, session = asyncio.run(second_run())

        assert ok is True
        assert session.user.email == ANA["email"]
        assert backend_state.count("GET", "/auth/verify") == 1

    def test_ephemeral_session_does_not_survive_restart(self, make_context):
        """Test an unremembered session is gone in a new process."""

        async def first_run():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=False)

        async def second_run():
            async with make_context(ephemeral=EphemeralTier()) as ctx:
                return await ctx.session.init(), ctx.session.is_authenticated

        asyncio.run(first_run())
        assert asyncio.run(second_run()) == (False, False)

    def test_rejected_token_logs_out(self, make_context, backend_state, durable_tier, ephemeral_tier):
        """Test check_auth signs out instead of raising when the token is refused."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=True)
                backend_state.tokens.clear()
                ok = await ctx.session.check_auth()
                return ok, ctx.session

        ok, session = asyncio.run(scenario())

        assert ok is False
        assert not session.is_authenticated
        assert session.user is None
        assert durable_tier.keys() == []
        assert ephemeral_tier.keys() == []

    def test_unreachable_backend_logs_out(self, mock_context, stored_session, durable_tier):
        """Test check_auth signs out instead of raising when the backend is unreachable."""
        stored_session()

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async def scenario():
            async with mock_context(handler) as ctx:
                return await ctx.session.check_auth(), ctx.session

        ok, session = asyncio.run(scenario())

        assert ok is False
        assert not session.is_authenticated
        assert durable_tier.keys() == []

    @pytest.mark.parametrize("data", ["ok", None, [ANA], {"user": "ana"}])
    def test_malformed_verify_body_logs_out(
        self, mock_context, stored_session, durable_tier, data
    ):
        """Test a verify reply without a user object signs out instead of raising."""
        stored_session()

        def handler(request):
            return httpx.Response(200, json={"success": True, "data": data})

        async def scenario():
            async with mock_context(handler) as ctx:
                return await ctx.session.check_auth(), ctx.session

        ok, session = asyncio.run(scenario())

        assert ok is False
        assert session.user is None
        assert durable_tier.keys() == []

    def test_cancellation_propagates(self, mock_context, stored_session, durable_tier):
        """Test cancelling check_auth does not sign out."""
        stored_session()

        async def scenario():
            started = asyncio.Event()

            async def handler(request):
                started.set()
                await asyncio.Event().wait()

            async with mock_context(handler) as ctx:
                task = asyncio.create_task(ctx.session.check_auth())
                await started.wait()
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        asyncio.run(scenario())

        assert durable_tier.has_session()

    def test_no_stored_session(self, make_context, backend_state):
        """Test check_auth returns False without calling the backend."""

        async def scenario():
            async with make_context() as ctx:
                return await ctx.session.check_auth()

        assert asyncio.run(scenario()) is False
        assert backend_state.calls == []

    def test_unreadable_stored_user_is_ignored(self, make_context, durable_tier):
        """Test a corrupt stored user does not restore a session."""
        durable_tier.set(TOKEN_KEY, "token-x")
        durable_tier.set("user", "{not json")

        async def scenario():
            async with make_context() as ctx:
                return ctx.session.restore()

        assert asyncio.run(scenario()) is False


class TestLogout:
    """Tests for signing out."""

    def test_logout_clears_everything(self, make_context, durable_tier, ephemeral_tier):
        """Test logout wipes memory and both tiers."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=True)
                ctx.session.logout()
                return ctx.session

        session = asyncio.run(scenario())

        assert session.user is None
        assert session.token is None
        assert session.state == SessionState.ANONYMOUS
        assert not session.is_oauth_linked
        assert durable_tier.keys() == []
        assert ephemeral_tier.keys() == []

    def test_logout_is_idempotent(self, make_context):
        """Test logout can be called without a session, twice."""

        async def scenario():
            async with make_context() as ctx:
                ctx.session.logout()
                ctx.session.logout()
                return ctx.session.is_authenticated

        assert asyncio.run(scenario()) is False


class TestProfileUpdate:
    """Tests for editing the profile."""

    def test_server_echo_wins(self, make_context, durable_tier):
        """Test values echoed by the backend replace the local ones."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD, remember=True)
                return await ctx.session.update_profile(name="  maría ", weight=61.5)

        user = asyncio.run(scenario())

        assert user.name == "María"
        assert user.weight == 61.5
        _, stored, _ = durable_tier.load_session()
        assert stored.name == "María"

    def test_supplied_fields_without_echo(self, make_context, backend_state):
        """Test supplied fields are applied when the backend echoes nothing."""
        backend_state.echo_profile_updates = False

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                return await ctx.session.update_profile(name="Anabel", height=170)

        user = asyncio.run(scenario())

        assert user.name == "Anabel"
        assert user.height == 170
        assert user.surname == ANA["apellido"]

    @pytest.mark.parametrize(
        "fields",
        [
            {"email": "new@gmail.com"},
            {"current_password": "a", "new_password": "b"},
            {"new_password": "b"},
        ],
    )
    def test_google_account_policy(self, make_context, backend_state, fields):
        """Test Google accounts cannot change email or password."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.oauth_login("google-ok")
                with pytest.raises(PolicyError):
                    await ctx.session.update_profile(**fields)

        asyncio.run(scenario())

        assert backend_state.count("PUT", "/usuario/3") == 0

    def test_google_account_can_change_name(self, make_context):
        """Test the policy only covers email and password."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.oauth_login("google-ok")
                return await ctx.session.update_profile(surname="Pérez")

        assert asyncio.run(scenario()).surname == "Pérez"

    def test_unknown_field(self, make_context):
        """Test unknown fields are rejected."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                with pytest.raises(ValidationError):
                    await ctx.session.update_profile(nickname="ana")

        asyncio.run(scenario())

    def test_requires_session(self, make_context):
        """Test profile edits need a session."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(AuthenticationError, match="No autorizado"):
                    await ctx.session.update_profile(name="X")

        asyncio.run(scenario())

    def test_fetch_user(self, make_context, backend_state):
        """Test the profile is reloaded from the backend."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                backend_state.users[ANA["email"]]["edad"] = 31
                return await ctx.session.fetch_user()

        assert asyncio.run(scenario()).age == 31


class TestProfilePhoto:
    """Tests for the profile photo."""

    def test_upload(self, make_context, backend_state):
        """Test a photo is sent as multipart and the URL stored."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                url = await ctx.session.update_profile_photo(b"\x89PNG fake", "me.png")
                return url, ctx.session.user

        url, user = asyncio.run(scenario())

        assert url == "https://cdn.example.com/fotos/1/me.png"
        assert user.photo_url == url
        assert user.name == ANA["nombre"]
        content_type = backend_state.upload_content_types[0]
        assert content_type.startswith("multipart/form-data; boundary=")

    def test_oversized_photo(self, make_context, backend_state):
        """Test a 6 MB photo is refused before any request."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                with pytest.raises(ValidationError):
                    await ctx.session.update_profile_photo(b"0" * (6 * 1024 * 1024), "big.jpg")

        asyncio.run(scenario())

        assert backend_state.count("POST", "/usuario/1/foto") == 0

    def test_photo_at_size_limit(self, make_context):
        """Test exactly 5 MB is accepted."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                return await ctx.session.update_profile_photo(b"0" * MAX_PHOTO_BYTES, "ok.jpg")

        assert asyncio.run(scenario()).endswith("ok.jpg")

    def test_unsupported_type(self, make_context, backend_state):
        """Test non-image files are refused."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                with pytest.raises(ValidationError):
                    await ctx.session.update_profile_photo(b"hello", "notes.txt")

        asyncio.run(scenario())

        assert backend_state.count("POST", "/usuario/1/foto") == 0

    @pytest.mark.parametrize("data", [None, "", {"fotoPerfilURL": None}, 42])
    def test_reply_without_url(self, mock_context, stored_session, durable_tier, data):
        """Test an upload reply without a URL is an error and keeps the old photo."""
        old = "https://cdn.example.com/fotos/1/old.png"
        stored_session(fotoPerfilURL=old)

        def handler(request):
            return httpx.Response(200, json={"success": True, "data": data})

        async def scenario():
            async with mock_context(handler) as ctx:
                ctx.session.restore()
                with pytest.raises(RemoteError):
                    await ctx.session.update_profile_photo(b"\x89PNG fake", "me.png")
                return ctx.session

        session = asyncio.run(scenario())

        assert session.user.photo_url == old
        assert session.error == INVALID_RESPONSE_MESSAGE
        assert durable_tier.load_session()[1].photo_url == old

    def test_remove(self, make_context):
        """Test removing the photo clears the URL."""

        async def scenario():
            async with make_context() as ctx:
                await ctx.session.login(ANA["email"], PASSWORD)
                await ctx.session.update_profile_photo(b"gif", "me.gif")
                await ctx.session.remove_profile_photo()
                return ctx.session.user

        assert asyncio.run(scenario()).photo_url is None


class TestLogoutDuringProfileRequest:
    """Tests for profile requests that finish after the session ended."""

    @pytest.mark.parametrize(
        "mutation",
        [
            lambda session: session.update_profile(name="Bea"),
            lambda session: session.update_profile_photo(b"\x89PNG fake", "me.png"),
            lambda session: session.remove_profile_photo(),
            lambda session: session.fetch_user(),
        ],
        ids=["update", "photo", "remove-photo", "fetch"],
    )
    def test_session_stays_signed_out(
        self, mock_context, stored_session, durable_tier, mutation
    ):
        """Test a reply arriving after logout raises and restores nothing."""
        stored_session()

        async def scenario():
            started = asyncio.Event()
            release = asyncio.Event()

            async def handler(request):
                started.set()
                await release.wait()
                data = dict(ANA, nombre="Bea", fotoPerfilURL="https://cdn.example.com/me.png")
                return httpx.Response(200, json={"success": True, "data": data})

            async with mock_context(handler) as ctx:
                ctx.session.restore()
                task = asyncio.create_task(mutation(ctx.session))
                await started.wait()
                ctx.session.logout()
                release.set()
                with pytest.raises(AuthenticationError, match="No autorizado"):
                    await task
                return ctx.session

        session = asyncio.run(scenario())

        assert session.user is None
        assert session.token is None
        assert session.error == "No autorizado"
        assert durable_tier.keys() == []


class TestPasswordReset:
    """Tests for password recovery."""

    def test_request_reset(self, make_context, backend_state):
        """Test a reset email is requested."""

        async def scenario():
            async with make_context() as ctx:
                return await ctx.session.request_password_reset(ANA["email"])

        assert asyncio.run(scenario()) is True
        assert backend_state.reset_emails == [ANA["email"]]

    def test_invalid_email(self, make_context, backend_state):
        """Test malformed emails are rejected locally."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(ValidationError):
                    await ctx.session.request_password_reset("not-an-email")

        asyncio.run(scenario())
        assert backend_state.calls == []

    def test_mismatched_passwords(self, make_context, backend_state):
        """Test both passwords must match."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(ValidationError, match="no coinciden"):
                    await ctx.session.reset_password("reset-ok", "one", "two")

        asyncio.run(scenario())
        assert backend_state.calls == []

    def test_reset(self, make_context):
        """Test a valid token resets the password."""

        async def scenario():
            async with make_context() as ctx:
                return await ctx.session.reset_password("reset-ok", "nueva123", "nueva123")

        assert asyncio.run(scenario()) is True

    def test_expired_token(self, make_context):
        """Test the backend message is surfaced for a bad token."""

        async def scenario():
            async with make_context() as ctx:
                with pytest.raises(RemoteError, match="ha expirado"):
                    await ctx.session.reset_password("old", "nueva123", "nueva123")
                return ctx.session.error

        assert "ha expirado" in asyncio.run(scenario())
