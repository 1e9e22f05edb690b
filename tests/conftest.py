"""Pytest configuration and fixtures."""

import pytest
import tempfile
from pathlib import Path

import httpx

from fake_backend import ANA, BackendState, create_backend
from gymfront.config import Settings
from gymfront.context import build_context
from gymfront.db.tiers import DurableTier, EphemeralTier
from gymfront.models.user import AuthMethod, User


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db_path(temp_data_dir):
    """Create a temporary database path."""
    return temp_data_dir / "session.db"


@pytest.fixture
def backend_state():
    """Fresh state for the fake backend."""
    return BackendState()


@pytest.fixture
def backend(backend_state):
    """The fake backend ASGI app."""
    app, _ = create_backend(backend_state)
    return app


@pytest.fixture
def settings(temp_data_dir):
    """Settings pointing at the fake backend, with no rank retry delay."""
    return Settings(api_url="http://test", data_dir=temp_data_dir, rank_retry_delay=0)


@pytest.fixture
def durable_tier(temp_db_path):
    """SQLite tier in a temporary directory."""
    return DurableTier(temp_db_path)


@pytest.fixture
def ephemeral_tier():
    """In-memory tier."""
    return EphemeralTier()


@pytest.fixture
def make_context(backend, settings, durable_tier, ephemeral_tier):
    """Factory building a context wired to the fake backend.

    Call it inside the coroutine that uses it. Every context built by one
    test shares the same tiers, like successive runs of the CLI.
    """

    def factory(**overrides):
        return build_context(
            overrides.pop("settings", settings),
            transport=httpx.ASGITransport(app=backend),
            durable=overrides.pop("durable", durable_tier),
            ephemeral=overrides.pop("ephemeral", ephemeral_tier),
        )

    return factory


@pytest.fixture
def mock_context(settings, durable_tier, ephemeral_tier):
    """Factory building a context whose requests are answered by ``handler``.

    ``handler`` receives each ``httpx.Request`` and returns an
    ``httpx.Response`` (or a coroutine resolving to one).
    """

    def factory(handler):
        return build_context(
            settings,
            transport=httpx.MockTransport(handler),
            durable=durable_tier,
            ephemeral=ephemeral_tier,
        )

    return factory


@pytest.fixture
def stored_session(durable_tier):
    """Put a remembered session for Ana in the durable tier."""

    def store(**user_changes):
        user = User.from_dict(dict(ANA, **user_changes))
        durable_tier.save_session("token-ana", user, AuthMethod.CREDENTIALS)
        return user

    return store
