"""
Shared test fixtures.

Resets process-wide caches around every test and hands out fresh fakes.
"""

import pytest

from api.dependencies import reset_container
from shared.config import Settings, get_settings
from shared.database import reset_client_cache

from fakes import (
    TEST_JWT_SECRET,
    FakeClock,
    FakeFinalizer,
    FakeIdentityProvider,
    FakeInvitationStore,
    FakeProfileStore,
    RecordingNavigator,
)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, clients and services around each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, supabase_jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profile_store() -> FakeProfileStore:
    return FakeProfileStore()


@pytest.fixture
def invitation_store() -> FakeInvitationStore:
    return FakeInvitationStore()


@pytest.fixture
def finalizer() -> FakeFinalizer:
    return FakeFinalizer()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
