"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from contextlib import ExitStack
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tests.fakes import (
    OTHER_USER_ID,
    TEST_JWT_SECRET,
    THIRD_USER_ID,
    UNIVERSITY_ID,
    USER_ID,
    FakeRealtimeGateway,
    FakeSupabase,
    profile_row,
)

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["SUPABASE_SIGNING_KEY_JWK"] = ""

SUPABASE_CONSUMERS = (
    "src.core.supabase",
    "src.core.storage",
    "src.services.admin_service",
    "src.services.conversation_service",
    "src.services.listing_service",
    "src.services.post_service",
    "src.services.profile_service",
    "src.services.report_service",
    "src.services.university_service",
)


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache."""
    from src.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """In-memory database seeded with one university and three students."""
    return FakeSupabase(
        {
            "universities": [
                {
                    "id": UNIVERSITY_ID,
                    "name": "Campus University",
                    "short_name": "CU",
                    "slug": "campus",
                    "is_active": True,
                }
            ],
            "profiles": [
                profile_row(USER_ID, "Asha Rao"),
                profile_row(OTHER_USER_ID, "Ben Okafor"),
                profile_row(THIRD_USER_ID, "Chen Li"),
            ],
            "user_roles": [
                {"id": "r1", "user_id": USER_ID, "role": "student"},
                {"id": "r2", "user_id": OTHER_USER_ID, "role": "senior"},
            ],
        }
    )


@pytest.fixture
def fake_realtime() -> FakeRealtimeGateway:
    return FakeRealtimeGateway()


@pytest.fixture
def patched_backend(
    fake_supabase: FakeSupabase,
    fake_realtime: FakeRealtimeGateway,
) -> Generator[FakeSupabase, None, None]:
    """Route every service's Supabase client and the realtime gateway to the fakes."""
    with ExitStack() as stack:
        for module in SUPABASE_CONSUMERS:
            stack.enter_context(patch(f"{module}.get_supabase_client", return_value=fake_supabase))
        stack.enter_context(
            patch("src.services.messaging_session.RealtimeGateway", return_value=fake_realtime)
        )
        yield fake_supabase


@pytest.fixture
def client(patched_backend: FakeSupabase) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application backed by the fakes."""
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
