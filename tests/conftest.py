"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from bizpilot.config import Settings
from bizpilot.main import create_app
from tests.fakes import signup

PROVIDER_ENV_KEYS = (
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "OPENROUTER_API_KEY",
    "COHERE_API_KEY",
    "TAVILY_API_KEY",
    "LLM_PROVIDER",
    "OFFLINE_MODE",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep developer credentials out of tests: no provider is ever configured."""
    for key in PROVIDER_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")


@pytest.fixture
def settings():
    return Settings(storage_backend="memory", jwt_secret="test-secret")


@pytest.fixture
def db_settings():
    return Settings(storage_backend="database", database_url="sqlite://", jwt_secret="test-secret")


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_client(db_settings):
    app = create_app(db_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    return signup(client)


@pytest.fixture
def other_headers(client):
    return signup(client, name="Eve Other", email="eve@example.com")
