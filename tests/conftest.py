"""Shared fixtures for tests driving the Starlette application."""

from collections.abc import Iterator

import pytest
from starlette.testclient import TestClient

from memoryscape.adapters.config import AppConfig
from memoryscape.adapters.persistence import (
    InMemoryAnalyticsRepository,
    InMemoryCapsuleRepository,
    InMemoryMemoryRepository,
    InMemoryUserRepository,
)
from memoryscape.adapters.web import create_app
from memoryscape.adapters.web.container import Container, build_container
from tests.fakes import ADMIN_TOKEN


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(_env_file=None, jwt_secret="test-secret", admin_command_token=ADMIN_TOKEN)


@pytest.fixture
def services(app_config: AppConfig) -> Container:
    return build_container(
        app_config,
        users=InMemoryUserRepository(),
        capsules=InMemoryCapsuleRepository(),
        memories=InMemoryMemoryRepository(),
        analytics=InMemoryAnalyticsRepository(),
    )


@pytest.fixture
def client(services: Container) -> Iterator[TestClient]:
    with TestClient(create_app(services)) as test_client:
        yield test_client
