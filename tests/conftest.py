"""Fixtures for repobrowser tests."""

import pytest

from repobrowser.repositories import RepositoriesScreen
from repobrowser.settings import RepositoriesPageSettings
from tests.doubles import DeferredRepositoriesService


@pytest.fixture
def service() -> DeferredRepositoriesService:
    return DeferredRepositoriesService()


@pytest.fixture
def settings() -> RepositoriesPageSettings:
    return RepositoriesPageSettings()


@pytest.fixture
def screen(
    service: DeferredRepositoriesService, settings: RepositoriesPageSettings
) -> RepositoriesScreen:
    return RepositoriesScreen(
        repositories_service=service,
        github_organization_name="square",
        settings=settings,
    )
