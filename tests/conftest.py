"""
Shared fixtures: every facade test runs once per storage backend.
"""

from datetime import date

import pytest

from household.models.account import AccountContext
from household.orchestrator import HouseholdFacade
from household.services.storage import (
    InMemoryDocumentStore,
    LocalStorageBackend,
    RemoteStorageBackend,
)


TODAY = date(2024, 3, 20)


@pytest.fixture(params=["local", "remote"])
def backend(request):
    if request.param == "local":
        return LocalStorageBackend.in_memory()
    return RemoteStorageBackend(InMemoryDocumentStore())


@pytest.fixture
def account():
    return AccountContext.guest()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def household(backend, account, today):
    household = HouseholdFacade(backend, account, today=lambda: today)
    household.open()
    yield household
    household.close()
