"""
Tests for configuration and the composition root.
"""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from household.config import (
    AppSettings,
    FirestoreSettings,
    LocalStorageSettings,
    Settings,
    get_settings,
    validate_all_settings,
)
from household.models.account import AccountContext
from household.orchestrator import create_backend, create_household
from household.services.storage import (
    Collection,
    LocalStorageBackend,
    RemoteStorageBackend,
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ["STORAGE_BACKEND", "LOG_LEVEL", "DEFAULT_ACCOUNT_ID",
                 "LOCAL_STORAGE_DATA_DIR", "FIRESTORE_ROOT_COLLECTION"]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self):
        app = AppSettings()
        assert app.storage_backend == "local"
        assert app.default_account_id == "guest"
        assert app.log_level == "INFO"
        assert LocalStorageSettings().data_dir == Path(".household-data")
        assert FirestoreSettings().root_collection == "users"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "remote")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("FIRESTORE_ROOT_COLLECTION", "households")

        assert AppSettings().storage_backend == "remote"
        assert AppSettings().log_level == "DEBUG"
        assert FirestoreSettings().root_collection == "households"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "sheets")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "sheets")
        status = validate_all_settings()
        assert status["local_storage"] is True
        assert status["app"] is False
        assert "app_error" in status


class TestCreateHousehold:
    """Tests for backend selection and facade wiring."""

    def test_local_backend_by_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOCAL_STORAGE_DATA_DIR", str(tmp_path / "data"))
        household = create_household()

        assert isinstance(household.backend, LocalStorageBackend)
        assert household.account.is_guest

        with household:
            asyncio.run(household.payers.add_payer("Alice"))
        assert (tmp_path / "data" / "guest" / "payers.json").exists()

    def test_remote_backend_selected(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "remote")
        monkeypatch.setenv("FIRESTORE_ROOT_COLLECTION", "households")

        with patch("household.services.storage.firestore.FirestoreDocumentStore") as store_class:
            backend = create_backend(Settings())

        assert isinstance(backend, RemoteStorageBackend)
        assert backend.store is store_class.return_value
        assert backend.collection_path("uid-1", Collection.PAYERS) == "households/uid-1/payers"

    def test_explicit_account_and_backend(self):
        backend = LocalStorageBackend.in_memory()
        household = create_household(AccountContext(account_id="uid-1"), backend)

        assert household.backend is backend
        assert all(facade.account_id == "uid-1" for facade in household.facades)

    def test_open_and_close_together(self):
        backend = MagicMock()
        backend.name = "mock"
        backend.subscribe.return_value.closed = False
        household = create_household(AccountContext.guest(), backend)

        household.open()
        assert backend.subscribe.call_count == 5
        household.close()
        assert backend.subscribe.return_value.close.call_count == 5
